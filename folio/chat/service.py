"""Chat turn pipeline: retrieve, prompt, generate, record."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable

from folio.chat.session import SessionStore
from folio.config import settings
from folio.errors import ValidationError
from folio.llm import client
from folio.llm.prompt import build_messages, load_persona
from folio.models import ChatReply
from folio.vector.retriever import Retriever, format_context

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "I apologize, but I was unable to generate a response."

Generator = Callable[..., Awaitable[str | None]]


class ChatService:
    """Answers one chat turn at a time against a session's history."""

    def __init__(
        self,
        sessions: SessionStore | None = None,
        retriever: Retriever | None = None,
        generate: Generator | None = None,
        persona: str | None = None,
    ) -> None:
        self._sessions = sessions or SessionStore.get()
        self._retriever = retriever or Retriever()
        self._generate = generate or client.generate
        self._persona = persona or load_persona()

    async def _generate_text(self, messages: list[dict[str, str]]) -> str:
        try:
            text = await self._generate(
                messages,
                max_tokens=settings.generation_max_tokens,
                temperature=settings.generation_temperature,
            )
        except Exception:
            logger.exception("Generation failed, using fallback response")
            return FALLBACK_RESPONSE
        if not text or not text.strip():
            logger.warning("Generation returned no text, using fallback response")
            return FALLBACK_RESPONSE
        return text

    async def chat(self, message: str | None, session_id: str | None = None) -> ChatReply:
        """Run one turn and record both sides of the exchange.

        Raises:
            ValidationError: *message* is missing or blank. Nothing is stored.
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")

        session_id = session_id if session_id else str(uuid.uuid4())
        session = self._sessions.session(session_id)

        history = await session.get_recent_context(settings.recent_context_size)
        matches = await self._retriever.retrieve(message, settings.retrieval_top_k)
        context = format_context(matches)

        messages = build_messages(self._persona, context, history, message)
        response = await self._generate_text(messages)

        await session.append_many([("user", message), ("assistant", response)])

        logger.info(
            "Chat turn for session %s: %d history, %d match(es), %d chars out",
            session_id,
            len(history),
            len(matches),
            len(response),
        )
        return ChatReply(response=response, session_id=session_id)

    async def clear(self, session_id: str | None) -> bool:
        """Empty a session's history.

        Raises:
            ValidationError: *session_id* is missing or blank.
        """
        if not session_id or not session_id.strip():
            raise ValidationError("Session ID is required")
        await self._sessions.session(session_id).clear()
        return True
