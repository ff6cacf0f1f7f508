"""Prompt assembly for a chat turn."""

import logging
from pathlib import Path

from folio.models import ChatMessage

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

DEFAULT_PERSONA = """You are an AI assistant for a personal portfolio website. Your role is to answer questions about the portfolio owner's background, experience, projects, and skills in a professional and friendly manner.

Key guidelines:
- Answer questions based ONLY on the provided context from the portfolio
- If you don't have information to answer a question, politely say so
- Be concise but informative
- Highlight relevant achievements and technical skills when appropriate
- Use a professional yet conversational tone
- If asked about contact information, provide the email or LinkedIn from the context

Context will be provided with each query containing relevant information from the portfolio."""


def _read_config(filename: str) -> str:
    """Read a config markdown file, returning empty string if missing."""
    path = CONFIG_DIR / filename
    if path.exists():
        return path.read_text(encoding="utf-8").strip()
    return ""


def load_persona() -> str:
    """Persona prompt from ``config/PERSONA.md``, or the built-in default."""
    persona = _read_config("PERSONA.md")
    if persona:
        return persona
    return DEFAULT_PERSONA


def build_messages(
    persona: str,
    context: str,
    history: list[ChatMessage],
    user_message: str,
) -> list[dict[str, str]]:
    """Order: persona, retrieved context, recent history, then the new message."""
    messages = [
        {"role": "system", "content": persona},
        {"role": "system", "content": context},
    ]
    messages.extend(m.to_api_message() for m in history)
    messages.append({"role": "user", "content": user_message})
    return messages
