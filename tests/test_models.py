"""Tests for shared data models."""

import pydantic
import pytest

from folio.models import ChatMessage, ContentRecord


def test_content_record_accepts_type_alias() -> None:
    record = ContentRecord.model_validate({"id": "edu", "type": "education", "text": "BSc"})
    assert record.category == "education"
    assert record.metadata == {}


def test_content_record_rejects_unknown_category() -> None:
    with pytest.raises(pydantic.ValidationError):
        ContentRecord(id="x", category="hobby", text="chess")


def test_content_record_requires_text() -> None:
    with pytest.raises(pydantic.ValidationError):
        ContentRecord(id="x", category="skill", text="")


def test_vector_metadata_layout() -> None:
    record = ContentRecord(
        id="w1",
        category="work",
        text="Engineer at Acme",
        metadata={"title": "Engineer", "technologies": ["Python"]},
    )
    assert record.to_vector_metadata() == {
        "category": "work",
        "text": "Engineer at Acme",
        "title": "Engineer",
        "technologies": ["Python"],
    }


def test_chat_message_api_format() -> None:
    message = ChatMessage(role="assistant", content="hi", timestamp=1)
    assert message.to_api_message() == {"role": "assistant", "content": "hi"}


def test_chat_message_rejects_unknown_role() -> None:
    with pytest.raises(pydantic.ValidationError):
        ChatMessage(role="tool", content="x", timestamp=1)
