"""Data models shared by the indexer, retriever, session store and server."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Category = Literal["personal", "education", "work", "project", "skill"]
Role = Literal["system", "user", "assistant"]
MetadataValue = str | int | float | bool | list[str] | None


class ContentRecord(BaseModel):
    """A unit of indexed portfolio knowledge."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    # The ingestion payload historically called this field "type"
    category: Category = Field(validation_alias=AliasChoices("category", "type"))
    text: str = Field(min_length=1)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    def to_vector_metadata(self) -> dict[str, MetadataValue]:
        """Metadata stored next to the embedding: category, text, then extras."""
        return {"category": self.category, "text": self.text, **self.metadata}


class ChatMessage(BaseModel):
    """A single conversation turn."""

    role: Role
    content: str
    timestamp: int  # epoch milliseconds, set by the session store

    def to_api_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class SearchMatch(BaseModel):
    """A nearest-neighbour hit returned by the vector store."""

    id: str
    score: float
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)


class IndexResult(BaseModel):
    """Aggregate outcome of a batch ingestion."""

    succeeded: int = 0
    failed: int = 0


class ChatReply(BaseModel):
    """Outcome of one chat turn."""

    response: str
    session_id: str
