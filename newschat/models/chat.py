"""
Chat Models

Pydantic models for sessions, transcript messages and the payloads the
remote chat service returns. Assistant metadata is kept open-ended so that
whatever the service annotates a reply with survives a cache round trip.
"""

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current time used for every client-side timestamp."""
    return datetime.now(UTC)


def new_message_id() -> str:
    return uuid4().hex


class Source(BaseModel):
    """A retrieved document cited by an assistant reply."""

    title: str | None = Field(None, description="Article or document title")
    source: str | None = Field(None, description="Publisher name")
    published_date: str | None = Field(None, description="Publication date as sent by the service")
    relevance_score: float | None = Field(None, description="Retrieval relevance score as sent")
    url: str | None = Field(None, description="Link to the original document")
    content_snippet: str | None = Field(None, description="Excerpt used as context")

    model_config = ConfigDict(extra="allow")


class MessageMetadata(BaseModel):
    """
    Annotations attached to a message.

    Only ``error`` is interpreted by the client. Everything else, including
    fields this model does not declare, is passed through untouched.
    """

    error: bool = Field(default=False, description="Synthetic client-side error reply")
    rag_used: bool | None = Field(None, description="Whether retrieval grounded the reply")
    sources: list[Source] = Field(default_factory=list, description="Cited sources")
    processing_time_ms: float | None = Field(None, description="Server processing time")
    model: str | None = Field(None, description="Model that generated the reply")

    model_config = ConfigDict(extra="allow")


class Message(BaseModel):
    """Single entry in a conversation transcript."""

    id: str = Field(default_factory=new_message_id, description="Unique within a transcript")
    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text (opaque to the client)")
    timestamp: datetime = Field(default_factory=utcnow, description="Creation time")
    metadata: MessageMetadata | None = Field(None, description="Optional annotations")

    @property
    def is_error(self) -> bool:
        return bool(self.metadata and self.metadata.error)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def error_reply(cls, detail: str) -> "Message":
        """Build the synthetic assistant reply shown when a send fails."""
        return cls(
            role="assistant",
            content=f"Sorry, I encountered an error: {detail}. Please try again.",
            metadata=MessageMetadata(error=True),
        )


class Session(BaseModel):
    """Client-held identity binding a conversation to one backend history."""

    id: str = Field(..., min_length=1, description="Opaque session identifier")
    created_at: AwareDatetime = Field(..., description="Creation time")
    last_activity: AwareDatetime = Field(..., description="Last successful exchange or load")


class CachedTranscript(BaseModel):
    """The single locally cached transcript slot."""

    session_id: str = Field(..., min_length=1, description="Session the transcript belongs to")
    messages: list[Message] = Field(default_factory=list, description="Chronological messages")
    cached_at: AwareDatetime = Field(..., description="Time of the last write")


class SendMessageResult(BaseModel):
    """``data`` section of a successful ``POST /chat`` response."""

    message: Message = Field(..., description="Assistant reply")
    rag_context: dict[str, Any] | None = Field(
        None, description="Retrieval context details returned alongside the reply"
    )


class HistoryPage(BaseModel):
    """``data`` section of ``GET /chat/{session_id}/history``."""

    messages: list[Message] = Field(default_factory=list, description="Authoritative history")

    model_config = ConfigDict(extra="allow")
