"""Unit tests for chat and article models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from newschat.models import Article, Message, MessageMetadata, Session, Source


class TestMessage:
    def test_user_message_defaults(self):
        message = Message.user("hello")

        assert message.role == "user"
        assert message.id
        assert message.timestamp.tzinfo is not None
        assert message.metadata is None
        assert message.is_error is False

    def test_ids_are_unique(self):
        assert Message.user("a").id != Message.user("a").id

    def test_error_reply(self):
        reply = Message.error_reply("Failed to send message: boom")

        assert reply.role == "assistant"
        assert reply.is_error is True
        assert reply.content == (
            "Sorry, I encountered an error: Failed to send message: boom. Please try again."
        )

    def test_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            Message(role="system", content="x")

    def test_server_payload_keeps_extra_metadata(self):
        message = Message.model_validate(
            {
                "id": "m1",
                "role": "assistant",
                "content": "answer",
                "timestamp": "2025-09-20T12:00:00Z",
                "metadata": {
                    "rag_used": True,
                    "sources": [{"title": "Story", "source": "PTI", "relevance_score": 0.5}],
                    "context_count": 3,
                },
            }
        )

        assert message.metadata.sources[0].source == "PTI"
        assert message.metadata.model_extra == {"context_count": 3}
        assert isinstance(message.timestamp, datetime)


def test_source_passes_service_values_through():
    scored = Source(title="Story", relevance_score=1.37, rank=2)
    untitled = Source(source="The Hindu")

    assert scored.relevance_score == 1.37
    assert scored.model_dump()["rank"] == 2
    assert untitled.title is None


def test_metadata_error_defaults_false():
    assert MessageMetadata().error is False


def test_session_requires_aware_timestamps():
    with pytest.raises(ValidationError):
        Session(
            id="s1",
            created_at=datetime(2025, 9, 20, 12, 0),
            last_activity=datetime(2025, 9, 20, 12, 0),
        )


def test_article_preview_short_summary():
    article = Article(id=5, title="t", summary="Short")

    assert article.id == "5"
    assert article.preview() == "Short"
