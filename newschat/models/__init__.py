"""
NewsChat Models Module

Pydantic models for type-safe data validation throughout the client.

Available Models:
    Chat Models:
        - Message: Transcript entry (user or assistant)
        - MessageMetadata: Pass-through annotations, ``error`` flag
        - Source: Retrieved document cited by a reply
        - Session: Persisted session identity
        - CachedTranscript: Locally cached transcript slot
        - SendMessageResult: Successful send payload
        - HistoryPage: Authoritative history payload

    Article Models:
        - Article: News article
        - ArticleList: Article listing payload
        - ArticleSearchResult: Article search payload

Usage:
    from newschat.models import Message, Session
    from newschat.models.article import Article
"""

from newschat.models.article import Article, ArticleList, ArticleSearchResult
from newschat.models.chat import (
    CachedTranscript,
    HistoryPage,
    Message,
    MessageMetadata,
    SendMessageResult,
    Session,
    Source,
    new_message_id,
    utcnow,
)

__all__ = [
    "Article",
    "ArticleList",
    "ArticleSearchResult",
    "CachedTranscript",
    "HistoryPage",
    "Message",
    "MessageMetadata",
    "SendMessageResult",
    "Session",
    "Source",
    "new_message_id",
    "utcnow",
]
