"""Conversation transcript state and its local cache."""

from .cache import DEFAULT_HISTORY_TTL, HistoryCache
from .controller import (
    ConversationController,
    ConversationError,
    ConversationPhase,
    ConversationSnapshot,
    ErrorKind,
)

__all__ = [
    "ConversationController",
    "ConversationError",
    "ConversationPhase",
    "ConversationSnapshot",
    "DEFAULT_HISTORY_TTL",
    "ErrorKind",
    "HistoryCache",
]
