"""
Remote Chat Client Module

Async access to the RAG news backend (chat, history, articles, search).

Usage:
    from newschat.client import HttpChatClient
    from newschat.config import get_settings

    async with HttpChatClient.from_settings(get_settings().api) as client:
        result = await client.send_message(session_id, "What's the news?")
        print(result.message.content)
"""

from newschat.client.base import (
    BaseChatClient,
    ChatClientError,
    ChatServerError,
    ChatTransportError,
)
from newschat.client.http import HttpChatClient

__all__ = [
    "BaseChatClient",
    "ChatClientError",
    "ChatServerError",
    "ChatTransportError",
    "HttpChatClient",
]
