"""
NewsChat

Client core for a RAG-powered news chat assistant: session and history
persistence, the conversation controller, and an HTTP client for the
chat/article service.
"""

__version__ = "0.1.0"
