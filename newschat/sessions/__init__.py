"""Client-side session identity."""

from .store import DEFAULT_SESSION_VALIDITY, SessionStore

__all__ = ["DEFAULT_SESSION_VALIDITY", "SessionStore"]
