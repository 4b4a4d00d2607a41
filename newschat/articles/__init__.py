"""Article listing and search for choosing a conversation topic."""

from .browser import ALL_CATEGORIES, ArticleBrowser

__all__ = ["ALL_CATEGORIES", "ArticleBrowser"]
