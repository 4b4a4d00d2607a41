"""Article models returned by the news service."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Article(BaseModel):
    """A news article the user can open a conversation about."""

    id: str | None = Field(None, description="Service-side identifier")
    title: str = Field(..., description="Headline")
    source: str | None = Field(None, description="Publisher name")
    category: str | None = Field(None, description="Topic category (e.g. 'world_news')")
    published_date: str | None = Field(None, description="Publication date as sent by the service")
    summary: str | None = Field(None, description="Short summary")
    content: str | None = Field(None, description="Article body")
    url: str | None = Field(None, description="Link to the original article")

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    def preview(self, length: int = 150) -> str:
        """Summary (or content) trimmed for list display."""
        text = self.summary or self.content
        if not text:
            return "No summary available"
        if len(text) <= length:
            return text
        return text[:length] + "..."


class ArticleList(BaseModel):
    """``data`` section of ``GET /articles``."""

    articles: list[Article] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


class ArticleSearchResult(BaseModel):
    """``data`` section of ``GET /articles/search``."""

    articles: list[Article] = Field(default_factory=list)
    search_info: dict[str, Any] | None = None
