from __future__ import annotations

import datetime

from pydantic import BaseModel, Field


class NewsArticle(BaseModel):
    id: int
    headline: str
    summary: str
    source: str
    url: str
    datetime: int
    category: str
    related: str = ""
    image: str = ""

    @property
    def dedup_key(self) -> str:
        return f"{self.id}-{self.url}-{self.headline}"


class NewsDigest(BaseModel):
    user_id: str
    generated_at: datetime.datetime
    symbols: list[str] = Field(default_factory=list)
    articles: list[NewsArticle] = Field(default_factory=list)
