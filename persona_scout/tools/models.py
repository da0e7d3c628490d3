"""
Evidence Models
Normalized evidence returned by the tools. Instances are frozen: a result is
created once per call and only ever serialized into a tool message.
"""
from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict


class SearchResult(BaseModel):
    """One web search hit; ``link`` is the dedup key."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    link: str = ""
    snippet: str = ""


class SocialPost(BaseModel):
    """One post from the X API, replies included."""
    model_config = ConfigDict(frozen=True)

    text: str = ""
    date: str = ""
    author: Optional[str] = None
    author_name: Optional[str] = None
    author_bio: Optional[str] = None
    author_location: Optional[str] = None
    reply: bool = False
    metrics: Optional[Dict[str, Any]] = None
    link: Optional[str] = None


class PageContent(BaseModel):
    """Readable text of a fetched page or PDF."""
    model_config = ConfigDict(frozen=True)

    text: str
    source_url: str
    content_type: str = "html"
    truncated: bool = False
    instructions: str = ""
