"""
content/models.py -- Domain dataclasses for portal content.

Pure data containers with zero logic; content/store.py does the work.
id is None before the record is written to the database.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class NewsItem:
    """A news article. date is ISO 8601; listings show newest first."""

    title: str
    content: str
    summary: str
    image_url: str
    category: str
    date: str
    id: Optional[int] = None


@dataclass
class GalleryItem:
    title: str
    image_url: str
    category: str
    id: Optional[int] = None


@dataclass
class SliderItem:
    """A homepage hero slide with a primary and an optional secondary call to action."""

    title: str
    subtitle: str
    image_url: str
    cta_text: str
    cta_link: str
    secondary_cta_text: Optional[str] = None
    secondary_cta_link: Optional[str] = None
    id: Optional[int] = None
