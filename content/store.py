"""
content/store.py -- SQLAlchemy-backed persistence for news, gallery, and slider content.

Uses SQLAlchemy Core (not ORM) so the dataclasses in content/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ContentStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Authorization is not this layer's concern: the admin gate runs before any
create_* or delete_* call is reached.

Usage:
    store = ContentStore("sqlite:///portal.db")
    news_id = store.create_news(item)
    store.list_news()
    store.delete_news(news_id)
    store.close()
"""

from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from content.models import GalleryItem, NewsItem, SliderItem

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_news = Table(
    "news",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("summary", Text, nullable=False),
    Column("image_url", Text, nullable=False),
    Column("category", String(100), nullable=False),
    Column("date", String(32), nullable=False),
)

_gallery = Table(
    "gallery_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("image_url", Text, nullable=False),
    Column("category", String(100), nullable=False),
)

_slider = Table(
    "slider_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("subtitle", Text, nullable=False),
    Column("image_url", Text, nullable=False),
    Column("cta_text", String(100), nullable=False),
    Column("cta_link", Text, nullable=False),
    Column("secondary_cta_text", String(100)),
    Column("secondary_cta_link", Text),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContentStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _insert(self, table: Table, values: dict) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(table.insert().values(**values))
            conn.commit()
            return result.inserted_primary_key[0]

    def _get(self, table: Table, item_id: int):
        with self.engine.connect() as conn:
            return conn.execute(table.select().where(table.c.id == item_id)).fetchone()

    def _delete(self, table: Table, item_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(table.delete().where(table.c.id == item_id))
            conn.commit()
        return result.rowcount > 0

    def is_empty(self) -> bool:
        """Return True when no news, gallery, or slider rows exist."""
        with self.engine.connect() as conn:
            for table in (_news, _gallery, _slider):
                if conn.execute(select(func.count()).select_from(table)).scalar():
                    return False
        return True

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    def create_news(self, item: NewsItem) -> int:
        """Insert a news article and return its assigned ID."""
        return self._insert(
            _news,
            {
                "title": item.title,
                "content": item.content,
                "summary": item.summary,
                "image_url": item.image_url,
                "category": item.category,
                "date": item.date,
            },
        )

    def get_news(self, news_id: int) -> Optional[NewsItem]:
        row = self._get(_news, news_id)
        return _row_to_news(row) if row is not None else None

    def list_news(self) -> list[NewsItem]:
        """Return all news articles, newest date first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_news.select().order_by(_news.c.date.desc(), _news.c.id.desc())).fetchall()
        return [_row_to_news(r) for r in rows]

    def delete_news(self, news_id: int) -> bool:
        return self._delete(_news, news_id)

    # ------------------------------------------------------------------
    # Gallery
    # ------------------------------------------------------------------

    def create_gallery_item(self, item: GalleryItem) -> int:
        return self._insert(
            _gallery,
            {"title": item.title, "image_url": item.image_url, "category": item.category},
        )

    def get_gallery_item(self, item_id: int) -> Optional[GalleryItem]:
        row = self._get(_gallery, item_id)
        return _row_to_gallery(row) if row is not None else None

    def list_gallery_items(self) -> list[GalleryItem]:
        with self.engine.connect() as conn:
            rows = conn.execute(_gallery.select().order_by(_gallery.c.id)).fetchall()
        return [_row_to_gallery(r) for r in rows]

    def delete_gallery_item(self, item_id: int) -> bool:
        return self._delete(_gallery, item_id)

    # ------------------------------------------------------------------
    # Slider
    # ------------------------------------------------------------------

    def create_slider_item(self, item: SliderItem) -> int:
        return self._insert(
            _slider,
            {
                "title": item.title,
                "subtitle": item.subtitle,
                "image_url": item.image_url,
                "cta_text": item.cta_text,
                "cta_link": item.cta_link,
                "secondary_cta_text": item.secondary_cta_text,
                "secondary_cta_link": item.secondary_cta_link,
            },
        )

    def get_slider_item(self, item_id: int) -> Optional[SliderItem]:
        row = self._get(_slider, item_id)
        return _row_to_slider(row) if row is not None else None

    def list_slider_items(self) -> list[SliderItem]:
        """Return slides in insertion order (the order they rotate in)."""
        with self.engine.connect() as conn:
            rows = conn.execute(_slider.select().order_by(_slider.c.id)).fetchall()
        return [_row_to_slider(r) for r in rows]

    def delete_slider_item(self, item_id: int) -> bool:
        return self._delete(_slider, item_id)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed(
        self,
        news: list[NewsItem],
        gallery: list[GalleryItem],
        slider: list[SliderItem],
    ) -> int:
        """Insert the given items and return how many rows were written."""
        for item in slider:
            self.create_slider_item(item)
        for item in news:
            self.create_news(item)
        for item in gallery:
            self.create_gallery_item(item)
        return len(news) + len(gallery) + len(slider)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_news(row) -> NewsItem:
    return NewsItem(
        id=row.id,
        title=row.title,
        content=row.content,
        summary=row.summary,
        image_url=row.image_url,
        category=row.category,
        date=row.date,
    )


def _row_to_gallery(row) -> GalleryItem:
    return GalleryItem(id=row.id, title=row.title, image_url=row.image_url, category=row.category)


def _row_to_slider(row) -> SliderItem:
    return SliderItem(
        id=row.id,
        title=row.title,
        subtitle=row.subtitle,
        image_url=row.image_url,
        cta_text=row.cta_text,
        cta_link=row.cta_link,
        secondary_cta_text=row.secondary_cta_text,
        secondary_cta_link=row.secondary_cta_link,
    )
