"""
api/routes/content.py -- News, gallery, and slider REST endpoints.

Routes (per collection: news, gallery, slider):
  GET    /api/{collection}        -- public listing
  GET    /api/{collection}/{id}   -- public single item; 404 if absent
  POST   /api/{collection}        -- admin only; 201 with the created item
  DELETE /api/{collection}/{id}   -- admin only; 204, or 404 if absent

Reads are public. Writes depend on require_admin, which rejects a
non-admin caller before the handler runs, so the store is never touched.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from api.models import (
    GalleryCreate,
    GalleryResponse,
    NewsCreate,
    NewsResponse,
    SliderCreate,
    SliderResponse,
)
from auth.dependencies import require_admin
from auth.models import TokenClaims
from content.models import GalleryItem, NewsItem, SliderItem
from content.store import ContentStore
from core.errors import InternalError, NotFound

logger = logging.getLogger("portal.api.content")

router = APIRouter()


def _store(request: Request) -> ContentStore:
    return request.app.state.content


def _news_date(value: datetime | None) -> str:
    """Normalize to an ISO 8601 UTC string so listings sort chronologically."""
    if value is None:
        return datetime.now(timezone.utc).isoformat()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------


@router.get("/news", response_model=list[NewsResponse])
def list_news(request: Request) -> list[NewsResponse]:
    """Return all news articles, newest first."""
    return [NewsResponse.from_item(n) for n in _store(request).list_news()]


@router.get("/news/{news_id}", response_model=NewsResponse)
def get_news(request: Request, news_id: int) -> NewsResponse:
    item = _store(request).get_news(news_id)
    if item is None:
        raise NotFound("News article not found.")
    return NewsResponse.from_item(item)


@router.post("/news", response_model=NewsResponse, status_code=201)
def create_news(
    request: Request,
    body: NewsCreate,
    current_user: TokenClaims = Depends(require_admin),
) -> NewsResponse:
    store = _store(request)
    news_id = store.create_news(
        NewsItem(
            title=body.title,
            content=body.content,
            summary=body.summary,
            image_url=body.image_url,
            category=body.category,
            date=_news_date(body.date),
        )
    )
    logger.info("Admin %s created news id=%s", current_user.username, news_id)
    return NewsResponse.from_item(_written(store.get_news(news_id)))


@router.delete("/news/{news_id}", status_code=204)
def delete_news(
    request: Request,
    news_id: int,
    current_user: TokenClaims = Depends(require_admin),
) -> Response:
    if not _store(request).delete_news(news_id):
        raise NotFound("News article not found.")
    logger.info("Admin %s deleted news id=%s", current_user.username, news_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------


@router.get("/gallery", response_model=list[GalleryResponse])
def list_gallery(request: Request) -> list[GalleryResponse]:
    return [GalleryResponse.from_item(g) for g in _store(request).list_gallery_items()]


@router.get("/gallery/{item_id}", response_model=GalleryResponse)
def get_gallery_item(request: Request, item_id: int) -> GalleryResponse:
    item = _store(request).get_gallery_item(item_id)
    if item is None:
        raise NotFound("Gallery item not found.")
    return GalleryResponse.from_item(item)


@router.post("/gallery", response_model=GalleryResponse, status_code=201)
def create_gallery_item(
    request: Request,
    body: GalleryCreate,
    current_user: TokenClaims = Depends(require_admin),
) -> GalleryResponse:
    store = _store(request)
    item_id = store.create_gallery_item(
        GalleryItem(title=body.title, image_url=body.image_url, category=body.category)
    )
    logger.info("Admin %s created gallery item id=%s", current_user.username, item_id)
    return GalleryResponse.from_item(_written(store.get_gallery_item(item_id)))


@router.delete("/gallery/{item_id}", status_code=204)
def delete_gallery_item(
    request: Request,
    item_id: int,
    current_user: TokenClaims = Depends(require_admin),
) -> Response:
    if not _store(request).delete_gallery_item(item_id):
        raise NotFound("Gallery item not found.")
    logger.info("Admin %s deleted gallery item id=%s", current_user.username, item_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Slider
# ---------------------------------------------------------------------------


@router.get("/slider", response_model=list[SliderResponse])
def list_slider(request: Request) -> list[SliderResponse]:
    """Return slides in rotation order."""
    return [SliderResponse.from_item(s) for s in _store(request).list_slider_items()]


@router.get("/slider/{item_id}", response_model=SliderResponse)
def get_slider_item(request: Request, item_id: int) -> SliderResponse:
    item = _store(request).get_slider_item(item_id)
    if item is None:
        raise NotFound("Slide not found.")
    return SliderResponse.from_item(item)


@router.post("/slider", response_model=SliderResponse, status_code=201)
def create_slider_item(
    request: Request,
    body: SliderCreate,
    current_user: TokenClaims = Depends(require_admin),
) -> SliderResponse:
    store = _store(request)
    item_id = store.create_slider_item(
        SliderItem(
            title=body.title,
            subtitle=body.subtitle,
            image_url=body.image_url,
            cta_text=body.cta_text,
            cta_link=body.cta_link,
            secondary_cta_text=body.secondary_cta_text,
            secondary_cta_link=body.secondary_cta_link,
        )
    )
    logger.info("Admin %s created slide id=%s", current_user.username, item_id)
    return SliderResponse.from_item(_written(store.get_slider_item(item_id)))


@router.delete("/slider/{item_id}", status_code=204)
def delete_slider_item(
    request: Request,
    item_id: int,
    current_user: TokenClaims = Depends(require_admin),
) -> Response:
    if not _store(request).delete_slider_item(item_id):
        raise NotFound("Slide not found.")
    logger.info("Admin %s deleted slide id=%s", current_user.username, item_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _written(item):
    if item is None:
        raise InternalError("Item not found after write.")
    return item
