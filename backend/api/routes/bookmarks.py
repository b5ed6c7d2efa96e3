"""
Bookmark routes. The caller's identity comes from the X-User-Id header set by
the identity provider integration in front of this service.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from api.routes.places import PlaceResponse, get_tour_client, place_to_response
from domain.errors import AuthenticationError
from domain.models import Bookmark, SortOption
from services.bookmarks import BookmarkGateway
from services.places import load_bookmarked_places, sort_bookmarked_places
from services.tour_api import TourApiClient

router = APIRouter()
gateway = BookmarkGateway()
logger = logging.getLogger(__name__)


class BookmarkCreate(BaseModel):
    content_id: str


class BatchDelete(BaseModel):
    content_ids: List[str]


class BookmarkResponse(BaseModel):
    id: str
    user_id: str
    content_id: str
    created_at: datetime


class BookmarkedPlaceResponse(BaseModel):
    bookmark: BookmarkResponse
    place: PlaceResponse


class BookmarkStateResponse(BaseModel):
    content_id: str
    bookmarked: bool


class BatchDeleteResponse(BaseModel):
    removed: List[str]
    failed: Dict[str, str]


def bookmark_to_response(bookmark: Bookmark) -> BookmarkResponse:
    return BookmarkResponse(
        id=bookmark.id,
        user_id=bookmark.user_id,
        content_id=bookmark.content_id,
        created_at=bookmark.created_at,
    )


def current_external_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Missing X-User-Id header", "로그인이 필요합니다.")
    return x_user_id.strip()


@router.get("", response_model=List[BookmarkedPlaceResponse])
def list_bookmarks(
    sort: SortOption = SortOption.LATEST,
    external_id: str = Depends(current_external_id),
    client: TourApiClient = Depends(get_tour_client),
):
    """Bookmarked places of the current user; places the API no longer returns are skipped."""
    bookmarks = gateway.list_bookmarks(external_id)
    items = sort_bookmarked_places(load_bookmarked_places(client, bookmarks), sort)
    return [
        BookmarkedPlaceResponse(bookmark=bookmark_to_response(i.bookmark), place=place_to_response(i.place))
        for i in items
    ]


@router.post("", response_model=BookmarkResponse, status_code=201)
def add_bookmark(payload: BookmarkCreate, external_id: str = Depends(current_external_id)):
    return bookmark_to_response(gateway.add(external_id, payload.content_id))


@router.post("/batch-delete", response_model=BatchDeleteResponse)
def batch_delete(payload: BatchDelete, external_id: str = Depends(current_external_id)):
    result = gateway.remove_many(external_id, payload.content_ids)
    return BatchDeleteResponse(removed=result.removed, failed=result.failed)


@router.get("/{content_id}", response_model=BookmarkStateResponse)
def get_bookmark_state(content_id: str, external_id: str = Depends(current_external_id)):
    return BookmarkStateResponse(
        content_id=content_id,
        bookmarked=gateway.is_bookmarked(external_id, content_id),
    )


@router.delete("/{content_id}")
def remove_bookmark(content_id: str, external_id: str = Depends(current_external_id)):
    gateway.remove(external_id, content_id)
    return {"success": True}


@router.post("/{content_id}/toggle", response_model=BookmarkStateResponse)
def toggle_bookmark(content_id: str, external_id: str = Depends(current_external_id)):
    return BookmarkStateResponse(content_id=content_id, bookmarked=gateway.toggle(external_id, content_id))
