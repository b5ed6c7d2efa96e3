from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, TypeVar

from domain.errors import TourError
from domain.models import Bookmark, BookmarkedPlace, Place, PlaceBundle, SortOption
from services.tour_api import TourApiClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _modified_key(place: Place) -> int:
    try:
        return int(place.modified_time)
    except (TypeError, ValueError):
        return 0


def sort_places(places: Iterable[Place], sort: SortOption | str = SortOption.LATEST) -> List[Place]:
    """Latest first by modified time (YYYYMMDDHHmmss), or by title or address.

    Hangul syllables are laid out in dictionary order, so plain string order
    matches 가나다 order.
    """
    option = SortOption(sort)
    items = list(places)
    if option == SortOption.NAME:
        return sorted(items, key=lambda p: p.title)
    if option == SortOption.REGION:
        return sorted(items, key=lambda p: p.addr1)
    return sorted(items, key=_modified_key, reverse=True)


def sort_bookmarked_places(
    items: Iterable[BookmarkedPlace], sort: SortOption | str = SortOption.LATEST
) -> List[BookmarkedPlace]:
    option = SortOption(sort)
    result = list(items)
    if option == SortOption.NAME:
        return sorted(result, key=lambda i: i.place.title)
    if option == SortOption.REGION:
        return sorted(result, key=lambda i: i.place.addr1)
    return sorted(result, key=lambda i: i.bookmark.created_at, reverse=True)


def _result_or(future: Future, fallback: T, label: str, content_id: str) -> T:
    try:
        return future.result()
    except TourError as exc:
        logger.warning("Optional %s lookup failed for content_id=%s: %s", label, content_id, exc.message)
        return fallback


def load_place_page(client: TourApiClient, content_id: str) -> Optional[PlaceBundle]:
    """
    Detail first; then intro and images concurrently.

    Returns None when the place does not exist. Intro/image failures degrade
    to missing sections instead of failing the page.
    """
    detail = client.detail_common(content_id)
    if detail is None:
        return None

    with ThreadPoolExecutor(max_workers=2) as pool:
        intro_future = pool.submit(client.detail_intro, detail.content_id, detail.content_type_id)
        images_future = pool.submit(client.detail_images, detail.content_id)
        intro = _result_or(intro_future, None, "intro", detail.content_id)
        images = _result_or(images_future, [], "images", detail.content_id)

    return PlaceBundle(detail=detail, intro=intro, images=images)


def load_bookmarked_places(
    client: TourApiClient,
    bookmarks: Sequence[Bookmark],
    max_workers: int = 8,
) -> List[BookmarkedPlace]:
    """Fetch the place behind each bookmark; unavailable places are skipped."""
    if not bookmarks:
        return []

    results: List[BookmarkedPlace] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(bookmarks)))) as pool:
        futures = [(b, pool.submit(client.detail_common, b.content_id)) for b in bookmarks]
        for bookmark, future in futures:
            detail = _result_or(future, None, "bookmarked place", bookmark.content_id)
            if detail is None:
                continue
            results.append(BookmarkedPlace(bookmark=bookmark, place=detail.to_place()))

    logger.debug("Loaded %d of %d bookmarked places", len(results), len(bookmarks))
    return results
