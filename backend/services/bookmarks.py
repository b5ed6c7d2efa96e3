"""
Bookmark gateway: maps an external identity to the internal user and runs
bookmark create/read/delete for that user.

Per (user, content) the state is either absent or present:
- add on present raises DuplicateBookmarkError (callers treat it as done, not retry)
- remove on absent is a no-op
Users are never created here; that happens in the sign-in sync.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import SessionLocal
from domain.errors import (
    AccountNotSyncedError,
    AuthenticationError,
    DuplicateBookmarkError,
    TourError,
    ValidationError,
)
from domain.models import Bookmark
from repositories import BookmarksRepository, UsersRepository

logger = logging.getLogger(__name__)


@dataclass
class BatchRemoveResult:
    removed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def _require_content_id(content_id: Optional[str]) -> str:
    if content_id is None or not str(content_id).strip():
        raise ValidationError("content_id is required", "관광지 ID가 필요합니다.")
    return str(content_id).strip()


class BookmarkGateway:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        users_repo: Optional[UsersRepository] = None,
        bookmarks_repo: Optional[BookmarksRepository] = None,
    ):
        self.session_factory = session_factory
        self.users_repo = users_repo or UsersRepository()
        self.bookmarks_repo = bookmarks_repo or BookmarksRepository()

    def _resolve(self, session: Session, external_id: Optional[str]) -> str:
        if external_id is None or not external_id.strip():
            raise AuthenticationError("No authenticated user", "로그인이 필요합니다.")
        user_id = self.users_repo.get_user_id(session, external_id)
        if user_id is None:
            logger.warning("User not found for external_id: %s", external_id)
            raise AccountNotSyncedError(f"No internal user for external_id {external_id}")
        return user_id

    def resolve_user_id(self, external_id: Optional[str]) -> str:
        with self.session_factory() as session:
            return self._resolve(session, external_id)

    def list_bookmarks(self, external_id: Optional[str]) -> List[Bookmark]:
        """Bookmarks of the user, newest first. Empty list when there are none."""
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            return self.bookmarks_repo.list_bookmarks(session, user_id)

    def is_bookmarked(self, external_id: Optional[str], content_id: str) -> bool:
        content_id = _require_content_id(content_id)
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            return self.bookmarks_repo.exists(session, user_id, content_id)

    def add(self, external_id: Optional[str], content_id: str) -> Bookmark:
        content_id = _require_content_id(content_id)
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            return self.bookmarks_repo.add_bookmark(session, user_id, content_id)

    def remove(self, external_id: Optional[str], content_id: str) -> None:
        content_id = _require_content_id(content_id)
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            deleted = self.bookmarks_repo.remove_bookmark(session, user_id, content_id)
            if not deleted:
                logger.debug("No bookmark to remove for user %s and content %s", user_id, content_id)

    def remove_many(self, external_id: Optional[str], content_ids: Iterable[str]) -> BatchRemoveResult:
        """Remove several bookmarks; each id succeeds or fails on its own."""
        result = BatchRemoveResult()
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            for raw_id in dict.fromkeys(content_ids):
                try:
                    content_id = _require_content_id(raw_id)
                    self.bookmarks_repo.remove_bookmark(session, user_id, content_id)
                except TourError as exc:
                    result.failed[str(raw_id)] = exc.user_message
                    continue
                except SQLAlchemyError as exc:
                    session.rollback()
                    logger.error("Failed to remove bookmark %s: %s", raw_id, exc)
                    result.failed[str(raw_id)] = "북마크를 삭제하는 중 오류가 발생했습니다."
                    continue
                result.removed.append(content_id)
        if result.failed:
            logger.warning("Batch bookmark removal: %d removed, %d failed", len(result.removed), len(result.failed))
        return result

    def toggle(self, external_id: Optional[str], content_id: str) -> bool:
        """Flip the bookmark state and return the new state (True = bookmarked)."""
        content_id = _require_content_id(content_id)
        with self.session_factory() as session:
            user_id = self._resolve(session, external_id)
            if self.bookmarks_repo.exists(session, user_id, content_id):
                self.bookmarks_repo.remove_bookmark(session, user_id, content_id)
                return False
            try:
                self.bookmarks_repo.add_bookmark(session, user_id, content_id)
            except DuplicateBookmarkError:
                # Added by a concurrent request; the intent is satisfied
                pass
            return True
