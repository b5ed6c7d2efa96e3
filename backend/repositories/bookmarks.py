"""
Bookmark repository backed by SQLAlchemy.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.errors import DuplicateBookmarkError
from domain.models import Bookmark
from repositories.models import BookmarkORM, as_utc, utcnow

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"
_UNIQUE_MESSAGE_MARKERS = ("unique constraint failed", "duplicate key value", "unique_user_bookmark")


def is_unique_violation(exc: IntegrityError) -> bool:
    """Structured driver codes first; message matching only as a fallback."""
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 sqlstate
    for attr in ("pgcode", "sqlstate"):
        if getattr(orig, attr, None) == UNIQUE_VIOLATION_SQLSTATE:
            return True
    sqlite_name = getattr(orig, "sqlite_errorname", None)
    if sqlite_name is not None:
        return sqlite_name in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")
    message = str(orig).lower()
    return any(marker in message for marker in _UNIQUE_MESSAGE_MARKERS)


def _bookmark_from_orm(orm: BookmarkORM) -> Bookmark:
    return Bookmark(
        id=orm.id,
        user_id=orm.user_id,
        content_id=orm.content_id,
        created_at=as_utc(orm.created_at),
    )


class BookmarksRepository:
    """CRUD operations for bookmarks. There is no update: a bookmark is the (user, content) pair."""

    def list_bookmarks(self, session: Session, user_id: str) -> List[Bookmark]:
        rows = (
            session.query(BookmarkORM)
            .filter(BookmarkORM.user_id == user_id)
            .order_by(BookmarkORM.created_at.desc())
            .all()
        )
        return [_bookmark_from_orm(b) for b in rows]

    def add_bookmark(
        self,
        session: Session,
        user_id: str,
        content_id: str,
        created_at: Optional[datetime] = None,
    ) -> Bookmark:
        orm = BookmarkORM(
            id=Bookmark.generate_id(),
            user_id=user_id,
            content_id=content_id,
            created_at=created_at or utcnow(),
        )
        session.add(orm)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if is_unique_violation(exc):
                logger.warning("Bookmark already exists for user %s and content %s", user_id, content_id)
                raise DuplicateBookmarkError(
                    f"Bookmark already exists for user {user_id} and content {content_id}"
                ) from exc
            raise
        session.refresh(orm)
        return _bookmark_from_orm(orm)

    def remove_bookmark(self, session: Session, user_id: str, content_id: str) -> int:
        """Delete by (user, content). Returns the number of rows removed; zero is not an error."""
        deleted = (
            session.query(BookmarkORM)
            .filter(BookmarkORM.user_id == user_id, BookmarkORM.content_id == content_id)
            .delete(synchronize_session=False)
        )
        session.commit()
        return deleted

    def exists(self, session: Session, user_id: str, content_id: str) -> bool:
        row = (
            session.query(BookmarkORM.id)
            .filter(BookmarkORM.user_id == user_id, BookmarkORM.content_id == content_id)
            .first()
        )
        return row is not None
