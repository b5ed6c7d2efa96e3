"""
SQLAlchemy ORM models for persistence.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserORM(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    external_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    bookmarks = relationship(
        "BookmarkORM",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BookmarkORM(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="unique_user_bookmark"),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("UserORM", back_populates="bookmarks")


Index("idx_bookmarks_created_at", BookmarkORM.created_at.desc())
