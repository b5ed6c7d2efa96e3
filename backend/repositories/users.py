"""
User repository backed by SQLAlchemy.
"""
import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.models import User
from repositories.models import UserORM, as_utc, utcnow

logger = logging.getLogger(__name__)


def _user_from_orm(orm: UserORM) -> User:
    return User(
        id=orm.id,
        external_id=orm.external_id,
        name=orm.name,
        created_at=as_utc(orm.created_at),
    )


class UsersRepository:
    """Lookup of internal users by external identity, plus the sign-in sync."""

    def get_user_id(self, session: Session, external_id: str) -> Optional[str]:
        row = session.query(UserORM.id).filter(UserORM.external_id == external_id).first()
        return row[0] if row else None

    def sync_user(self, session: Session, external_id: str, name: str) -> User:
        """Create the internal user on first sign-in; refresh the name afterwards."""
        orm = session.query(UserORM).filter(UserORM.external_id == external_id).first()
        if orm:
            if name and orm.name != name:
                orm.name = name
                session.add(orm)
                session.commit()
                session.refresh(orm)
            return _user_from_orm(orm)

        orm = UserORM(
            id=User.generate_id(),
            external_id=external_id,
            name=name or "",
            created_at=utcnow(),
        )
        session.add(orm)
        try:
            session.commit()
        except IntegrityError:
            # Concurrent sign-in created the row first
            session.rollback()
            existing = session.query(UserORM).filter(UserORM.external_id == external_id).first()
            if existing is None:
                raise
            logger.info("User %s already synced by a concurrent request", external_id)
            return _user_from_orm(existing)
        session.refresh(orm)
        return _user_from_orm(orm)
