"""
Sign-in sync: mirrors the identity provider's user into the users table.
"""
from datetime import datetime
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.routes.bookmarks import current_external_id
from db import SessionLocal
from repositories import UsersRepository

router = APIRouter()
users_repo = UsersRepository()


class UserSync(BaseModel):
    name: str = ""


class UserResponse(BaseModel):
    id: str
    external_id: str
    name: str
    created_at: datetime


@router.post("/sync", response_model=UserResponse)
def sync_user(payload: UserSync, external_id: str = Depends(current_external_id)):
    """Create the internal user on first sign-in; safe to call on every sign-in."""
    with SessionLocal() as session:
        user = users_repo.sync_user(session, external_id, payload.name)
    return UserResponse(
        id=user.id,
        external_id=user.external_id,
        name=user.name,
        created_at=user.created_at,
    )
