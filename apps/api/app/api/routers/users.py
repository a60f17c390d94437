"""User endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.auth import require_current_user, require_roles
from apps.api.app.core.enums import UserRole
from apps.api.app.db.models import User
from apps.api.app.db.session import get_db_session

router = APIRouter(prefix="/api/users", tags=["users"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    email: str
    role: str
    department: str | None
    created_at: datetime


@router.get("/me", response_model=UserResponse)
def current_user(user: User = Depends(require_current_user)) -> User:
    return user


@router.get("", response_model=list[UserResponse])
def list_users(
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> list[User]:
    return list(db.scalars(select(User).order_by(User.display_name.asc(), User.id.asc())).all())
