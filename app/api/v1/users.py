"""User lookups: admins see everyone, other users only themselves."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.dependencies import AdminAuth, AuthContext, require_ownership_or_admin
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models import User
from app.schemas.auth import UserProfile, UsersListData
from app.schemas.common import ApiResponse

router = APIRouter()


@router.get("", response_model=ApiResponse[UsersListData])
def list_users(
    _admin: AdminAuth,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UsersListData]:
    """List all users (admin only)."""
    users = db.query(User).order_by(User.created_at, User.email).all()
    return ApiResponse[UsersListData](
        message="Users retrieved successfully",
        data=UsersListData(users=[UserProfile.model_validate(u) for u in users]),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserProfile])
def get_user(
    user_id: uuid.UUID,
    _auth: Annotated[AuthContext, Depends(require_ownership_or_admin("user_id"))],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserProfile]:
    """Fetch one user; allowed for that user and for admins."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND", field="user_id")
    return ApiResponse[UserProfile](
        message="User retrieved successfully",
        data=UserProfile.model_validate(user),
    )
