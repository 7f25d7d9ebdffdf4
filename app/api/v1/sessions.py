"""Session management: list the caller's logins and revoke them."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.dependencies import CurrentAuth
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.schemas.auth import RevokeOthersData, SessionInfo, SessionListData
from app.schemas.common import ApiResponse
from app.services.session_manager import SessionManager

router = APIRouter()


@router.get("", response_model=ApiResponse[SessionListData])
def list_sessions(
    auth: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[SessionListData]:
    """Active sessions of the caller, newest first; the one in use is flagged is_current."""
    sessions = SessionManager(db).get_user_active_sessions(auth.user.id)
    infos = [
        SessionInfo.model_validate(s).model_copy(update={"is_current": s.id == auth.session_id})
        for s in sessions
    ]
    return ApiResponse[SessionListData](
        message="Active sessions retrieved successfully",
        data=SessionListData(
            active_sessions=infos,
            total_sessions=len(infos),
            current_session_id=auth.session_id,
        ),
    )


@router.delete("/{session_id}", response_model=ApiResponse[None])
def revoke_session(
    session_id: uuid.UUID,
    auth: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """Revoke one of the caller's own sessions."""
    if not SessionManager(db).revoke_session(session_id, auth.user.id):
        raise NotFoundError(
            "Session not found or already revoked",
            code="SESSION_NOT_FOUND",
            field="session_id",
        )
    return ApiResponse[None](message="Session revoked successfully")


@router.post("/revoke-others", response_model=ApiResponse[RevokeOthersData])
def revoke_other_sessions(
    auth: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[RevokeOthersData]:
    """Revoke every session of the caller except the one making this request."""
    revoked = SessionManager(db).revoke_other_user_sessions(auth.user.id, auth.session_id)
    return ApiResponse[RevokeOthersData](
        message=f"Successfully revoked {revoked} other sessions",
        data=RevokeOthersData(revoked_count=revoked),
    )
