import logging
from datetime import datetime, timezone

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.core import config
from backend.database import get_db
from backend.models.revoked_session import RevokedSession
from backend.models.user import User

LOGIN_ROUTE = "/auth/login"
UNAUTHORIZED_ROUTE = "/auth/unauthorized"

security = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


class ReviewSession(BaseModel):
    """Identity and role resolved once for the current request."""

    user_id: int | None = None
    email: str
    role: str | None = None
    session_id: str
    expires_at: datetime


def _not_authenticated(message: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "redirect": LOGIN_ROUTE},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _database_unavailable() -> HTTPException:
    logger.exception("Session lookup failed")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Database unavailable. Verify DATABASE_URL and database credentials.",
    )


def get_review_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> ReviewSession:
    if credentials is None or not credentials.credentials:
        raise _not_authenticated()

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise _not_authenticated("Invalid or expired session") from exc

    email = payload.get("sub")
    if not email:
        raise _not_authenticated("Invalid token subject")

    session_id = payload["jti"]
    try:
        revoked = db.query(RevokedSession).filter(RevokedSession.jti == session_id).first()
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as exc:
        raise _database_unavailable() from exc

    if revoked is not None:
        raise _not_authenticated("Session has been signed out")

    return ReviewSession(
        user_id=user.id if user else None,
        email=email,
        role=user.role if user else None,
        session_id=session_id,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def require_role(role: str):
    def _require(session: ReviewSession = Depends(get_review_session)) -> ReviewSession:
        if session.user_id is None or session.role != role:
            logger.info("Denied %s access for %s (role=%r)", role, session.email, session.role)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": f"Only {role}s can access the review dashboard.",
                    "redirect": UNAUTHORIZED_ROUTE,
                },
            )
        return session

    return _require


require_panelist = require_role(config.REVIEWER_ROLE)
