import logging
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from fastapi import APIRouter, HTTPException, Request, Depends, status
from fastapi.responses import RedirectResponse, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler, saml
from backend.auth.dependencies import (
    LOGIN_ROUTE,
    UNAUTHORIZED_ROUTE,
    ReviewSession,
    get_review_session,
    security,
)
from backend.core import config
from backend.database import get_db
from backend.models.revoked_session import RevokedSession
from backend.models.user import User

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

DASHBOARD_ROUTE = "/dashboard"
ROLE_NOT_FOUND = "not found"


async def _saml_request_data(request: Request) -> dict:
    form_data = await request.form()
    return saml.build_request_data(
        url=str(request.url),
        host=request.headers.get("host", ""),
        query_params=dict(request.query_params),
        form_data=dict(form_data),
    )


def find_or_create_user(db: Session, email: str, name_id: str | None) -> User:
    user = None
    if name_id:
        user = db.query(User).filter(User.sso_subject == name_id).first()
    if user is None:
        user = db.query(User).filter(User.email == email).first()

    if user is None:
        user = User(
            email=email,
            role=config.DEFAULT_USER_ROLE,
            sso_provider=config.SAML_PROVIDER_NAME,
            sso_subject=name_id,
        )
        db.add(user)
        logger.info("Created user record for %s with role %r", email, user.role)
    else:
        if user.email != email:
            logger.info("SSO subject %s now asserts %s; keeping stored email %s", name_id, email, user.email)
        user.sso_provider = user.sso_provider or config.SAML_PROVIDER_NAME
        user.sso_subject = user.sso_subject or name_id
    db.commit()
    db.refresh(user)
    return user


def landing_route(role: str | None) -> str:
    return DASHBOARD_ROUTE if role == config.REVIEWER_ROLE else UNAUTHORIZED_ROUTE


@router.get("/login")
async def login(request: Request):
    auth = saml.init_saml_auth(await _saml_request_data(request))
    redirect_url = auth.login()
    return RedirectResponse(url=redirect_url)


@router.post("/sso/acs")
async def sso_acs(request: Request, db: Session = Depends(get_db)):
    auth = saml.init_saml_auth(await _saml_request_data(request))
    auth.process_response()
    errors = auth.get_errors()
    if errors:
        logger.warning("SAML response rejected: %s", errors)
        raise HTTPException(status_code=400, detail={"saml_errors": errors})
    if not auth.is_authenticated():
        raise HTTPException(
            status_code=401,
            detail={"message": "SAML authentication failed", "redirect": LOGIN_ROUTE},
        )

    name_id = auth.get_nameid()
    email = saml.extract_email(auth.get_attributes(), name_id)
    if not email:
        raise HTTPException(status_code=400, detail="Email not found in SAML response")

    try:
        user = find_or_create_user(db, email, name_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store user record for %s", email)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable. Verify DATABASE_URL and database credentials.",
        ) from exc

    token = jwt_handler.create_access_token(subject=user.email)
    destination = landing_route(user.role)
    if destination == UNAUTHORIZED_ROUTE:
        logger.info("%s signed in without the %s role", user.email, config.REVIEWER_ROLE)

    if config.FRONTEND_SSO_REDIRECT_URL:
        parsed = urlparse(config.FRONTEND_SSO_REDIRECT_URL)
        query = dict(parse_qsl(parsed.query))
        query.update({"access_token": token, "token_type": "bearer", "next": destination})
        redirect_url = urlunparse(parsed._replace(query=urlencode(query)))
        return RedirectResponse(url=redirect_url, status_code=status.HTTP_302_FOUND)
    return {"access_token": token, "token_type": "bearer", "redirect": destination}


@router.get("/sso/metadata")
def sso_metadata():
    metadata, errors = saml.generate_sp_metadata()
    if errors:
        raise HTTPException(status_code=500, detail={"metadata_errors": errors})
    return Response(content=metadata, media_type="application/xml")


@router.get("/unauthorized")
def unauthorized(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
):
    """Best-effort diagnostics for a user who was turned away from the dashboard."""
    info = {
        "message": f"Only users with the \"{config.REVIEWER_ROLE}\" role can access the review dashboard.",
        "email": None,
        "role": None,
    }
    if credentials is None:
        return info

    try:
        session = get_review_session(credentials=credentials, db=db)
    except HTTPException as exc:
        logger.info("Unauthorized screen without a usable session: %s", exc.detail)
        return info

    info["email"] = session.email
    info["role"] = session.role or ROLE_NOT_FOUND
    return info


@router.get("/me")
def me(session: ReviewSession = Depends(get_review_session)):
    return {"email": session.email, "role": session.role}


@router.post("/logout")
def logout(
    session: ReviewSession = Depends(get_review_session),
    db: Session = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    try:
        # Tokens past expiry are already rejected by decode_access_token.
        db.query(RevokedSession).filter(
            RevokedSession.expires_at < now,
        ).delete(synchronize_session=False)
        db.add(
            RevokedSession(
                jti=session.session_id,
                email=session.email,
                revoked_at=now,
                expires_at=session.expires_at,
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to revoke session for %s", session.email)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable. Verify DATABASE_URL and database credentials.",
        ) from exc

    logger.info("%s signed out", session.email)
    return {"redirect": LOGIN_ROUTE}
