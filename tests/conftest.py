import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-that-is-long-enough-for-hs256')

from backend.auth import jwt_handler  # noqa: E402
from backend.auth.dependencies import ReviewSession  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.applicant import Applicant  # noqa: E402
from backend.models.revoked_session import RevokedSession  # noqa: E402
from backend.models.user import User  # noqa: E402


@pytest.fixture
def review_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [User.__table__, Applicant.__table__, RevokedSession.__table__]
    Base.metadata.create_all(bind=engine, tables=tables)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=tables)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.routes.dashboard_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def add_user(review_db):
    def _add_user(email: str, role: str = 'panelist') -> User:
        user = User(email=email, role=role, sso_provider='saml', sso_subject=email)
        review_db.add(user)
        review_db.commit()
        review_db.refresh(user)
        return user

    return _add_user


@pytest.fixture
def add_applicant(review_db):
    created = datetime(2026, 1, 5, 9, 0)

    def _add_applicant(
        name: str,
        dep: str = 'tech',
        shortlisted: bool | None = None,
        applicant_id: int | None = None,
        **fields,
    ) -> Applicant:
        nonlocal created
        created += timedelta(minutes=1)
        slug = name.lower().replace(' ', '.')
        applicant = Applicant(
            id=applicant_id,
            name=name,
            email=fields.pop('email', f'{slug}@example.edu'),
            contact=fields.pop('contact', '555-0100'),
            regno=fields.pop('regno', f'REG-{slug.upper()}'),
            dep=dep,
            shortlisted=shortlisted,
            created_at=fields.pop('created_at', created),
            formdata=fields.pop('formdata', {'questions': {}, 'common_questions': {}}),
        )
        review_db.add(applicant)
        review_db.commit()
        review_db.refresh(applicant)
        return applicant

    return _add_applicant


@pytest.fixture
def panelist_session() -> ReviewSession:
    return ReviewSession(
        user_id=1,
        email='reviewer@example.edu',
        role='panelist',
        session_id='test-session',
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


@pytest.fixture
def credentials_for():
    def _credentials_for(email: str, expires_minutes: int | None = None) -> HTTPAuthorizationCredentials:
        return bearer(jwt_handler.create_access_token(subject=email, expires_minutes=expires_minutes))

    return _credentials_for
