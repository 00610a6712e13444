from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


engine = create_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_applicant_schema_checked = False
_user_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_applicant_schema() -> None:
    global _applicant_schema_checked

    if _applicant_schema_checked:
        return

    with _schema_lock:
        if _applicant_schema_checked:
            return

        inspector = inspect(engine)

        if 'applicants' not in inspector.get_table_names():
            _applicant_schema_checked = True
            return

        # Rows come from an external form service, so older tables may lag behind.
        existing_columns = {column['name'] for column in inspector.get_columns('applicants')}
        migration_steps = [
            ('shortlisted', 'ALTER TABLE applicants ADD COLUMN shortlisted BOOLEAN'),
            ('formdata', 'ALTER TABLE applicants ADD COLUMN formdata JSON'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_applicants_dep_created ON applicants(dep, created_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_applicants_dep_shortlisted ON applicants(dep, shortlisted)')
            )

        _applicant_schema_checked = True


def ensure_user_schema() -> None:
    global _user_schema_checked

    if _user_schema_checked:
        return

    with _schema_lock:
        if _user_schema_checked:
            return

        inspector = inspect(engine)

        if 'users' not in inspector.get_table_names():
            _user_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('sso_provider', 'ALTER TABLE users ADD COLUMN sso_provider VARCHAR'),
            ('sso_subject', 'ALTER TABLE users ADD COLUMN sso_subject VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_sso_subject ON users(sso_subject)')
            )

        _user_schema_checked = True
