import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.logging import configure_logging
from backend.database import Base, engine, ensure_applicant_schema, ensure_user_schema
from backend.models import applicant, revoked_session, user  # noqa: F401
from backend.routes import auth_routes, dashboard_routes

configure_logging()
config.validate_runtime_config()

app = FastAPI(title='Recruitment Review API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
        ensure_applicant_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Recruitment Review API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(dashboard_routes.router, prefix='/dashboard')
