import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import adminauth.models  # registers every model on Base.metadata
from adminauth.core.config import CORS_ORIGINS, DATABASE_URL, IS_DEV, load_auth_settings
from adminauth.core.database import Base, SessionLocal, engine
from adminauth.core.errors import LimitError
from adminauth.core.logging_setup import configure_logging
from adminauth.core.startup_checks import (
    ensure_auth_tables_exist,
    ensure_migrations_applied,
    validate_database_environment,
)
from adminauth.middleware.observability import ObservabilityMiddleware
from adminauth.routers.auth import router as auth_router
from adminauth.services.admin_store import AdminCredentialStore

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Admin Auth API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(_: Request, exc: RequestValidationError):
    # Malformed bodies are client errors like any other missing field.
    fields = [".".join(str(part) for part in error.get("loc", ())[1:]) for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "message": "Malformed request body.",
                "code": "validation_error",
                "fields": [field for field in fields if field],
            }
        },
    )


def _bootstrap_initial_admin() -> None:
    email = os.getenv("DEV_ADMIN_EMAIL", "").strip()
    password = os.getenv("DEV_ADMIN_PASSWORD", "").strip()
    if not email or not password:
        logger.info("%s skipped: configure DEV_ADMIN_EMAIL and DEV_ADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return

    settings = load_auth_settings()
    db = SessionLocal()
    try:
        store = AdminCredentialStore(
            db,
            max_admins=settings.max_admin_accounts,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
        existing = store.find_by_email(email)
        if existing:
            logger.info("%s exists id=%s email=%s", BOOTSTRAP_PREFIX, existing.id, existing.email)
            return
        try:
            admin = store.create(email, password)
        except LimitError:
            logger.warning("%s skipped: admin ceiling already reached", BOOTSTRAP_PREFIX)
            return
        logger.info("%s created id=%s email=%s", BOOTSTRAP_PREFIX, admin.id, admin.email)
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        load_auth_settings()
        if DATABASE_URL.startswith("sqlite") and IS_DEV:
            # Dev SQLite databases are created directly; everything else goes through Alembic.
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_auth_tables_exist(engine)
        if IS_DEV:
            _bootstrap_initial_admin()
    except Exception:
        logger.exception("%s ERROR startup failed", BOOTSTRAP_PREFIX)
        raise


app.include_router(auth_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
