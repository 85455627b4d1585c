from __future__ import annotations

from dataclasses import replace

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import adminauth.models  # noqa: F401
from adminauth.core.config import AuthSettings
from adminauth.core.database import Base, get_db
from adminauth.deps import get_mail_service, get_settings
from adminauth.mail.mock_provider import MockMailProvider
from adminauth.mail.service import MailService
from adminauth.routers.auth import router as auth_router
from adminauth.services.auth_service import AuthService
from tests.fixtures_data import TEST_JWT_SECRET, TEST_RESET_URL

TEST_SETTINGS = AuthSettings(
    jwt_secret=TEST_JWT_SECRET,
    bcrypt_rounds=4,
    reset_password_url=TEST_RESET_URL,
)


def build_settings(**overrides) -> AuthSettings:
    return replace(TEST_SETTINGS, **overrides)


def build_session() -> Session:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return TestingSessionLocal()


def build_service(db: Session, settings: AuthSettings | None = None, provider=None, clock=None):
    provider = provider or MockMailProvider()
    kwargs = {"clock": clock} if clock is not None else {}
    service = AuthService(db, settings or TEST_SETTINGS, MailService(provider=provider), **kwargs)
    return service, provider


def build_client(db: Session, settings: AuthSettings | None = None, provider=None):
    provider = provider or MockMailProvider()
    app = FastAPI()
    app.include_router(auth_router)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings or TEST_SETTINGS
    app.dependency_overrides[get_mail_service] = lambda: MailService(provider=provider)
    return TestClient(app), provider
