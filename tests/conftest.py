"""Shared fixtures: in-memory SQLite, patched Redis, dev identity, temp blob storage."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789")
os.environ.setdefault("APP_ENV", "test")

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.document import Document
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.services.auth.jwt import create_access_token
from app.storage.local import LocalStorage

ADMIN_EMAIL = "admin@library.test"
USER_EMAIL = "reader@library.test"
OTHER_EMAIL = "other@library.test"


@pytest.fixture(autouse=True)
def fake_redis():
    """Every redis.Redis.from_url() returns this mock; incr() == 1 keeps rate limits open."""
    client = MagicMock()
    client.incr.return_value = 1
    client.get.return_value = None
    with patch("redis.Redis.from_url", return_value=client):
        yield client


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path / "blobs"))


@pytest.fixture
def make_document(db):
    def _make(price="0", title="Physics Class 10", category="Maharashtra", blob_ref="sample.pdf"):
        document = Document(
            title=title,
            author="Unknown",
            price=Decimal(price),
            category=category,
            blob_ref=blob_ref,
            file_name=blob_ref,
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    return _make


@pytest.fixture
def users(db):
    db.add_all([
        User(email=ADMIN_EMAIL, display_name="Admin", role=ROLE_ADMIN),
        User(email=USER_EMAIL, display_name="Reader", role=ROLE_USER),
        User(email=OTHER_EMAIL, display_name="Other", role=ROLE_USER),
    ])
    db.commit()


def auth_headers(email: str, role: str = ROLE_USER, name: str | None = None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(email, name, role)}"}


@pytest.fixture
def admin_headers(users):
    return auth_headers(ADMIN_EMAIL, ROLE_ADMIN, "Admin")


@pytest.fixture
def user_headers(users):
    return auth_headers(USER_EMAIL, ROLE_USER, "Reader")


@pytest.fixture
def other_headers(users):
    return auth_headers(OTHER_EMAIL, ROLE_USER, "Other")


@pytest.fixture
def client(db, storage):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.services.identity.provider import DevIdentityProvider, get_identity_provider
    from app.storage.local import get_storage

    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_identity_provider] = lambda: DevIdentityProvider()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
