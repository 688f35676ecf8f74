import os
import tempfile

# Settings are read at import time, so the environment is prepared first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATELIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="clearcity-uploads-"))

import pytest
from fastapi.testclient import TestClient

import clearcity.models  # noqa: F401
from clearcity.db.base import Base
from clearcity.db.session import engine, SessionLocal
from clearcity.main import app
from clearcity.schemas.classification import Classification
from clearcity.services.admin import promote
from clearcity.services.classifier import get_classifier
from clearcity.services.storage import ImageStorage, get_storage

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeClassifier:
    def __init__(self, result: Classification | None = None):
        self.result = result or Classification(
            is_waste=True,
            waste_type="glass",
            confidence=0.71,
            all_predictions=[
                {"class": "glass", "confidence": 0.71},
                {"class": "plastic", "confidence": 0.42},
            ],
        )
        self.calls = []

    def classify(self, data: bytes) -> Classification:
        self.calls.append(data)
        return self.result


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def image_file(name="dump.png", data=PNG, content_type="image/png"):
    return {"image": (name, data, content_type)}


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(tmp_path / "uploads", 10 * 1024 * 1024)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def client(storage, classifier):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_classifier] = lambda: classifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(name="Ana Pop", email="ana@example.com", password="secret123", **extra):
        r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password, **extra})
        assert r.status_code == 201, r.text
        return r.json()
    return _register


@pytest.fixture
def admin(register, db):
    data = register(name="Root Admin", email="admin@example.com")
    promote(db, "admin@example.com")
    return data


@pytest.fixture
def submit(client):
    def _submit(token, files=None, **fields):
        form = {"latitude": "44.4268", "longitude": "26.1025", "description": "Bags dumped by the river"}
        form.update(fields)
        form = {k: v for k, v in form.items() if v is not None}
        return client.post("/api/reports", data=form, files=files, headers=auth_header(token))
    return _submit
