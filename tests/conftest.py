import os
import tempfile

# Settings are read at import time; keep the import-time app away from the
# working directory and the real vision API.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="klutterbox-uploads-")
os.environ["OPENAI_API_KEY"] = ""

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from klutterbox.config import settings
from klutterbox.database import build_engine, get_db
from klutterbox.main import create_app, init_db
from klutterbox.services.vision import VisionClient, get_vision_client


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = factory()
    try:
        init_db(session)
    finally:
        session.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", path)
    return path


@pytest.fixture
def vision_client():
    """Disabled by default; tests swap in one backed by httpx.MockTransport."""
    return VisionClient(api_key=None)


@pytest.fixture
def make_client(session_factory, upload_dir, vision_client):
    """Build a client from the settings as they are when called."""

    def build():
        app = create_app()

        def override_get_db():
            session = session_factory()
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_vision_client] = lambda: vision_client
        return TestClient(app)

    return build


@pytest.fixture
def client(make_client):
    return make_client()
