"""
Shared fixtures: in-memory SQLite database, FastAPI test client with the
database dependency overridden, and mocked AWS clients.
"""

import os

# Settings are read at import time; keep tests away from real services.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AWS_ACCESS_KEY_ID"] = "AKIATEST"
os.environ["AWS_SECRET_ACCESS_KEY"] = "secret"
os.environ["S3_BUCKET_NAME"] = "test-bucket"
os.environ["CLOUDFRONT_DOMAIN"] = ""
os.environ["MEDIACONVERT_ROLE_ARN"] = ""
os.environ["MEDIACONVERT_ENDPOINT"] = ""
os.environ["MUX_TOKEN_ID"] = ""
os.environ["MUX_TOKEN_SECRET"] = ""
os.environ["MUX_WEBHOOK_SECRET"] = ""
os.environ["FFMPEG_BINARY"] = "ffmpeg-not-installed-for-tests"

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lawrepo.core.config import settings
from lawrepo.db.base import Base
from lawrepo.db.init_db import seed_roles
from lawrepo.db.session import get_db
from lawrepo.main import app
from lawrepo.models.user import Role
from lawrepo.services import mediaconvert_client, storage_service
from lawrepo.services.mux_client import MuxClient
from tests.utils import make_mux_client, make_user, make_video

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a test database session."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fresh_clients():
    storage_service.reset_clients()
    mediaconvert_client.reset_clients()
    yield
    storage_service.reset_clients()
    mediaconvert_client.reset_clients()


@pytest.fixture
def s3_client():
    """Mocked boto3 S3 client returned by storage_service.get_s3_client()."""
    s3 = MagicMock()
    s3.generate_presigned_url.return_value = "https://test-bucket.s3.amazonaws.com/signed"
    s3.put_object.return_value = {"ETag": '"etag-1"'}
    s3.create_multipart_upload.return_value = {"UploadId": "upload-123"}
    s3.complete_multipart_upload.return_value = {
        "Location": "https://test-bucket.s3.amazonaws.com/videos/x.mp4"
    }
    with patch.object(storage_service, "get_s3_client", return_value=s3):
        yield s3


@pytest.fixture
def mux_api(monkeypatch):
    """
    Configure Mux credentials and answer every MuxClient.from_settings() call
    with a client on httpx.MockTransport. Call the fixture with a handler.
    """
    monkeypatch.setattr(settings, "MUX_TOKEN_ID", "token-id")
    monkeypatch.setattr(settings, "MUX_TOKEN_SECRET", "token-secret")

    def install(handler):
        monkeypatch.setattr(MuxClient, "from_settings", classmethod(lambda cls: make_mux_client(handler)))

    return install


@pytest.fixture(autouse=True)
def fake_queue():
    with patch(
        "lawrepo.services.upload_service.enqueue_thumbnail_task", return_value="job-1"
    ) as enqueue:
        yield enqueue


@pytest.fixture
def roles(db_session):
    seed_roles(db_session)
    db_session.commit()
    return {r.name: r for r in db_session.query(Role).all()}

@pytest.fixture
def admin(db_session, roles):
    return make_user(db_session, "admin@law.edu", name="Admin", role_names=["admin"])


@pytest.fixture
def faculty(db_session, roles):
    return make_user(db_session, "prof@law.edu", name="Professor Kingsfield", role_names=["faculty"])


@pytest.fixture
def student(db_session, roles):
    return make_user(db_session, "student@law.edu", name="Student", role_names=["student"])

@pytest.fixture
def video(db_session):
    return make_video(db_session)
