"""
Pytest configuration for tests.

Points the database and upload directory at a scratch location BEFORE any
bookhub module is imported, then hands each test its own SQLite file.
"""
import os
import tempfile

_scratch = tempfile.mkdtemp(prefix="bookhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_scratch, 'app.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_scratch, "uploads")
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from bookhub.config import settings
from bookhub.database import init_db, make_engine, make_session_factory
from bookhub.dependencies import get_service
from bookhub.locks import SubmissionLocks
from bookhub.main import app
from bookhub.schemas.caller import Caller, Role
from bookhub.services.moderation_service import ModerationService
from bookhub.services.submission_store import SubmissionStore
from bookhub.utils.file_handler import FileStorage

MODERATOR = Caller(id="mod-1", role=Role.MODERATOR)
OWNER = Caller(id="owner-1", role=Role.MEMBER)
MEMBER = Caller(id="member-1", role=Role.MEMBER)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'bookhub.db'}", echo=False)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def store(engine, file_storage):
    return SubmissionStore(
        session_factory=make_session_factory(engine),
        file_storage=file_storage,
        locks=SubmissionLocks(),
    )


@pytest.fixture
def service(store, file_storage):
    return ModerationService(store=store, file_storage=file_storage, read_retries=1)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(user_id: str, role: str = Role.MEMBER) -> str:
    return jwt.encode(
        {"sub": user_id, "role": role},
        settings.secret_key,
        algorithm=settings.algorithm,
    )


def auth_headers(user_id: str, role: str = Role.MEMBER) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def new_book(store, owner_id: str = OWNER.id, **overrides):
    fields = {
        "title": "Dune",
        "creator": "Herbert",
        "description": "Desert planet epic",
    }
    fields.update(overrides)
    return store.create(owner_id=owner_id, **fields)


def approved_book(store, **overrides):
    book = new_book(store, **overrides)
    return store.decide(book.id, "approve", Role.MODERATOR)
