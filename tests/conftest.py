"""
Shared fixtures.

Environment is pinned before any application module is imported, because
settings objects are built at import time.
"""

import os

os.environ["WIKICOMMENT_DATABASE_URL"] = "sqlite://"
os.environ.pop("WIKICOMMENT_TELEGRAM_BOT_TOKEN", None)
os.environ.pop("WIKICOMMENT_TELEGRAM_CHAT_ID", None)
os.environ["API_JWT_SECRET"] = "test-jwt-secret"
os.environ["API_ADMINISTRATOR_SECRET"] = "test-admin-secret"
os.environ["API_GITHUB_CLIENT_ID"] = "test-client-id"
os.environ["API_GITHUB_CLIENT_SECRET"] = "test-client-secret"

from urllib.parse import quote  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from api.auth import sign_token  # noqa: E402
from api.deps import get_notifier, get_session_factory  # noqa: E402
from api.main import app  # noqa: E402
from wikicomment_core.commit_hash import CommitHashGuard  # noqa: E402
from wikicomment_core.db import models  # noqa: E402,F401
from wikicomment_core.db.base import Base  # noqa: E402
from wikicomment_core.db.session import make_engine  # noqa: E402
from wikicomment_core.identity import Identity  # noqa: E402

COMMIT_HASH = "3f2a9c1e"
ADMIN_HEADERS = {"Authorization": "Bearer test-admin-secret"}
ALICE = Identity(provider="github", subject_id="1001", name="Alice")
BOB = Identity(provider="github", subject_id="1002", name="Bob")


def auth_headers(identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {sign_token(identity)}"}


def comment_url(path: str, comment_id: int | str | None = None) -> str:
    url = "/comment/" + quote(path, safe="")
    if comment_id is not None:
        url += f"/id/{comment_id}"
    return url


class RecordingNotifier:
    def __init__(self) -> None:
        self.events = []

    def notify(self, event) -> None:
        self.events.append(event)


@pytest.fixture()
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'comments.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture()
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def commit_hash(session):
    CommitHashGuard(session).set(COMMIT_HASH)
    return COMMIT_HASH


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def client(session_factory, notifier):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def post_comment(client, commit_hash):
    def _post(path: str, start: int, end: int, body: str = "Nice explanation", identity: Identity = ALICE):
        resp = client.post(
            comment_url(path),
            json={"offset": {"start": start, "end": end}, "comment": body, "commit_hash": commit_hash},
            headers=auth_headers(identity),
        )
        assert resp.status_code == 200, resp.text
        return resp

    return _post
