# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from devhub.db.session import Base  # noqa: E402
from devhub.db.session import get_db as app_get_session  # noqa: E402
from devhub.main import app as fastapi_app  # noqa: E402
from devhub.models import Community, CommunityPost, Profile, Project, Snippet  # noqa: E402
from devhub.services import communities  # noqa: E402
from devhub.services.auth_context import AuthContext  # noqa: E402
from devhub.services.view_cache import get_view_cache  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse-battery"

_USER_COUNTER = count(1)


@dataclass
class TestUser:
    __test__ = False

    profile: Profile
    token: str

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit their own transactions, so wipe every table between tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(autouse=True)
def clear_view_cache() -> Iterator[None]:
    get_view_cache().clear()
    yield
    get_view_cache().clear()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_context() -> Iterator[AuthContext]:
    context = AuthContext()
    yield context
    context.close()


@pytest.fixture()
def make_user(db_session: Session, auth_context: AuthContext) -> Callable[..., TestUser]:
    """Register a user through the auth context and return it with a live token."""

    def _make(username: str | None = None, **profile_fields: object) -> TestUser:
        n = next(_USER_COUNTER)
        username = username or f"dev{n}"
        result = auth_context.sign_up(
            db_session,
            f"{username}@example.com",
            TEST_PASSWORD,
            username=username,
            full_name=profile_fields.pop("full_name", None),
        )
        profile = db_session.get(Profile, result.user_id)
        assert profile is not None
        for key, value in profile_fields.items():
            setattr(profile, key, value)
        db_session.commit()
        return TestUser(profile=profile, token=result.access_token)

    return _make


@pytest.fixture()
def test_user(make_user: Callable[..., TestUser]) -> TestUser:
    """Return the primary test user."""
    return make_user("alice", full_name="Alice Example")


@pytest.fixture()
def other_user(make_user: Callable[..., TestUser]) -> TestUser:
    """Return a secondary test user."""
    return make_user("bob", full_name="Bob Example")


@pytest.fixture()
def third_user(make_user: Callable[..., TestUser]) -> TestUser:
    return make_user("carol")


@pytest.fixture()
def test_project(db_session: Session, test_user: TestUser) -> Project:
    """Create a project authored by the primary test user."""
    project = Project(
        user_id=test_user.id,
        title="Graph toolkit",
        description="Utilities for social graphs",
        technologies=["python", "sqlalchemy"],
    )
    db_session.add(project)
    db_session.commit()
    return project


@pytest.fixture()
def test_snippet(db_session: Session, test_user: TestUser) -> Snippet:
    """Create a snippet authored by the primary test user."""
    snippet = Snippet(
        user_id=test_user.id,
        title="Clamp",
        code="def clamp(v):\n    return max(0, v)\n",
        language="python",
        tags=["util"],
    )
    db_session.add(snippet)
    db_session.commit()
    return snippet


@pytest.fixture()
def test_community(db_session: Session, test_user: TestUser) -> Community:
    """Create a community owned by the primary test user."""
    return communities.create_community(
        db_session, test_user.id, "Pythonistas", "All things Python", topics=["python"]
    )


@pytest.fixture()
def test_post(db_session: Session, test_user: TestUser, test_community: Community) -> CommunityPost:
    """Create a post by the community owner."""
    return communities.create_post(
        db_session, test_user.id, test_community.id, "Welcome", "Say hello below."
    )
