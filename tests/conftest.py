import os

# Must be set before the app modules read their configuration
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-256-bits-long")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import User, Movie, Role  # noqa: E402
from app.utils.cache import CacheStore, get_cache  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Password123!"
# bcrypt is slow on purpose; hash the shared password once
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_server():
    """In-process Redis replacement shared by the cache fixtures."""
    server = fakeredis.FakeServer()
    yield server


@pytest.fixture
def cache(redis_server):
    return CacheStore(fakeredis.FakeRedis(server=redis_server), prefix="test_")


@pytest.fixture
def client(db_session, cache):
    """FastAPI test client with the database and cache dependencies overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_cache, None)


def create_user(session, username="alice", role=Role.USER, password_hash=DEFAULT_PASSWORD_HASH):
    user = User(username=username, password_hash=password_hash, role=role.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_movie(session, title="Inception", genre="Sci-Fi", year=2010, rating=8.8,
                 is_public=True, is_top_rated=False, owner=None):
    movie = Movie(
        title=title,
        genre=genre,
        year=year,
        rating=rating,
        is_public=is_public,
        is_top_rated=is_top_rated,
        user_id=owner.id if owner else None,
    )
    session.add(movie)
    session.commit()
    session.refresh(movie)
    return movie


def headers_for(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def alice(db_session):
    return create_user(db_session, "alice")


@pytest.fixture
def bob(db_session):
    return create_user(db_session, "bob")


@pytest.fixture
def admin(db_session):
    return create_user(db_session, "admin", role=Role.ADMIN)


@pytest.fixture
def alice_headers(alice):
    return headers_for(alice)


@pytest.fixture
def bob_headers(bob):
    return headers_for(bob)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)
