import os
import tempfile

TEST_DIR = tempfile.mkdtemp(prefix="rev-tests-")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(TEST_DIR, 'test.db')}"

# Settings are read at import time, so the environment is set before rev is imported
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["UPLOAD_DIR"] = os.path.join(TEST_DIR, "uploads")
os.environ["GOOGLE_GEMINI_API_KEY"] = ""
os.environ["SERVER_HOST"] = "http://testserver"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from rev import crud, models, schemas
from rev.core.security import create_access_token
from rev.db.base_class import Base
from rev.db.session import get_db, get_session_factory
from rev.main import app

API = "/api/v1"


@pytest.fixture
async def engine():
    """Fresh schema for every test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Session used by tests to set up data. Requests get their own sessions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Unauthenticated API client bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(db, email, full_name="Awa Diallo", password="secret123"):
    return await crud.user.create_user(
        db, user_in=schemas.UserCreate(email=email, full_name=full_name, password=password)
    )


def auth_headers_for(user: models.User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest.fixture
async def user(db):
    """Create and return the main test user."""
    return await _create_user(db, "awa@example.com")


@pytest.fixture
async def other_user(db):
    """A second account, used to check that data never leaks between users."""
    return await _create_user(db, "moussa@example.com", full_name="Moussa Traore")


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers_for(other_user)


@pytest.fixture
async def wave_user(db, user):
    """The main user with a Wave API key and a webhook secret."""
    user.wave_api_key = "wave_sn_prod_test_key"
    user.wave_webhook_secret = "wave_sn_WHS_test_secret"
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def sample_client(db, user):
    return await crud.client.create_client(
        db,
        client_in=schemas.ClientCreate(name="Orange Digital", email="compta@orange.example", phone="+221770000000"),
        user_id=user.id,
    )


@pytest.fixture
async def sample_project(db, user, sample_client):
    return await crud.project.create_project(
        db,
        project_in=schemas.ProjectCreate(name="Site vitrine", amount=500000, client_id=sample_client.id),
        user_id=user.id,
    )


@pytest.fixture
async def smtp_user(db, user):
    """The main user with a working SMTP account."""
    user.smtp_host = "smtp.example.com"
    user.smtp_port = 587
    user.smtp_user = "awa@example.com"
    user.smtp_password = "app-password"
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def wave_mock():
    """Stands in for the user's WaveClient on every endpoint that needs one."""
    from unittest.mock import MagicMock

    from rev.api import deps
    from rev.services.wave import WaveClient

    mock = MagicMock(spec=WaveClient)
    app.dependency_overrides[deps.get_wave_client] = lambda: mock
    yield mock
    app.dependency_overrides.pop(deps.get_wave_client, None)
