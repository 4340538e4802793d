"""
Pytest Configuration and Fixtures

Provides reusable async fixtures for testing the Coursehall Backend.
"""

import base64
import os
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coursehall.core.config import Settings
from coursehall.core.database import Base, get_db
from coursehall.core.security import create_access_token
from coursehall.models import (
    Chapter,
    Course,
    Enrollment,
    Lesson,
    LessonType,
    MuxStatus,
    User,
    UserRole,
)
from coursehall.services.live_updates import LessonUpdateBroadcaster
from coursehall.services.mux_service import MuxService, MuxUpload, get_mux_service
from coursehall.services.storage_service import StorageService, get_storage_service


# ==================== Settings Fixtures ====================

def make_settings(**overrides) -> Settings:
    """Settings that ignore the local .env file."""
    values = {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "SECRET_KEY": "test-secret-key",
        "MUX_TOKEN_ID": "mux-token-id",
        "MUX_TOKEN_SECRET": "mux-token-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    """Build test settings with overrides."""
    return make_settings


@pytest.fixture(scope="session")
def signing_key_b64() -> str:
    """Base64-encoded PEM private key, the format Mux hands out."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(pem).decode("ascii")


@pytest.fixture
def mux_settings() -> Settings:
    """Mux API credentials only, no signing key."""
    return make_settings()


@pytest.fixture
def signing_settings(signing_key_b64) -> Settings:
    """Mux API credentials plus a signing key."""
    return make_settings(
        MUX_SIGNING_KEY_ID="signing-key-id",
        MUX_SIGNING_PRIVATE_KEY=signing_key_b64,
    )


# ==================== Provider Fixtures ====================

@pytest.fixture
def mux(signing_settings) -> MuxService:
    """
    Mux client with real signing and mocked network calls.

    ``create_upload`` returns a fixed upload; ``delete_asset`` succeeds.
    """
    service = MuxService(signing_settings)
    service.create_upload = AsyncMock(
        return_value=MuxUpload(upload_id="upload-new", upload_url="https://storage.mux.test/upload-new")
    )
    service.delete_asset = AsyncMock(return_value=True)
    return service


@pytest.fixture
def storage() -> StorageService:
    """Unconfigured storage: attachment URLs are served as stored."""
    return StorageService(make_settings())


@pytest.fixture
def publisher() -> MagicMock:
    """Broadcaster stand-in that records published events."""
    return MagicMock(spec=LessonUpdateBroadcaster)


# ==================== Database Fixtures ====================

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Session on a fresh in-memory SQLite database.

    Every test gets its own schema.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def seed(db_session: AsyncSession) -> SimpleNamespace:
    """
    One course with a chapter and lessons of every kind.

    - student: enrolled in the course
    - outsider: not enrolled
    - admin: not enrolled, admin role
    - video: ready video lesson (limit 2)
    - free_video: ready free lesson
    - processing: pending video lesson with an upload in flight
    - pdf: pdf lesson with one attachment
    """
    student = User(email="student@example.com", full_name="Student", phone="+15550100", role=UserRole.STUDENT)
    outsider = User(email="outsider@example.com", full_name="Outsider", role=UserRole.STUDENT)
    admin = User(email="admin@example.com", full_name="Admin", role=UserRole.ADMIN)
    course = Course(title="Physics 101", slug="physics-101")
    db_session.add_all([student, outsider, admin, course])
    await db_session.flush()

    chapter = Chapter(course_id=course.id, title="Mechanics", sort_order=1)
    db_session.add(chapter)
    await db_session.flush()

    video = Lesson(
        chapter_id=chapter.id,
        title="Newton's Laws",
        type=LessonType.VIDEO,
        mux_asset_id="asset-1",
        mux_playback_id="playback-1",
        mux_status=MuxStatus.READY,
        duration=600,
        view_limit=2,
        sort_order=1,
    )
    free_video = Lesson(
        chapter_id=chapter.id,
        title="Course Introduction",
        type=LessonType.VIDEO,
        mux_asset_id="asset-free",
        mux_playback_id="playback-free",
        mux_status=MuxStatus.READY,
        is_free=True,
        sort_order=2,
    )
    processing = Lesson(
        chapter_id=chapter.id,
        title="Momentum",
        type=LessonType.VIDEO,
        mux_upload_id="upload-1",
        mux_status=MuxStatus.PENDING,
        sort_order=3,
    )
    pdf = Lesson(
        chapter_id=chapter.id,
        title="Formula Sheet",
        type=LessonType.PDF,
        mux_status=MuxStatus.READY,
        sort_order=4,
        attachments=[
            {"url": "https://files.example.com/sheets/formulas.pdf", "name": "formulas.pdf", "type": "pdf"},
        ],
    )
    db_session.add_all([video, free_video, processing, pdf])
    db_session.add(Enrollment(user_id=student.id, course_id=course.id))
    await db_session.commit()

    return SimpleNamespace(
        student=student,
        outsider=outsider,
        admin=admin,
        course=course,
        chapter=chapter,
        video=video,
        free_video=free_video,
        processing=processing,
        pdf=pdf,
    )


# ==================== API Fixtures ====================

@pytest.fixture
def auth_headers():
    """Bearer header factory for a user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers


@pytest_asyncio.fixture
async def client(db_session, mux, storage) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    HTTP client bound to the app with the test session and providers.
    """
    from coursehall.main import app

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mux_service] = lambda: mux
    app.dependency_overrides[get_storage_service] = lambda: storage

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
