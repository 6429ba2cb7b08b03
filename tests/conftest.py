"""
Test configuration and fixtures for the Storefront Directory.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so point them at test resources first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="storefront-uploads-"))

import io
import uuid
import pytest
from typing import AsyncGenerator, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport
from PIL import Image

from storefront.main import app
from storefront.database import Base, get_db
from storefront.models.user import User
from storefront.models.store import Store
from storefront.models.review import Review
from storefront.repositories.user import UserRepository
from storefront.repositories.store import StoreRepository
from storefront.repositories.review import ReviewRepository
from storefront.services.auth import AuthService
from storefront.services.store import StoreService
from storefront.services.review import ReviewService
from storefront.services.mail import MailService
from storefront.services.photo import PhotoService
from storefront.utils.auth import create_access_token
from storefront.utils.dependencies import get_mail_service, get_photo_service


# Test database configuration
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


class RecordingMailService(MailService):
    """Mail double that keeps messages instead of talking to SMTP."""

    def __init__(self):
        super().__init__(host=None, port=0)
        self.sent: List[Dict[str, str]] = []

    async def send(self, to: str, subject: str, html_content: str, text_content: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html_content, "text": text_content})
        return True


@pytest.fixture
async def test_engine():
    """Fresh database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def mail_service() -> RecordingMailService:
    return RecordingMailService()


@pytest.fixture
def upload_dir(tmp_path) -> str:
    path = tmp_path / "uploads"
    path.mkdir()
    return str(path)


@pytest.fixture
def photo_service(upload_dir: str) -> PhotoService:
    return PhotoService(upload_dir=upload_dir)


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    mail_service: RecordingMailService,
    photo_service: PhotoService
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database, mail and photo overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_service] = lambda: mail_service
    app.dependency_overrides[get_photo_service] = lambda: photo_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def store_repository(db_session: AsyncSession) -> StoreRepository:
    return StoreRepository(db_session)


@pytest.fixture
def review_repository(db_session: AsyncSession) -> ReviewRepository:
    return ReviewRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession, mail_service: RecordingMailService) -> AuthService:
    return AuthService(db_session, mail_service=mail_service)


@pytest.fixture
def store_service(db_session: AsyncSession) -> StoreService:
    return StoreService(db_session)


@pytest.fixture
def review_service(db_session: AsyncSession) -> ReviewService:
    return ReviewService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test User"
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test User"
    ) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(
            UserFactory.create_user_data(email=email, password=password, name=name)
        )


class StoreFactory:
    """Factory for creating test stores."""

    @staticmethod
    def create_store_data(
        author_id: uuid.UUID,
        name: str = "Coffee Shop",
        description: str = "Fresh coffee and pastries",
        address: str = "1 Main Street",
        latitude: float = 43.6532,
        longitude: float = -79.3832,
        photo: Optional[str] = None
    ) -> dict:
        return {
            "name": name,
            "description": description,
            "address": address,
            "latitude": latitude,
            "longitude": longitude,
            "photo": photo,
            "author_id": author_id
        }

    @staticmethod
    async def create_store(
        store_repo: StoreRepository,
        author_id: uuid.UUID,
        tags: Tuple[str, ...] = (),
        **kwargs
    ) -> Store:
        """Create a test store in the database."""
        return await store_repo.create_store(
            StoreFactory.create_store_data(author_id, **kwargs),
            tags=tags
        )


class ReviewFactory:
    """Factory for creating test reviews."""

    @staticmethod
    async def create_review(
        review_repo: ReviewRepository,
        author_id: uuid.UUID,
        store_id: uuid.UUID,
        rating: int = 4,
        content: str = "Nice place"
    ) -> Review:
        return await review_repo.create_review(
            {"author_id": author_id, "store_id": store_id, "rating": rating, "content": content}
        )


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for ``user``."""
    token = create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


def make_image(width: int = 1600, height: int = 1200, image_format: str = "PNG") -> bytes:
    """In-memory test image."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="owner@example.com", name="Owner")


@pytest.fixture
async def other_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="other@example.com", name="Other")


@pytest.fixture
async def test_store(store_repository: StoreRepository, test_user: User) -> Store:
    return await StoreFactory.create_store(store_repository, test_user.id, tags=("Wifi", "Open Late"))
