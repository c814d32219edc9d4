"""
Test configuration and fixtures for the House Hunt API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="house_hunt_uploads_"))

import io
import uuid
import pytest
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from house_hunt.main import app
from house_hunt.database import Base, get_db, register_sqlite_functions
from house_hunt.models.user import User, UserRole
from house_hunt.models.property import Property, OccupancyStatus
from house_hunt.repositories.user import UserRepository
from house_hunt.repositories.property import PropertyRepository
from house_hunt.services.auth import AuthService
from house_hunt.services.property import PropertyService
from house_hunt.services.admin import AdminService
from house_hunt.services.image import ImageService
from house_hunt.services.policies import Actor
from house_hunt.utils.auth import create_access_token
from house_hunt.utils.dependencies import get_image_service


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    register_sqlite_functions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
async def async_client(session_factory, upload_dir) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_service] = lambda: ImageService(upload_dir=upload_dir, url_prefix="/uploads")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession) -> PropertyService:
    return PropertyService(db_session)


@pytest.fixture
def admin_service(db_session: AsyncSession) -> AdminService:
    return AdminService(db_session)


@pytest.fixture
def image_service(upload_dir) -> ImageService:
    return ImageService(upload_dir=upload_dir, url_prefix="/uploads")


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        name: str = "Test User",
        role: UserRole = UserRole.OWNER,
        phone: Optional[str] = None
    ) -> dict:
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@househunt.io",
            "password": password,
            "name": name,
            "role": role,
            "phone": phone
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        name: str = "Test User",
        role: UserRole = UserRole.OWNER,
        phone: Optional[str] = None
    ) -> User:
        """Create a test user in the database."""
        user_data = UserFactory.create_user_data(
            email=email,
            password=password,
            name=name,
            role=role,
            phone=phone
        )
        return await user_repo.create_user(user_data)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        owner_id: uuid.UUID,
        title: str = "Test Property",
        description: str = "A bright and airy test property",
        address: str = "12 Test Street",
        city: str = "Pune",
        price: Decimal = Decimal("1000.00"),
        size: int = 800,
        bedrooms: int = 2,
        parking: bool = False,
        balcony: bool = False,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_published: bool = True,
        occupancy_status: OccupancyStatus = OccupancyStatus.AVAILABLE
    ) -> dict:
        return {
            "owner_id": owner_id,
            "title": title,
            "description": description,
            "address": address,
            "city": city,
            "price": price,
            "size": size,
            "bedrooms": bedrooms,
            "parking": parking,
            "balcony": balcony,
            "latitude": latitude,
            "longitude": longitude,
            "is_published": is_published,
            "occupancy_status": occupancy_status
        }

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner_id: uuid.UUID,
        amenities: List[str] = (),
        images: List[str] = (),
        **overrides
    ) -> Property:
        """Create a test property in the database."""
        property_data = PropertyFactory.create_property_data(owner_id=owner_id, **overrides)
        return await property_repo.create_property(property_data, amenities=amenities, images=images)


# Common test fixtures
@pytest.fixture
async def test_owner(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="owner@househunt.io", name="Olivia Owner")


@pytest.fixture
async def other_owner(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="other.owner@househunt.io", name="Oscar Owner")


@pytest.fixture
async def test_tenant(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="tenant@househunt.io", name="Tara Tenant", role=UserRole.TENANT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="admin@househunt.io", name="Adam Admin", role=UserRole.ADMIN
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_owner: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        owner_id=test_owner.id,
        title="Sunny flat near the park",
        price=Decimal("1500.00"),
        bedrooms=3,
        amenities=["wifi", "gym"]
    )


# Utility functions for tests
def actor_for(user: User) -> Actor:
    return Actor.from_user(user)


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header carrying a fresh access token for the user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def make_image_bytes(image_format: str = "PNG", size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 120, 40)).save(buffer, format=image_format)
    return buffer.getvalue()
