# Shared pytest configuration and fixtures for all test types
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from common.db.base import Base
from packages.entitlements.models.database import (  # noqa: F401
    FeatureEntity,
    InvoiceEntity,
    InvoiceFeatureEntity,
    PaymentEntity,
)
from packages.entitlements.models.domain.enums import FeatureKind
from packages.entitlements.models.domain.feature import FeatureCreateModel
from packages.entitlements.models.domain.invoice import InvoiceCreateModel
from packages.entitlements.services.feature_catalog_service import (
    FeatureCatalogService,
)
from packages.entitlements.services.invoice_service import InvoiceService
from packages.organizations.models.database.organization import OrganizationEntity
from packages.organizations.services.organization_service import OrganizationService

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed clock used across ledger tests
NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so every transaction()
    opened by the code under test commits or rolls back a savepoint.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch session factories to use test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest.fixture
def now():
    return NOW


@pytest_asyncio.fixture(scope="function")
async def sample_organization(test_db: AsyncSession):
    """Create a sample organization for testing."""
    organization = OrganizationEntity(name="Test Bike Shop", paid_feature_slugs=[])
    test_db.add(organization)
    await test_db.commit()
    await test_db.refresh(organization)
    return organization


@pytest_asyncio.fixture(scope="function")
async def second_organization(test_db: AsyncSession):
    organization = OrganizationEntity(name="Second Bike Shop", paid_feature_slugs=[])
    test_db.add(organization)
    await test_db.commit()
    await test_db.refresh(organization)
    return organization


@pytest.fixture
def feature_service():
    return FeatureCatalogService()


@pytest.fixture
def invoice_service():
    return InvoiceService()


@pytest.fixture
def organization_service():
    return OrganizationService()


@pytest_asyncio.fixture(scope="function")
async def standard_feature(feature_service):
    """Recurring feature granting csv exports and messages, 6000 cents."""
    return await feature_service.register_feature(
        FeatureCreateModel(
            name="Standard Package",
            amount_cents=6000,
            kind=FeatureKind.STANDARD,
            feature_slugs=["csv_exports", "messages"],
        )
    )


@pytest_asyncio.fixture(scope="function")
async def custom_feature(feature_service):
    """Recurring feature granting bike codes, 4000 cents."""
    return await feature_service.register_feature(
        FeatureCreateModel(
            name="Bike Codes",
            amount_cents=4000,
            kind=FeatureKind.CUSTOM,
            feature_slugs=["bike_codes"],
        )
    )


@pytest_asyncio.fixture(scope="function")
async def one_time_feature(feature_service):
    """One-time setup fee with no slugs, 2500 cents."""
    return await feature_service.register_feature(
        FeatureCreateModel(
            name="Setup Fee",
            amount_cents=2500,
            kind=FeatureKind.STANDARD_ONE_TIME,
        )
    )


@pytest_asyncio.fixture(scope="function")
async def sample_invoice(invoice_service, sample_organization, now):
    """Unpaid invoice started a month before NOW, 8000 cents due."""
    return await invoice_service.create_invoice(
        InvoiceCreateModel(
            organization_id=sample_organization.id,
            subscription_start_at=datetime(2026, 5, 15, tzinfo=timezone.utc),
            amount_due_cents=8000,
        ),
        now=now,
    )
