"""
Unit tests for InvoiceFeatureRepository.

Tests join-row counting without mocking the database.
"""

import pytest
import pytest_asyncio

from packages.entitlements.models.database.feature import FeatureEntity
from packages.entitlements.models.database.invoice import InvoiceEntity
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.utils.feature_quantities import FeatureQuantityPlan


@pytest_asyncio.fixture
async def invoice_row(test_db, sample_organization):
    invoice = InvoiceEntity(organization_id=sample_organization.id, currency="USD")
    test_db.add(invoice)
    await test_db.flush()
    return invoice


@pytest_asyncio.fixture
async def feature_rows(test_db):
    features = [
        FeatureEntity(name="A", amount_cents=1000, feature_slugs=["messages"]),
        FeatureEntity(name="B", amount_cents=2500, feature_slugs=["bike_codes"]),
        FeatureEntity(
            name="C", amount_cents=400, feature_slugs=["messages", "csv_exports"]
        ),
    ]
    test_db.add_all(features)
    await test_db.flush()
    return features


@pytest.mark.asyncio
class TestInvoiceFeatureRepository:
    """Tests for InvoiceFeatureRepository."""

    async def test_add_and_list_with_repeats(self, test_db, invoice_row, feature_rows):
        """The same feature can appear several times on one invoice."""
        repo = InvoiceFeatureRepository(test_db)
        a, b, _ = feature_rows

        await repo.add_rows(invoice_row.id, a.id, 3)
        await repo.add_rows(invoice_row.id, b.id, 1)

        ids = await repo.list_feature_ids(invoice_row.id)
        assert sorted(ids) == sorted([a.id, a.id, a.id, b.id])

    async def test_remove_rows_caps_at_existing(self, test_db, invoice_row, feature_rows):
        repo = InvoiceFeatureRepository(test_db)
        a = feature_rows[0]
        await repo.add_rows(invoice_row.id, a.id, 2)

        assert await repo.remove_rows(invoice_row.id, a.id, 1) == 1
        assert await repo.list_feature_ids(invoice_row.id) == [a.id]
        assert await repo.remove_rows(invoice_row.id, a.id, 5) == 1
        assert await repo.list_feature_ids(invoice_row.id) == []
        assert await repo.remove_rows(invoice_row.id, a.id, 1) == 0

    async def test_apply_plan(self, test_db, invoice_row, feature_rows):
        repo = InvoiceFeatureRepository(test_db)
        a, b, c = feature_rows
        await repo.add_rows(invoice_row.id, a.id, 1)
        await repo.add_rows(invoice_row.id, c.id, 2)

        await repo.apply_plan(
            invoice_row.id,
            FeatureQuantityPlan(additions={a.id: 2, b.id: 1}, removals={c.id: 2}),
        )

        ids = await repo.list_feature_ids(invoice_row.id)
        assert sorted(ids) == sorted([a.id, a.id, a.id, b.id])

    async def test_feature_cost_counts_every_row(
        self, test_db, invoice_row, feature_rows
    ):
        repo = InvoiceFeatureRepository(test_db)
        a, b, _ = feature_rows
        await repo.add_rows(invoice_row.id, a.id, 2)
        await repo.add_rows(invoice_row.id, b.id, 1)

        assert await repo.feature_cost_cents(invoice_row.id) == 4500

    async def test_feature_cost_of_empty_invoice(self, test_db, invoice_row):
        repo = InvoiceFeatureRepository(test_db)
        assert await repo.feature_cost_cents(invoice_row.id) == 0

    async def test_feature_slugs_union(self, test_db, invoice_row, feature_rows):
        repo = InvoiceFeatureRepository(test_db)
        a, b, c = feature_rows
        await repo.add_rows(invoice_row.id, a.id, 2)
        await repo.add_rows(invoice_row.id, c.id, 1)
        await repo.add_rows(invoice_row.id, b.id, 1)

        slugs = await repo.list_feature_slugs([invoice_row.id])
        assert slugs == ["messages", "csv_exports", "bike_codes"]
        assert await repo.list_feature_slugs([]) == []

    async def test_invoice_ids_for_feature_are_distinct(
        self, test_db, invoice_row, feature_rows
    ):
        repo = InvoiceFeatureRepository(test_db)
        a = feature_rows[0]
        await repo.add_rows(invoice_row.id, a.id, 3)

        assert await repo.list_invoice_ids_for_feature(a.id) == [invoice_row.id]

    async def test_list_features_returns_domain_models(
        self, test_db, invoice_row, feature_rows
    ):
        repo = InvoiceFeatureRepository(test_db)
        b = feature_rows[1]
        await repo.add_rows(invoice_row.id, b.id, 2)

        features = await repo.list_features(invoice_row.id)
        assert [f.name for f in features] == ["B", "B"]
