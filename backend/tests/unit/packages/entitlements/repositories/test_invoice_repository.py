"""
Unit tests for InvoiceRepository.

Tests derived-state persistence, chain lookups and scopes without mocking
the database.
"""

from datetime import datetime, timedelta, timezone

import pytest

from packages.entitlements.models.database.invoice import InvoiceEntity
from packages.entitlements.models.database.payment import PaymentEntity
from packages.entitlements.repositories.invoice_repository import InvoiceRepository

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


async def add_invoice(test_db, organization_id, **fields):
    invoice = InvoiceEntity(organization_id=organization_id, currency="USD", **fields)
    test_db.add(invoice)
    await test_db.flush()
    return invoice


@pytest.mark.asyncio
class TestSaveWithDerivedState:
    """Tests for InvoiceRepository.save_with_derived_state."""

    async def test_end_defaults_to_one_year_after_start(
        self, test_db, sample_organization
    ):
        start = datetime(2026, 1, 10, tzinfo=timezone.utc)
        row = await add_invoice(
            test_db, sample_organization.id, subscription_start_at=start
        )
        repo = InvoiceRepository(test_db)

        invoice = await repo.save_with_derived_state(row.id, {}, now=NOW)

        assert invoice.subscription_end_at == datetime(2027, 1, 10, tzinfo=timezone.utc)
        assert invoice.child_feature_slugs == []

    async def test_explicit_end_is_kept(self, test_db, sample_organization):
        start = datetime(2026, 1, 10, tzinfo=timezone.utc)
        end = datetime(2026, 7, 10, tzinfo=timezone.utc)
        row = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=start,
            subscription_end_at=end,
        )
        repo = InvoiceRepository(test_db)

        invoice = await repo.save_with_derived_state(row.id, {}, now=NOW)

        assert invoice.subscription_end_at == end

    async def test_amount_paid_is_sum_of_payments(self, test_db, sample_organization):
        row = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=NOW - timedelta(days=10),
            amount_due_cents=5000,
        )
        for amount in (2000, 3000):
            test_db.add(PaymentEntity(invoice_id=row.id, amount_cents=amount, paid_at=NOW))
        await test_db.flush()
        repo = InvoiceRepository(test_db)

        invoice = await repo.save_with_derived_state(row.id, {}, now=NOW)

        assert invoice.amount_paid_cents == 5000
        assert invoice.is_active

    async def test_values_are_applied_before_recompute(
        self, test_db, sample_organization
    ):
        row = await add_invoice(
            test_db, sample_organization.id, subscription_start_at=NOW - timedelta(days=1)
        )
        repo = InvoiceRepository(test_db)

        invoice = await repo.save_with_derived_state(
            row.id, {"force_active": True}, now=NOW
        )

        assert invoice.force_active
        assert invoice.is_active

    async def test_expired_invoice_goes_inactive(self, test_db, sample_organization):
        row = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=NOW - timedelta(days=400),
            force_active=True,
            is_active=True,
        )
        repo = InvoiceRepository(test_db)

        invoice = await repo.save_with_derived_state(row.id, {}, now=NOW)

        assert not invoice.is_active

    async def test_missing_invoice(self, test_db):
        repo = InvoiceRepository(test_db)
        assert await repo.save_with_derived_state(999999, {}, now=NOW) is None


@pytest.mark.asyncio
class TestChainLookups:
    """Tests for head-id based chain queries."""

    async def test_previous_and_following(self, test_db, sample_organization):
        head = await add_invoice(test_db, sample_organization.id)
        first = await add_invoice(test_db, sample_organization.id, first_invoice_id=head.id)
        second = await add_invoice(
            test_db, sample_organization.id, first_invoice_id=head.id
        )
        repo = InvoiceRepository(test_db)

        assert (await repo.get_following_renewal(head.id, head.id)).id == first.id
        assert (await repo.get_following_renewal(head.id, first.id)).id == second.id
        assert await repo.get_following_renewal(head.id, second.id) is None

        assert (await repo.get_previous_renewal(head.id, second.id)).id == first.id
        assert await repo.get_previous_renewal(head.id, first.id) is None

    async def test_list_renewals_of_excludes_self(self, test_db, sample_organization):
        head = await add_invoice(test_db, sample_organization.id)
        first = await add_invoice(test_db, sample_organization.id, first_invoice_id=head.id)
        second = await add_invoice(
            test_db, sample_organization.id, first_invoice_id=head.id
        )
        repo = InvoiceRepository(test_db)

        assert [i.id for i in await repo.list_renewals_of(head.id)] == [
            first.id,
            second.id,
        ]
        assert [i.id for i in await repo.list_renewals_of(head.id, first.id)] == [
            second.id
        ]


@pytest.mark.asyncio
class TestScopes:
    """Tests for invoice scopes."""

    async def test_first_and_renewal(self, test_db, sample_organization):
        head = await add_invoice(test_db, sample_organization.id)
        renewal = await add_invoice(
            test_db, sample_organization.id, first_invoice_id=head.id
        )
        repo = InvoiceRepository(test_db)

        assert [i.id for i in await repo.list_first()] == [head.id]
        assert [i.id for i in await repo.list_renewals()] == [renewal.id]

    async def test_active_inactive(self, test_db, sample_organization):
        active = await add_invoice(test_db, sample_organization.id, is_active=True)
        inactive = await add_invoice(test_db, sample_organization.id, is_active=False)
        repo = InvoiceRepository(test_db)

        assert [i.id for i in await repo.list_active()] == [active.id]
        assert [i.id for i in await repo.list_inactive()] == [inactive.id]

    async def test_current_expired_should_expire(self, test_db, sample_organization):
        current = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=NOW - timedelta(days=10),
            subscription_end_at=NOW + timedelta(days=10),
            is_active=True,
        )
        stale = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=NOW - timedelta(days=400),
            subscription_end_at=NOW - timedelta(days=35),
            is_active=True,
        )
        lapsed = await add_invoice(
            test_db,
            sample_organization.id,
            subscription_start_at=NOW - timedelta(days=400),
            subscription_end_at=NOW - timedelta(days=35),
            is_active=False,
        )
        repo = InvoiceRepository(test_db)

        assert [i.id for i in await repo.list_current(NOW)] == [current.id]
        assert [i.id for i in await repo.list_expired(NOW)] == [stale.id, lapsed.id]
        assert [i.id for i in await repo.list_should_expire(NOW)] == [stale.id]
        assert await repo.list_should_expire(NOW, after_id=stale.id) == []

    async def test_list_for_organization(
        self, test_db, sample_organization, second_organization
    ):
        mine = await add_invoice(test_db, sample_organization.id, is_active=True)
        await add_invoice(test_db, sample_organization.id, is_active=False)
        await add_invoice(test_db, second_organization.id, is_active=True)
        repo = InvoiceRepository(test_db)

        assert len(await repo.list_for_organization(sample_organization.id)) == 2
        active = await repo.list_for_organization(
            sample_organization.id, active_only=True
        )
        assert [i.id for i in active] == [mine.id]

    async def test_get_for_update(self, test_db, sample_organization):
        row = await add_invoice(test_db, sample_organization.id)
        repo = InvoiceRepository(test_db)

        invoice = await repo.get_for_update(row.id)

        assert invoice.id == row.id
        assert await repo.get_for_update(999999) is None
