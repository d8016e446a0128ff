"""
Unit tests for commission calculation and the monthly commission ledger.
"""

from decimal import Decimal

import pytest
from fastapi import HTTPException

from marketplace_service.app.models.commission import MonthlyCommission
from marketplace_service.app.models.user import Vendor, VendorStatus
from marketplace_service.app.models.vendor_order import VendorOrder
from marketplace_service.app.repository.commission_repository import CommissionRepository
from marketplace_service.app.services.commission_service import (
    CommissionService,
    calculate_commission,
    calculate_vendor_earnings,
    is_valid_commission_rate,
    resolve_commission_rate,
    to_money,
)


class TestCommissionMath:
    def test_commission_is_rounded_to_cents(self):
        assert calculate_commission(1000, 0.2) == Decimal("200.00")
        assert calculate_commission("333.33", "0.15") == Decimal("50.00")

    def test_vendor_earnings_complement_commission(self):
        amount = Decimal("999.99")
        commission = calculate_commission(amount, "0.15")
        earnings = calculate_vendor_earnings(amount, "0.15")
        assert commission + earnings == amount
        assert earnings == Decimal("849.99")

    def test_invalid_rate_is_rejected(self):
        assert is_valid_commission_rate("0.5")
        assert not is_valid_commission_rate(1.5)
        assert not is_valid_commission_rate(-0.1)
        with pytest.raises(ValueError):
            calculate_commission(100, 1.5)

    def test_vendor_rate_overrides_default(self, test_settings):
        vendor = Vendor(commission_rate=Decimal("0.1000"))
        assert resolve_commission_rate(vendor) == Decimal("0.1")
        assert resolve_commission_rate(Vendor()) == Decimal(str(test_settings.COMMISSION_RATE))
        assert resolve_commission_rate(None) == Decimal(str(test_settings.COMMISSION_RATE))

    def test_to_money_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(3) == Decimal("3.00")


class TestLedgerStatus:
    @pytest.mark.parametrize(
        "total,paid,expected",
        [
            ("0", "0", "pending"),
            ("300", "0", "pending"),
            ("300", "100", "partial"),
            ("300", "300", "paid"),
        ],
    )
    def test_recalculate_pending(self, total, paid, expected):
        ledger = MonthlyCommission(
            total_commission=Decimal(total), paid_commission=Decimal(paid)
        )
        ledger.recalculate_pending()
        assert ledger.pending_commission == Decimal(total) - Decimal(paid)
        assert ledger.payment_status == expected


class TestCommissionPayments:
    async def test_payments_move_ledger_to_paid(self, test_database_manager):
        await test_database_manager.create_tables()
        async with test_database_manager.async_session_maker() as session:
            vendor = Vendor(
                business_name="Multan Pottery",
                slug="multan-pottery",
                email="pottery@example.com",
                password_hash="not-a-real-hash",
                status=VendorStatus.APPROVED,
            )
            session.add(vendor)
            await session.flush()

            ledger = await CommissionRepository(session).get_or_create_month(vendor.id, 2026, 3)
            ledger.total_commission = Decimal("300.00")
            ledger.recalculate_pending()
            await session.commit()

            service = CommissionService(session)
            ledger = await service.mark_paid(
                ledger.id, Decimal("100"), "bank_transfer", payment_reference="TX-1"
            )
            assert Decimal(ledger.paid_commission) == Decimal("100.00")
            assert Decimal(ledger.pending_commission) == Decimal("200.00")
            assert ledger.payment_status == "partial"
            assert [t.kind for t in ledger.transactions] == ["payment"]

            with pytest.raises(HTTPException) as exc_info:
                await service.mark_paid(ledger.id, Decimal("500"), "bank_transfer")
            assert exc_info.value.status_code == 400

            ledger = await service.mark_paid(ledger.id, Decimal("200"), "bank_transfer")
            assert ledger.payment_status == "paid"
            assert Decimal(ledger.pending_commission) == Decimal("0")

    async def test_unknown_ledger_is_404(self, test_database_manager):
        await test_database_manager.create_tables()
        async with test_database_manager.async_session_maker() as session:
            with pytest.raises(HTTPException) as exc_info:
                await CommissionService(session).mark_paid(42, Decimal("1"), "cash")
            assert exc_info.value.status_code == 404


class TestCommissionReversal:
    async def test_reversal_is_skipped_once_reversed(self, test_database_manager):
        await test_database_manager.create_tables()
        async with test_database_manager.async_session_maker() as session:
            service = CommissionService(session)
            reversed_order = VendorOrder(
                vendor_id=1,
                order_number="ORD-1-V1",
                commission_amount=Decimal("450.00"),
                commission_reversed=True,
            )
            assert await service.reverse_commission(reversed_order, "again") is False

    async def test_nothing_to_reverse_without_commission(self, test_database_manager):
        await test_database_manager.create_tables()
        async with test_database_manager.async_session_maker() as session:
            free_order = VendorOrder(
                vendor_id=1,
                order_number="ORD-2-V1",
                commission_amount=Decimal("0.00"),
                commission_reversed=False,
            )
            assert await CommissionService(session).reverse_commission(free_order) is False
            assert free_order.commission_reversed is False
