"""Tests for balance arithmetic and the ledger service."""

import asyncio
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from beatmarket.errors import BelowMinimum, InsufficientFunds, InvalidAmount, ValidationFailed
from beatmarket.ledger import compute_balance, to_amount, validate_withdrawal
from beatmarket.models import LicenseTier, Purchase, TransactionType


class TestComputeBalance:
    """Tests for compute_balance()."""

    def test_sales_minus_withdrawals(self):
        assert compute_balance([10, 5], [3]) == Decimal("12.00")

    def test_floored_at_zero(self):
        """Test that the balance never goes negative."""
        assert compute_balance([10], [15]) == Decimal("0.00")

    @pytest.mark.parametrize(
        "sales, withdrawals, expected",
        [([], [], "0"), ([100], [], "100"), ([100], [50], "50"), ([10], [50], "0")],
    )
    def test_reference_values(self, sales, withdrawals, expected):
        assert compute_balance(sales, withdrawals) == Decimal(expected)

    def test_exact_decimal_sum(self):
        """Test that cents add up without float drift."""
        assert compute_balance(["19.99", "29.99"], []) == Decimal("49.98")
        assert compute_balance([0.1] * 3, []) == Decimal("0.30")


class TestValidateWithdrawal:
    """Tests for validate_withdrawal()."""

    def test_below_minimum(self):
        """Test that 14.99 is rejected whatever the balance."""
        with pytest.raises(BelowMinimum):
            validate_withdrawal("14.99", "1000")

    def test_insufficient_funds(self):
        with pytest.raises(InsufficientFunds):
            validate_withdrawal(20, 10)

    def test_exact_balance(self):
        """Test that withdrawing the whole balance leaves zero."""
        assert validate_withdrawal(15, 15) == Decimal("0.00")

    def test_non_positive_amount(self):
        with pytest.raises(InvalidAmount):
            validate_withdrawal(0, 100)
        with pytest.raises(InvalidAmount):
            validate_withdrawal(-20, 100)

    def test_minimum_checked_before_balance(self):
        with pytest.raises(BelowMinimum):
            validate_withdrawal(10, 5)

    def test_errors_are_validation_failures(self):
        for error in (BelowMinimum, InsufficientFunds, InvalidAmount):
            assert issubclass(error, ValidationFailed)

    def test_below_minimum_message(self):
        with pytest.raises(BelowMinimum, match=r"\$15\.00"):
            validate_withdrawal(5, 100)

    def test_minimum_compared_before_rounding(self):
        """Test that 14.999 does not round up past the minimum."""
        with pytest.raises(BelowMinimum):
            validate_withdrawal("14.999", Decimal("100"))

    def test_fraction_of_cent_rejected(self):
        with pytest.raises(InvalidAmount):
            validate_withdrawal("15.001", Decimal("100"))


class TestToAmount:
    """Tests for to_amount()."""

    def test_parses_strings_and_floats(self):
        assert to_amount("15") == Decimal("15.00")
        assert to_amount(19.99) == Decimal("19.99")

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(InvalidAmount):
            to_amount(value)


async def _sell(storage, buyer_id, beat, tier, price):
    await storage.record_sales(
        [
            Purchase(
                id=str(uuid.uuid4()),
                user_id=buyer_id,
                beat_id=beat.id,
                price_paid=Decimal(price),
                currency="USD",
                license_type=tier,
                transaction_id="TXID_1",
                created_at=datetime.now(timezone.utc),
            )
        ],
        {beat.id: beat.producer_id},
    )


class TestLedgerService:
    """Tests for LedgerService."""

    async def test_balance_from_sales(self, storage, ledger, producer, buyer, other_buyer, beat):
        """Test that an MP3 and a WAV sale give a 49.98 balance."""
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")
        await _sell(storage, other_buyer.id, beat, LicenseTier.WAV_LEASE, "29.99")

        assert await ledger.balance(producer.id) == Decimal("49.98")

    async def test_withdraw_updates_balance_and_history(
        self, storage, ledger, producer, buyer, other_buyer, beat
    ):
        """Test that withdrawing 15 from 49.98 leaves 34.98 and records it."""
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")
        await _sell(storage, other_buyer.id, beat, LicenseTier.WAV_LEASE, "29.99")

        receipt = await ledger.withdraw(producer.id, 15)

        assert receipt.balance == Decimal("34.98")
        assert receipt.transaction.type is TransactionType.WITHDRAWAL
        assert receipt.transaction.amount == Decimal("15.00")
        assert await ledger.balance(producer.id) == Decimal("34.98")

        summary = await ledger.earnings_summary(producer.id)
        assert summary.total_earnings == Decimal("49.98")
        assert summary.total_sales == 2
        assert summary.balance == Decimal("34.98")
        assert [t.amount for t in summary.transactions] == [Decimal("15.00")]
        assert [b.id for b in summary.beats] == [beat.id]

    async def test_withdraw_below_minimum_records_nothing(self, storage, ledger, producer, buyer, beat):
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")

        with pytest.raises(BelowMinimum):
            await ledger.withdraw(producer.id, "14.99")
        assert await storage.list_transactions(producer.id) == []

    async def test_sub_cent_amount_below_minimum(self, storage, ledger, producer, buyer, beat):
        """Test that 14.999 is refused rather than rounded to 15.00."""
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")

        with pytest.raises(BelowMinimum):
            await ledger.withdraw(producer.id, "14.999")
        assert await storage.list_transactions(producer.id) == []
        assert await ledger.balance(producer.id) == Decimal("19.99")

    async def test_cached_balance_follows_sales(
        self, storage, ledger, producer, buyer, other_buyer, beat
    ):
        """Test that the profile balance matches the derived balance."""
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")
        await _sell(storage, other_buyer.id, beat, LicenseTier.WAV_LEASE, "29.99")
        assert (await storage.get_profile(producer.id)).balance == Decimal("49.98")

        await ledger.withdraw(producer.id, 15)
        assert (await storage.get_profile(producer.id)).balance == Decimal("34.98")

    async def test_withdraw_more_than_balance(self, storage, ledger, producer, buyer, beat):
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")

        with pytest.raises(InsufficientFunds):
            await ledger.withdraw(producer.id, 20)

    async def test_invalid_amount(self, ledger, producer):
        with pytest.raises(InvalidAmount):
            await ledger.withdraw(producer.id, "twenty")

    async def test_concurrent_withdrawals_cannot_overdraw(
        self, storage, ledger, producer, buyer, beat
    ):
        """Test that two racing withdrawals of the full balance succeed once."""
        await _sell(storage, buyer.id, beat, LicenseTier.MP3_LEASE, "19.99")

        results = await asyncio.gather(
            ledger.withdraw(producer.id, "19.99"),
            ledger.withdraw(producer.id, "19.99"),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientFunds)
        assert await ledger.balance(producer.id) == Decimal("0.00")

    async def test_no_sales_summary(self, ledger, producer):
        summary = await ledger.earnings_summary(producer.id)

        assert summary.total_earnings == Decimal("0.00")
        assert summary.total_sales == 0
        assert summary.balance == Decimal("0.00")
