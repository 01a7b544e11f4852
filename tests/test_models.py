import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import DecimalAmountOverflow, NegativeAmount, NotSufficientAvailableFunds, NotSufficientHeldFunds
from models import AccountSnapshot, ClientAccount, ProcessingStats, Transaction, TransactionType
from money import MAX_AMOUNT


def assert_balances(account: ClientAccount, available: str, held: str, total: str) -> None:
    assert account.available == Decimal(available)
    assert account.held == Decimal(held)
    assert account.total == Decimal(total)
    assert account.total == account.available + account.held


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_type_values_are_lowercase_names(self):
        assert [t.value for t in TransactionType] == ["deposit", "withdrawal", "dispute", "resolve", "chargeback"]


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert_balances(account, "0", "0", "0")
        assert account.locked is False

    def test_deposit_then_withdrawal(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("100"))
        account.deposit(Decimal("50"))
        account.withdrawal(Decimal("50"))

        assert_balances(account, "100", "0", "100")

    def test_deposit_withdrawal_then_chargeback(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("100"))
        account.deposit(Decimal("50"))
        account.withdrawal(Decimal("50"))
        account.dispute_deposit(Decimal("50"))

        assert_balances(account, "50", "50", "100")
        assert account.locked is False

        account.chargeback(Decimal("50"))

        assert_balances(account, "50", "0", "50")
        assert account.locked is True

    def test_withdrawal_insufficient_funds(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("100"))

        with pytest.raises(NotSufficientAvailableFunds):
            account.withdrawal(Decimal("200"))

        assert_balances(account, "100", "0", "100")
        assert account.locked is False

    def test_dispute_deposit_moves_funds_to_held(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("200"))
        account.deposit(Decimal("300"))
        account.dispute_deposit(Decimal("300"))

        assert_balances(account, "200", "300", "500")

    def test_dispute_then_resolve(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("200"))
        account.deposit(Decimal("300"))
        account.dispute_deposit(Decimal("200"))
        account.resolve(Decimal("200"))

        assert_balances(account, "500", "0", "500")
        assert account.locked is False

    def test_dispute_deposit_insufficient_available(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("300"))
        account.withdrawal(Decimal("300"))

        with pytest.raises(NotSufficientAvailableFunds):
            account.dispute_deposit(Decimal("100"))

        assert_balances(account, "0", "0", "0")

    def test_dispute_withdrawal_increases_held_and_total(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("100"))
        account.withdrawal(Decimal("40"))
        account.dispute_withdrawal(Decimal("40"))

        assert_balances(account, "60", "40", "100")

    def test_resolve_insufficient_held(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("100"))

        with pytest.raises(NotSufficientHeldFunds):
            account.resolve(Decimal("10"))
        with pytest.raises(NotSufficientHeldFunds):
            account.chargeback(Decimal("10"))

        assert_balances(account, "100", "0", "100")
        assert account.locked is False

    @pytest.mark.parametrize(
        "operation",
        ["deposit", "withdrawal", "dispute_deposit", "dispute_withdrawal", "resolve", "chargeback"],
    )
    def test_negative_amount_rejected(self, operation):
        account = ClientAccount(client_id=1, available=Decimal("10"), held=Decimal("10"), total=Decimal("20"))

        with pytest.raises(NegativeAmount):
            getattr(account, operation)(Decimal("-1"))

        assert_balances(account, "10", "10", "20")
        assert account.locked is False

    def test_zero_amount_accepted(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("0"))
        account.withdrawal(Decimal("0"))

        assert_balances(account, "0", "0", "0")

    def test_overflow_leaves_account_unchanged(self):
        account = ClientAccount(client_id=1)
        account.deposit(MAX_AMOUNT)

        with pytest.raises(DecimalAmountOverflow):
            account.deposit(Decimal("1"))

        assert account.available == MAX_AMOUNT
        assert account.total == MAX_AMOUNT

    def test_dispute_withdrawal_total_overflow_leaves_account_unchanged(self):
        account = ClientAccount(client_id=1, available=MAX_AMOUNT, total=MAX_AMOUNT)

        with pytest.raises(DecimalAmountOverflow):
            account.dispute_withdrawal(Decimal("1"))

        assert account.held == Decimal("0")
        assert account.total == MAX_AMOUNT

    def test_fractional_precision(self):
        account = ClientAccount(client_id=1)
        account.deposit(Decimal("1.2345"))
        account.deposit(Decimal("0.0001"))
        account.withdrawal(Decimal("0.2346"))

        assert_balances(account, "1.0000", "0", "1.0000")

    def test_snapshot(self):
        account = ClientAccount(client_id=7)
        account.deposit(Decimal("5"))

        snapshot = account.snapshot()
        assert snapshot == AccountSnapshot(
            client_id=7,
            available=Decimal("5"),
            held=Decimal("0"),
            total=Decimal("5"),
            locked=False,
        )

        account.deposit(Decimal("1"))
        assert snapshot.available == Decimal("5")


class TestProcessingStats:
    def test_counters(self):
        stats = ProcessingStats()
        stats.record_success()
        stats.record_failure("AccountLocked")
        stats.record_failure("AccountLocked")
        stats.record_failure("TransactionExists")

        assert stats.processed == 1
        assert stats.failed == 3
        assert stats.failures_by_kind == {"AccountLocked": 2, "TransactionExists": 1}
