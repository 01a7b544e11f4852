from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import NegativeAmount, NotSufficientAvailableFunds, NotSufficientHeldFunds
from money import checked_add, checked_sub

MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 2 ** 32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


def _check_amount(amount: Decimal) -> None:
    if amount < 0:
        raise NegativeAmount()


@dataclass
class ClientAccount:
    """
    Balance state of a single client asset account.
    Every operation computes all resulting fields before assigning any of them,
    so a failed operation leaves the account unchanged.
    Invariant: total == available + held.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    locked: bool = False

    def deposit(self, amount: Decimal) -> None:
        """Credit: available and total increase."""
        _check_amount(amount)
        available = checked_add(self.available, amount)
        total = checked_add(available, self.held)

        self.available = available
        self.total = total

    def withdrawal(self, amount: Decimal) -> None:
        """Debit: available and total decrease."""
        _check_amount(amount)
        if self.available < amount:
            raise NotSufficientAvailableFunds()
        available = checked_sub(self.available, amount)
        total = checked_add(available, self.held)

        self.available = available
        self.total = total

    def dispute_deposit(self, amount: Decimal) -> None:
        """Move disputed deposit funds from available to held; total unchanged."""
        _check_amount(amount)
        if self.available < amount:
            raise NotSufficientAvailableFunds()
        available = checked_sub(self.available, amount)
        held = checked_add(self.held, amount)
        total = checked_add(available, held)

        self.available = available
        self.held = held
        self.total = total

    def dispute_withdrawal(self, amount: Decimal) -> None:
        """
        Recall disputed withdrawal funds into held.
        The withdrawal already left available, so held and total both increase.
        """
        _check_amount(amount)
        held = checked_add(self.held, amount)
        total = checked_add(self.available, held)

        self.held = held
        self.total = total

    def resolve(self, amount: Decimal) -> None:
        """Release held funds back to available; total unchanged."""
        _check_amount(amount)
        if self.held < amount:
            raise NotSufficientHeldFunds()
        available = checked_add(self.available, amount)
        held = checked_sub(self.held, amount)
        total = checked_add(available, held)

        self.available = available
        self.held = held
        self.total = total

    def chargeback(self, amount: Decimal) -> None:
        """Withdraw held funds for good and freeze the account."""
        _check_amount(amount)
        if self.held < amount:
            raise NotSufficientHeldFunds()
        held = checked_sub(self.held, amount)
        total = checked_add(self.available, held)

        self.held = held
        self.total = total
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.failed = 0
        self.failures_by_kind: Counter = Counter()

    def record_success(self):
        self.processed += 1

    def record_failure(self, kind: str):
        self.failed += 1
        self.failures_by_kind[kind] += 1
