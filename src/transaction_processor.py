import logging
from decimal import Decimal
from enum import Enum
from typing import Iterator, Protocol, Tuple

from errors import (
    AccountLocked,
    AmountNotFound,
    DisputedTransactionNotFound,
    InvalidTransactionTypeOrAmount,
    MismatchClientId,
    OrgTransactionNotFound,
    TransactionExists,
    TransactionUnderDispute,
)
from models import AccountSnapshot, ClientAccount, Transaction, TransactionType
from repositories import AccountRepository, IndexedAccount, TransactionRepository

logger = logging.getLogger(__name__)


class TransactionProcessor(Protocol):
    """
    Ledger replay state machine.
    process() raises a ProcessError subclass when a transaction is rejected and
    leaves accounts and indices exactly as they were.

    A locked account rejects every transaction with AccountLocked. Resolve and
    chargeback look up the open dispute first, so replaying a concluded one
    reports DisputedTransactionNotFound even on a locked account.
    """

    def process(self, transaction: Transaction) -> None:
        ...

    def drain(self) -> Iterator[AccountSnapshot]:
        ...


class ProcessorKind(str, Enum):
    CENTRAL = "central"
    PER_ACCOUNT = "per-account"


def _require_amount(transaction: Transaction) -> Decimal:
    if transaction.amount is None:
        raise AmountNotFound()
    return transaction.amount


def _reject_amount(transaction: Transaction) -> None:
    # Dispute records reference an amount through the original transaction only.
    if transaction.amount is not None:
        raise InvalidTransactionTypeOrAmount(
            f"{transaction.transaction_type.value} tx {transaction.transaction_id} must not carry an amount"
        )


def _original_amount(original: Transaction) -> Decimal:
    if original.transaction_type in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL) and original.amount is not None:
        return original.amount
    raise InvalidTransactionTypeOrAmount()


def _check_unlocked(locked: bool, client_id: int) -> None:
    if locked:
        raise AccountLocked(f"client {client_id} is locked")


def _dispute(account: ClientAccount, original: Transaction) -> None:
    amount = _original_amount(original)
    if original.transaction_type == TransactionType.DEPOSIT:
        account.dispute_deposit(amount)
    else:
        account.dispute_withdrawal(amount)


class CentralIndexProcessor:
    """
    Keeps one transaction index and one dispute index for all clients.
    Account lookup and index lookup are independent, so every dispute step
    checks that the original transaction belongs to the requesting client.
    """

    def __init__(self):
        self._accounts: AccountRepository[ClientAccount] = AccountRepository(ClientAccount)
        self._transactions = TransactionRepository()
        self._disputes = TransactionRepository()

    def process(self, transaction: Transaction) -> None:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(self._account(transaction.client_id), transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(self._account(transaction.client_id), transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(self._account(transaction.client_id), transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(transaction)

        logger.debug(f"Applied {transaction}")

    def drain(self) -> Iterator[AccountSnapshot]:
        for account in self._accounts.accounts():
            yield account.snapshot()

    def _account(self, client_id: int) -> ClientAccount:
        account = self._accounts.get_or_create(client_id)
        _check_unlocked(account.locked, client_id)
        return account

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        amount = _require_amount(transaction)
        if self._transactions.exists(transaction.transaction_id):
            raise TransactionExists(f"tx {transaction.transaction_id} already processed")

        account.deposit(amount)
        self._transactions.insert(transaction.transaction_id, transaction)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        amount = _require_amount(transaction)
        if self._transactions.exists(transaction.transaction_id):
            raise TransactionExists(f"tx {transaction.transaction_id} already processed")

        account.withdrawal(amount)
        self._transactions.insert(transaction.transaction_id, transaction)

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> None:
        _reject_amount(transaction)
        if self._disputes.exists(transaction.transaction_id):
            raise TransactionUnderDispute(f"tx {transaction.transaction_id} already disputed")

        original = self._transactions.find(transaction.transaction_id)
        if original is None:
            raise OrgTransactionNotFound(f"tx {transaction.transaction_id} not found")
        if original.client_id != transaction.client_id:
            raise MismatchClientId(f"tx {transaction.transaction_id} belongs to client {original.client_id}, not {transaction.client_id}")

        _dispute(account, original)
        self._disputes.insert(transaction.transaction_id, transaction)

    def _handle_resolve(self, transaction: Transaction) -> None:
        account, original = self._disputed_original(transaction)
        account.resolve(_original_amount(original))
        self._close_dispute(transaction.transaction_id)

    def _handle_chargeback(self, transaction: Transaction) -> None:
        account, original = self._disputed_original(transaction)
        account.chargeback(_original_amount(original))
        self._close_dispute(transaction.transaction_id)

    def _disputed_original(self, transaction: Transaction) -> Tuple[ClientAccount, Transaction]:
        account = self._accounts.get_or_create(transaction.client_id)
        _reject_amount(transaction)
        dispute = self._disputes.find(transaction.transaction_id)
        if dispute is None:
            raise DisputedTransactionNotFound(f"tx {transaction.transaction_id} is not under dispute")
        _check_unlocked(account.locked, transaction.client_id)

        original = self._transactions.find(dispute.transaction_id)
        if original is None:
            raise OrgTransactionNotFound(f"tx {dispute.transaction_id} not found")
        if original.client_id != transaction.client_id:
            raise MismatchClientId(f"tx {transaction.transaction_id} belongs to client {original.client_id}, not {transaction.client_id}")
        return account, original

    def _close_dispute(self, transaction_id: int) -> None:
        self._disputes.delete(transaction_id)
        # no re-dispute allowed
        self._transactions.delete(transaction_id)


class PerAccountIndexProcessor:
    """
    Embeds a transaction index and a dispute index in every account, so index
    lookups are scoped to the client being processed. Another client's
    transaction is never found here, so no client id check is needed.
    """

    def __init__(self):
        self._accounts: AccountRepository[IndexedAccount] = AccountRepository(IndexedAccount)

    def process(self, transaction: Transaction) -> None:
        indexed = self._accounts.get_or_create(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                _check_unlocked(indexed.locked, indexed.client_id)
                self._handle_deposit(indexed, transaction)
            case TransactionType.WITHDRAWAL:
                _check_unlocked(indexed.locked, indexed.client_id)
                self._handle_withdrawal(indexed, transaction)
            case TransactionType.DISPUTE:
                _check_unlocked(indexed.locked, indexed.client_id)
                self._handle_dispute(indexed, transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(indexed, transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(indexed, transaction)

        logger.debug(f"Applied {transaction}")

    def drain(self) -> Iterator[AccountSnapshot]:
        for indexed in self._accounts.accounts():
            yield indexed.account.snapshot()

    def _handle_deposit(self, indexed: IndexedAccount, transaction: Transaction) -> None:
        amount = _require_amount(transaction)
        if indexed.transactions.exists(transaction.transaction_id):
            raise TransactionExists(f"tx {transaction.transaction_id} already processed")

        indexed.account.deposit(amount)
        indexed.transactions.insert(transaction.transaction_id, transaction)

    def _handle_withdrawal(self, indexed: IndexedAccount, transaction: Transaction) -> None:
        amount = _require_amount(transaction)
        if indexed.transactions.exists(transaction.transaction_id):
            raise TransactionExists(f"tx {transaction.transaction_id} already processed")

        indexed.account.withdrawal(amount)
        indexed.transactions.insert(transaction.transaction_id, transaction)

    def _handle_dispute(self, indexed: IndexedAccount, transaction: Transaction) -> None:
        _reject_amount(transaction)
        if indexed.disputes.exists(transaction.transaction_id):
            raise TransactionUnderDispute(f"tx {transaction.transaction_id} already disputed")

        original = indexed.transactions.find(transaction.transaction_id)
        if original is None:
            raise OrgTransactionNotFound(f"tx {transaction.transaction_id} not found for client {indexed.client_id}")

        _dispute(indexed.account, original)
        indexed.disputes.insert(transaction.transaction_id, transaction)

    def _handle_resolve(self, indexed: IndexedAccount, transaction: Transaction) -> None:
        original = self._disputed_original(indexed, transaction)
        indexed.account.resolve(_original_amount(original))
        self._close_dispute(indexed, transaction.transaction_id)

    def _handle_chargeback(self, indexed: IndexedAccount, transaction: Transaction) -> None:
        original = self._disputed_original(indexed, transaction)
        indexed.account.chargeback(_original_amount(original))
        self._close_dispute(indexed, transaction.transaction_id)

    @staticmethod
    def _disputed_original(indexed: IndexedAccount, transaction: Transaction) -> Transaction:
        _reject_amount(transaction)
        dispute = indexed.disputes.find(transaction.transaction_id)
        if dispute is None:
            raise DisputedTransactionNotFound(f"tx {transaction.transaction_id} is not under dispute for client {indexed.client_id}")
        _check_unlocked(indexed.locked, indexed.client_id)

        original = indexed.transactions.find(dispute.transaction_id)
        if original is None:
            raise OrgTransactionNotFound(f"tx {dispute.transaction_id} not found for client {indexed.client_id}")
        return original

    @staticmethod
    def _close_dispute(indexed: IndexedAccount, transaction_id: int) -> None:
        indexed.disputes.delete(transaction_id)
        # no re-dispute allowed
        indexed.transactions.delete(transaction_id)


def create_processor(kind: ProcessorKind = ProcessorKind.CENTRAL) -> TransactionProcessor:
    if kind == ProcessorKind.PER_ACCOUNT:
        return PerAccountIndexProcessor()
    return CentralIndexProcessor()
