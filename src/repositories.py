from typing import Callable, Dict, Generic, Iterator, Optional, TypeVar

from models import ClientAccount, Transaction

AccountT = TypeVar("AccountT")


class TransactionRepository:
    """
    Transactions keyed by transaction id.
    Holds no validation logic, callers enforce the dispute lifecycle.
    """

    def __init__(self):
        self._transactions: Dict[int, Transaction] = {}

    def insert(self, transaction_id: int, transaction: Transaction) -> None:
        self._transactions[transaction_id] = transaction

    def find(self, transaction_id: int) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def exists(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def delete(self, transaction_id: int) -> None:
        self._transactions.pop(transaction_id, None)

    def __len__(self) -> int:
        return len(self._transactions)


class AccountRepository(Generic[AccountT]):
    """
    Client accounts keyed by client id, created on first reference.
    The factory builds a fresh zero-balance account for a client id.
    """

    def __init__(self, factory: Callable[[int], AccountT]):
        self._factory = factory
        self._accounts: Dict[int, AccountT] = {}

    def get_or_create(self, client_id: int) -> AccountT:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = self._factory(client_id)
            self._accounts[client_id] = account
        return account

    def accounts(self) -> Iterator[AccountT]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)


class IndexedAccount:
    """Client account carrying its own transaction and dispute repositories."""

    def __init__(self, client_id: int):
        self.account = ClientAccount(client_id=client_id)
        self.transactions = TransactionRepository()
        self.disputes = TransactionRepository()

    @property
    def client_id(self) -> int:
        return self.account.client_id

    @property
    def locked(self) -> bool:
        return self.account.locked
