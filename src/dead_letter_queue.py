from collections import Counter
from typing import Dict, List, Tuple

from errors import ProcessError
from models import Transaction


class DeadLetterQueue:
    """
    Rejected transactions together with the error that rejected them.
    Messages are kept in arrival order and never retried.
    """

    def __init__(self):
        self._messages: List[Tuple[Transaction, ProcessError]] = []

    def send(self, transaction: Transaction, error: ProcessError) -> None:
        self._messages.append((transaction, error))

    def messages(self) -> List[Tuple[Transaction, ProcessError]]:
        return list(self._messages)

    def counts_by_kind(self) -> Dict[str, int]:
        return dict(Counter(error.kind for _, error in self._messages))

    def __len__(self) -> int:
        return len(self._messages)
