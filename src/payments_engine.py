import logging
from typing import Iterable, Iterator, Optional

from csv_io import open_transactions
from dead_letter_queue import DeadLetterQueue
from errors import (
    AccountLocked,
    DisputedTransactionNotFound,
    OrgTransactionNotFound,
    ProcessError,
    TransactionExists,
)
from models import AccountSnapshot, ProcessingStats, Transaction
from transaction_processor import TransactionProcessor, create_processor

logger = logging.getLogger(__name__)

# Rejections expected in ordinary input streams; logged below WARNING.
ROUTINE_REJECTIONS = (AccountLocked, TransactionExists, OrgTransactionNotFound, DisputedTransactionNotFound)


class PaymentsEngine:
    """
    Replays a transaction stream through a processor.
    Rejected transactions are logged and routed to the dead letter queue;
    a malformed source record (ParseError) aborts the run.
    """

    def __init__(
        self,
        processor: Optional[TransactionProcessor] = None,
        dead_letter_queue: Optional[DeadLetterQueue] = None,
    ):
        self._processor = processor if processor is not None else create_processor()
        self._dead_letter_queue = dead_letter_queue if dead_letter_queue is not None else DeadLetterQueue()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def dead_letter_queue(self) -> DeadLetterQueue:
        return self._dead_letter_queue

    def process_file(self, filepath: str) -> Iterator[AccountSnapshot]:
        """Process CSV file and return final account states."""
        with open_transactions(filepath) as transactions:
            return self.process_transactions(transactions)

    def process_transactions(self, transactions: Iterable[Transaction]) -> Iterator[AccountSnapshot]:
        for transaction in transactions:
            self._process_transaction(transaction)

        logger.info(f"Processing complete: {self.report()}")
        return self._processor.drain()

    def _process_transaction(self, transaction: Transaction) -> None:
        try:
            self._processor.process(transaction)
        except ProcessError as e:
            self._stats.record_failure(e.kind)
            self._dead_letter_queue.send(transaction, e)
            level = logging.INFO if isinstance(e, ROUTINE_REJECTIONS) else logging.WARNING
            logger.log(level, f"Rejected {transaction}: {e.kind} ({e})")
        else:
            self._stats.record_success()

    def report(self) -> str:
        line = f"Processed: {self._stats.processed}, Failed: {self._stats.failed}"
        if self._stats.failures_by_kind:
            kinds = ", ".join(f"{kind}={count}" for kind, count in sorted(self._stats.failures_by_kind.items()))
            line = f"{line} ({kinds})"
        return line
