import csv
import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Dict, IO, Iterable, Iterator, Optional

from errors import ParseError
from models import MAX_CLIENT_ID, MAX_TRANSACTION_ID, AccountSnapshot, Transaction, TransactionType
from money import format_amount

logger = logging.getLogger(__name__)

INPUT_COLUMNS = ("type", "client", "tx", "amount")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")


def _parse_id(value: str, name: str, upper_bound: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ParseError(f"invalid {name} {value!r}")
    if not 0 <= parsed <= upper_bound:
        raise ParseError(f"{name} {parsed} out of range 0..{upper_bound}")
    return parsed


def _parse_amount(value: str) -> Optional[Decimal]:
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ParseError(f"invalid amount {value!r}")
    if not amount.is_finite():
        raise ParseError(f"invalid amount {value!r}")
    return amount


def parse_row(row: Dict[str, Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction."""
    normalized = {(k or "").strip(): (v or "").strip() for k, v in row.items() if k is not None}

    missing = [column for column in ("type", "client", "tx") if column not in normalized]
    if missing:
        raise ParseError(f"missing column(s) {', '.join(missing)}")

    try:
        transaction_type = TransactionType(normalized["type"])
    except ValueError:
        raise ParseError(f"unknown transaction type {normalized['type']!r}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=_parse_id(normalized["client"], "client", MAX_CLIENT_ID),
        transaction_id=_parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID),
        amount=_parse_amount(normalized.get("amount", "")),
    )


def read_transactions(stream: IO[str]) -> Iterator[Transaction]:
    """
    Lazily yield transactions from a CSV stream with a `type, client, tx, amount` header.
    The first malformed record raises ParseError and ends the iteration.
    Undecodable input and CSV syntax errors are reported as ParseError too.
    """
    reader = csv.DictReader(stream)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            # decoding is buffered, so the failing line is not known here
            raise ParseError(f"invalid UTF-8 input: {e}") from e
        except csv.Error as e:
            raise ParseError(str(e), line_number=reader.line_num) from e

        try:
            yield parse_row(row)
        except ParseError as e:
            raise ParseError(str(e), line_number=reader.line_num, record=row) from e


@contextmanager
def open_transactions(filepath: str) -> Iterator[Iterator[Transaction]]:
    with open(filepath, "r", encoding="utf-8", newline="") as f:
        logger.info(f"Reading transactions from {filepath}")
        yield read_transactions(f)


def write_accounts(stream: IO[str], snapshots: Iterable[AccountSnapshot]) -> int:
    """Write account snapshots as CSV rows. Returns the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    count = 0
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])
        count += 1
    return count
