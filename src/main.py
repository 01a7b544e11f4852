import argparse
import logging
import sys
from typing import Optional, Sequence

from config import Settings, get_settings
from csv_io import write_accounts
from errors import ParseError
from payments_engine import PaymentsEngine
from transaction_processor import create_processor

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Replay a CSV transaction file and print final client account balances as CSV.",
    )
    parser.add_argument("file_path", help="Path of the CSV file with type, client, tx, amount columns.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = parse_args(argv)
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(create_processor(settings.processor))
    try:
        accounts = engine.process_file(args.file_path)
    except OSError as e:
        print(f"Cannot read {args.file_path}: {e}", file=sys.stderr)
        return 1
    except ParseError as e:
        print(f"Malformed record in {args.file_path}: {e}", file=sys.stderr)
        return 1

    if settings.sort_output:
        accounts = sorted(accounts, key=lambda snapshot: snapshot.client_id)
    write_accounts(sys.stdout, accounts)

    if settings.report_stats:
        print(engine.report(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
