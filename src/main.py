import csv
import logging
import sys
from typing import Dict, List, Optional

from balance import Balance
from csv_codec import read_transactions, write_balances
from ledger_engine import LedgerEngine

logger = logging.getLogger(__name__)


def process_file(filepath: str, engine: Optional[LedgerEngine] = None) -> Dict[int, Balance]:
    """Process CSV file and return final account states."""
    engine = engine or LedgerEngine()
    logger.info(f"Processing transactions from {filepath}")
    return engine.process(read_transactions(filepath))


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: payments-ledger <input.csv>", file=sys.stderr)
        return 1

    filepath = args[0]
    engine = LedgerEngine()
    try:
        accounts = process_file(filepath, engine)
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        print(f"Error: cannot read {filepath}: {e}", file=sys.stderr)
        return 1

    write_balances(accounts, sys.stdout)

    print(
        f"Processed: {engine.stats.total}, "
        f"Applied: {engine.stats.applied}, "
        f"Ignored: {engine.stats.ignored}",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
