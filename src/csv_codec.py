import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Mapping, Optional, TextIO

from models import Transaction, TransactionType
from balance import Balance, quantize_amount

logger = logging.getLogger(__name__)

AMOUNT_PRECISION = 4
# Keeps every running balance well inside the default 28-digit decimal context.
MAX_AMOUNT = Decimal("100000000000000")

INPUT_HEADER = ["type", "client", "tx", "amount"]
OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount with at most AMOUNT_PRECISION fractional digits."""
    amount = Decimal(amount_str)
    if not amount.is_finite():
        raise ValueError(f"non-finite amount {amount_str!r}")
    if amount.as_tuple().exponent < -AMOUNT_PRECISION:
        raise ValueError(f"amount {amount_str!r} has more than {AMOUNT_PRECISION} decimal places")
    if abs(amount) >= MAX_AMOUNT:
        raise ValueError(f"amount {amount_str!r} is not below {MAX_AMOUNT}")
    return amount


def parse_id(id_str: str) -> int:
    """Parse a plain unsigned decimal id. int() alone would accept "+1" and "1_0"."""
    if not (id_str.isascii() and id_str.isdigit()):
        raise ValueError(f"invalid id {id_str!r}")
    return int(id_str)


def parse_row(row: Mapping[Optional[str], Optional[str]]) -> Optional[Transaction]:
    """Parse CSV row into Transaction. Returns None if the row is unusable."""
    try:
        # csv.DictReader fills missing trailing columns with None and
        # collects surplus ones under a None key.
        normalized: Dict[str, str] = {
            k.strip(): (v or "").strip() for k, v in row.items() if isinstance(k, str)
        }

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = parse_id(normalized["client"])
        transaction_id = parse_id(normalized["tx"])

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = parse_amount(amount_str)

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {dict(row)}: {e}")
        return None


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """Lazily read transactions from a CSV file, skipping unparseable rows."""
    with open(filepath, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            transaction = parse_row(row)
            if transaction is not None:
                yield transaction


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{quantize_amount(value):f}"


def write_balances(accounts: Mapping[int, Balance], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])


def write_transactions(transactions: Iterable[Transaction], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(INPUT_HEADER)
    for transaction in transactions:
        writer.writerow([
            transaction.transaction_type.value,
            transaction.client_id,
            transaction.transaction_id,
            "" if transaction.amount is None else format_amount(transaction.amount),
        ])
