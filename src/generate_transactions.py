"""
Random transaction stream generator for load and fuzz testing.

Disputes only reference deposits/withdrawals generated earlier (by the same
client), and resolves/chargebacks only reference currently open disputes, so
the stream exercises the dispute lifecycle rather than just the ignore paths.
"""
import random
import sys
from decimal import Decimal
from typing import Iterator, List, Optional

from models import Transaction, TransactionType
from csv_codec import AMOUNT_PRECISION, write_transactions

DEFAULT_COUNT = 10_000
DEFAULT_MAX_CLIENT_ID = 300
DEFAULT_MAX_AMOUNT = Decimal("10000")


def _pop_random(rng: random.Random, items: List[Transaction]) -> Transaction:
    index = rng.randrange(len(items))
    items[index], items[-1] = items[-1], items[index]
    return items.pop()


def generate_transactions(
    count: int = DEFAULT_COUNT,
    max_client_id: int = DEFAULT_MAX_CLIENT_ID,
    max_amount: Decimal = DEFAULT_MAX_AMOUNT,
    seed: Optional[int] = None,
) -> Iterator[Transaction]:
    """Yield `count` transactions. The same seed always yields the same stream."""
    rng = random.Random(seed)
    max_units = int(max_amount.scaleb(AMOUNT_PRECISION))
    transaction_types = list(TransactionType)

    undisputed: List[Transaction] = []
    open_disputes: List[Transaction] = []
    next_transaction_id = 1
    emitted = 0

    while emitted < count:
        transaction_type = rng.choice(transaction_types)

        if transaction_type.carries_amount:
            transaction = Transaction(
                transaction_type=transaction_type,
                client_id=rng.randint(1, max_client_id),
                transaction_id=next_transaction_id,
                amount=Decimal(rng.randint(1, max_units)).scaleb(-AMOUNT_PRECISION),
            )
            next_transaction_id += 1
            undisputed.append(transaction)
        elif transaction_type == TransactionType.DISPUTE:
            if not undisputed:
                continue
            source = _pop_random(rng, undisputed)
            open_disputes.append(source)
            transaction = Transaction(transaction_type, source.client_id, source.transaction_id)
        else:
            if not open_disputes:
                continue
            source = _pop_random(rng, open_disputes)
            transaction = Transaction(transaction_type, source.client_id, source.transaction_id)

        emitted += 1
        yield transaction


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 2:
        print("Usage: payments-ledger-generate [count] [seed]", file=sys.stderr)
        return 1

    try:
        count = int(args[0]) if args else DEFAULT_COUNT
        seed = int(args[1]) if len(args) > 1 else None
    except ValueError:
        print("Usage: payments-ledger-generate [count] [seed]", file=sys.stderr)
        return 1

    if count < 0:
        print("count must not be negative", file=sys.stderr)
        return 1

    write_transactions(generate_transactions(count, seed=seed), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
