from decimal import Decimal
from typing import Dict, Optional, Set

from models import (
    DisputeStatus,
    DuplicateTransactionError,
    IndexedTransaction,
    InvalidTransitionError,
    TransactionType,
)

# Valid transitions: from_status -> set of valid to_statuses
DISPUTE_TRANSITIONS: Dict[DisputeStatus, Set[DisputeStatus]] = {
    DisputeStatus.NONE: {DisputeStatus.OPEN},
    DisputeStatus.OPEN: {DisputeStatus.RESOLVED, DisputeStatus.CHARGED_BACK},
    # Terminal statuses
    DisputeStatus.RESOLVED: set(),
    DisputeStatus.CHARGED_BACK: set(),
}


class TransactionIndex:
    """
    Remembers every deposit and withdrawal seen, by transaction id,
    along with the dispute status of each. Entries are never removed.
    """

    def __init__(self):
        self._transactions: Dict[int, IndexedTransaction] = {}

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def record(
        self,
        transaction_id: int,
        client_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
    ) -> IndexedTransaction:
        """Store a deposit or withdrawal for future dispute lookups."""
        if transaction_id in self._transactions:
            raise DuplicateTransactionError(f"Transaction {transaction_id} already recorded")
        entry = IndexedTransaction(
            transaction_id=transaction_id,
            client_id=client_id,
            amount=amount,
            transaction_type=transaction_type,
        )
        self._transactions[transaction_id] = entry
        return entry

    def lookup(self, transaction_id: int) -> Optional[IndexedTransaction]:
        """Retrieve a recorded transaction by id."""
        return self._transactions.get(transaction_id)

    def mark_disputed(self, transaction_id: int) -> None:
        self._transition(transaction_id, DisputeStatus.OPEN)

    def mark_resolved(self, transaction_id: int) -> None:
        self._transition(transaction_id, DisputeStatus.RESOLVED)

    def mark_chargedback(self, transaction_id: int) -> None:
        self._transition(transaction_id, DisputeStatus.CHARGED_BACK)

    def _transition(self, transaction_id: int, target: DisputeStatus) -> None:
        entry = self._transactions[transaction_id]
        if target not in DISPUTE_TRANSITIONS[entry.dispute_status]:
            raise InvalidTransitionError(
                f"Transaction {transaction_id}: cannot move dispute status "
                f"from {entry.dispute_status.value} to {target.value}"
            )
        entry.dispute_status = target
