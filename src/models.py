from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeStatus(Enum):
    NONE = "none"
    OPEN = "open"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED_INSUFFICIENT_FUNDS = "ignored_insufficient_funds"
    IGNORED_UNKNOWN_REFERENCE = "ignored_unknown_reference"
    IGNORED_LOCKED_ACCOUNT = "ignored_locked_account"
    IGNORED_INVALID_DISPUTE_TRANSITION = "ignored_invalid_dispute_transition"
    IGNORED_CLIENT_MISMATCH = "ignored_client_mismatch"
    IGNORED_DUPLICATE_TRANSACTION = "ignored_duplicate_transaction"
    IGNORED_INVALID_AMOUNT = "ignored_invalid_amount"


class LedgerInvariantError(AssertionError):
    """Raised when a balance no longer satisfies total == available + held."""


class InvalidTransitionError(Exception):
    """Raised on an illegal dispute status transition."""


class DuplicateTransactionError(Exception):
    """Raised when a transaction id is recorded twice."""


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id {self.client_id} out of range")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"transaction id {self.transaction_id} out of range")
        if self.amount is not None and not self.transaction_type.carries_amount:
            raise ValueError(f"{self.transaction_type.value} must not carry an amount")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class IndexedTransaction:
    """A deposit or withdrawal remembered so later disputes can find its amount."""

    transaction_id: int
    client_id: int
    amount: Decimal
    transaction_type: TransactionType
    dispute_status: DisputeStatus = DisputeStatus.NONE


class ProcessingStats:
    """Counts of per-transaction outcomes for the end-of-run report."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self._counts[result] += 1

    def count(self, result: ProcessingResult) -> int:
        return self._counts[result]

    @property
    def applied(self) -> int:
        return self._counts[ProcessingResult.APPLIED]

    @property
    def ignored(self) -> int:
        return sum(n for result, n in self._counts.items() if result != ProcessingResult.APPLIED)

    @property
    def total(self) -> int:
        return sum(self._counts.values())
