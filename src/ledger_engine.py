import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from models import (
    DisputeStatus,
    IndexedTransaction,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)
from account_book import AccountBook
from balance import Balance
from transaction_index import TransactionIndex

logger = logging.getLogger(__name__)


def _is_valid_amount(amount: Decimal) -> bool:
    return amount.is_finite() and amount > 0


class LedgerEngine:
    """
    Applies transactions one at a time, in arrival order, against client balances.
    Bad input never raises: every rejected transaction is a no-op reported through
    its ProcessingResult. Only a broken balance invariant aborts the run.
    """

    def __init__(self):
        self._accounts = AccountBook()
        self._index = TransactionIndex()
        self.stats = ProcessingStats()

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, Balance]:
        """Apply every transaction in order and return the final account states."""
        for transaction in transactions:
            self.apply(transaction)
        return self.accounts()

    def accounts(self) -> Dict[int, Balance]:
        return self._accounts.get_all_accounts()

    def dispute_status(self, transaction_id: int) -> Optional[DisputeStatus]:
        """Dispute status of a recorded deposit or withdrawal, None if never seen."""
        entry = self._index.lookup(transaction_id)
        return None if entry is None else entry.dispute_status

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            APPLIED: Balance and index were updated
            IGNORED_*: Balances unchanged; the value says why
        """
        account = self._accounts.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.info(f"{transaction}: account {transaction.client_id} is locked, ignoring")
            result = ProcessingResult.IGNORED_LOCKED_ACCOUNT
        else:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT | TransactionType.WITHDRAWAL:
                    result = self._handle_funds_movement(account, transaction)
                case TransactionType.DISPUTE:
                    result = self._handle_dispute(account, transaction)
                case TransactionType.RESOLVE:
                    result = self._handle_resolve(account, transaction)
                case TransactionType.CHARGEBACK:
                    result = self._handle_chargeback(account, transaction)

        self.stats.record(result)
        return result

    def _handle_funds_movement(self, account: Balance, transaction: Transaction) -> ProcessingResult:
        kind = transaction.transaction_type.value.capitalize()

        if transaction.amount is None:
            logger.warning(f"{kind} tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.IGNORED_INVALID_AMOUNT

        if transaction.transaction_id in self._index:
            logger.info(f"{kind} tx {transaction.transaction_id}: id already seen, skipping duplicate")
            return ProcessingResult.IGNORED_DUPLICATE_TRANSACTION

        # Recorded at first sight, whatever the outcome.
        self._index.record(
            transaction.transaction_id,
            transaction.client_id,
            transaction.amount,
            transaction.transaction_type,
        )

        if not _is_valid_amount(transaction.amount):
            logger.warning(f"{kind} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.IGNORED_INVALID_AMOUNT

        if transaction.transaction_type == TransactionType.DEPOSIT:
            result = account.deposit(transaction.amount)
        else:
            result = account.withdraw(transaction.amount)

        if result == ProcessingResult.IGNORED_INSUFFICIENT_FUNDS:
            logger.info(
                f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                f"(requested {transaction.amount}, available {account.available})"
            )
        return result

    def _find_referenced(
        self, transaction: Transaction, expected: DisputeStatus
    ) -> Tuple[Optional[IndexedTransaction], ProcessingResult]:
        """Resolve the deposit/withdrawal a dispute, resolve or chargeback points at."""
        kind = transaction.transaction_type.value.capitalize()
        original = self._index.lookup(transaction.transaction_id)

        if original is None:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: transaction not found")
            return None, ProcessingResult.IGNORED_UNKNOWN_REFERENCE

        referenced = f"{kind} for {original.transaction_type.value} tx {original.transaction_id}"

        if original.client_id != transaction.client_id:
            logger.warning(
                f"{referenced}: client mismatch "
                f"(owned by {original.client_id}, referenced by {transaction.client_id})"
            )
            return None, ProcessingResult.IGNORED_CLIENT_MISMATCH

        if not _is_valid_amount(original.amount):
            logger.warning(f"{referenced}: recorded amount {original.amount} cannot be disputed")
            return None, ProcessingResult.IGNORED_INVALID_AMOUNT

        if original.dispute_status != expected:
            logger.warning(
                f"{referenced}: dispute status is "
                f"{original.dispute_status.value}, expected {expected.value}"
            )
            return None, ProcessingResult.IGNORED_INVALID_DISPUTE_TRANSITION

        return original, ProcessingResult.APPLIED

    def _handle_dispute(self, account: Balance, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction, DisputeStatus.NONE)
        if original is None:
            return result

        self._index.mark_disputed(original.transaction_id)
        return account.dispute(original.amount)

    def _handle_resolve(self, account: Balance, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction, DisputeStatus.OPEN)
        if original is None:
            return result

        self._index.mark_resolved(original.transaction_id)
        return account.resolve(original.amount)

    def _handle_chargeback(self, account: Balance, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction, DisputeStatus.OPEN)
        if original is None:
            return result

        self._index.mark_chargedback(original.transaction_id)
        result = account.chargeback(original.amount)
        account.lock()
        logger.info(f"Chargeback for tx {transaction.transaction_id}: account {transaction.client_id} locked")
        return result
