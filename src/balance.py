from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Dict, Union

from models import ProcessingResult, LedgerInvariantError

PRECISION = Decimal("0.0001")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to PRECISION, widening the context so large values never overflow it."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - PRECISION.adjusted() + 2)
        return value.quantize(PRECISION)


@dataclass
class Balance:
    """
    Funds state of one client.
    Every mutating operation is ignored once the balance is locked.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    locked: bool = False

    def deposit(self, amount: Decimal) -> ProcessingResult:
        """Credit funds. Increases available and total."""
        if self.locked:
            return ProcessingResult.IGNORED_LOCKED_ACCOUNT
        self.available += amount
        self.total += amount
        self._check_invariant()
        return ProcessingResult.APPLIED

    def withdraw(self, amount: Decimal) -> ProcessingResult:
        """Debit funds. Rejected, not clamped, if available cannot cover it."""
        if self.locked:
            return ProcessingResult.IGNORED_LOCKED_ACCOUNT
        if amount > self.available:
            return ProcessingResult.IGNORED_INSUFFICIENT_FUNDS
        self.available -= amount
        self.total -= amount
        self._check_invariant()
        return ProcessingResult.APPLIED

    def dispute(self, amount: Decimal) -> ProcessingResult:
        """
        Move funds from available to held. Total is unchanged.
        Available may go negative when the disputed funds were already withdrawn.
        """
        if self.locked:
            return ProcessingResult.IGNORED_LOCKED_ACCOUNT
        self.available -= amount
        self.held += amount
        self._check_invariant()
        return ProcessingResult.APPLIED

    def resolve(self, amount: Decimal) -> ProcessingResult:
        if self.locked:
            return ProcessingResult.IGNORED_LOCKED_ACCOUNT
        self.held -= amount
        self.available += amount
        self._check_invariant()
        return ProcessingResult.APPLIED

    def chargeback(self, amount: Decimal) -> ProcessingResult:
        """Reverse held funds out of the account. Caller must lock() afterwards."""
        if self.locked:
            return ProcessingResult.IGNORED_LOCKED_ACCOUNT
        self.held -= amount
        self.total -= amount
        self._check_invariant()
        return ProcessingResult.APPLIED

    def lock(self) -> None:
        self.locked = True

    def snapshot(self) -> Dict[str, Union[Decimal, bool]]:
        return {
            "available": quantize_amount(self.available),
            "held": quantize_amount(self.held),
            "total": quantize_amount(self.total),
            "locked": self.locked,
        }

    def _check_invariant(self) -> None:
        if self.total != self.available + self.held:
            raise LedgerInvariantError(
                f"Client {self.client_id}: total {self.total} != available {self.available} + held {self.held}"
            )
