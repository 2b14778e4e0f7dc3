"""
Account Data Model

An account is a named ledger entry with a balance and an ordered queue of the
debts it owes. Debts owed *to* an account are never stored on it; they are
found by scanning every other account's queue for its name.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import List, Optional

from .money import ZERO, exact_arithmetic


@dataclass
class Debt:
    """
    Outstanding obligation owed to a named creditor account

    The creditor is referenced by name and resolved through the registry
    whenever money has to move.
    """
    creditor: str
    amount: Decimal

    def __post_init__(self):
        if self.amount <= ZERO:
            raise ValueError("Debt amount must be positive")

    @property
    def is_settled(self) -> bool:
        return self.amount == ZERO

    def apply_payment(self, payment: Decimal) -> None:
        """Reduce the outstanding amount by a payment no larger than it"""
        if payment <= ZERO or payment > self.amount:
            raise ValueError(f"Payment {payment} out of range for debt of {self.amount}")
        with exact_arithmetic():
            self.amount -= payment


@dataclass
class Account:
    """
    Named account holding a non-negative balance and a FIFO debt queue
    """
    name: str
    balance: Decimal = ZERO
    debts: List[Debt] = field(default_factory=list)

    @property
    def has_debts(self) -> bool:
        return bool(self.debts)

    def credit(self, amount: Decimal) -> None:
        """Add funds to the balance"""
        if amount < ZERO:
            raise ValueError("Credit amount cannot be negative")
        with exact_arithmetic():
            self.balance += amount

    def debit(self, amount: Decimal) -> bool:
        """Remove funds if the balance covers them; no change otherwise"""
        if amount < ZERO:
            raise ValueError("Debit amount cannot be negative")
        if self.balance >= amount:
            with exact_arithmetic():
                self.balance -= amount
            return True
        return False

    def add_debt(self, creditor: str, amount: Decimal) -> Debt:
        """Append a new debt; existing debts to the same creditor are left alone"""
        debt = Debt(creditor=creditor, amount=amount)
        self.debts.append(debt)
        return debt

    def find_debt_to(self, creditor: str) -> Optional[Debt]:
        """Oldest debt owed to the given creditor, if any"""
        for debt in self.debts:
            if debt.creditor == creditor:
                return debt
        return None

    def remove_debt(self, debt: Debt) -> None:
        # Identity, not equality: two debts with the same creditor and
        # amount are distinct queue entries.
        for index, queued in enumerate(self.debts):
            if queued is debt:
                del self.debts[index]
                return
        raise ValueError(f"Debt to {debt.creditor} is not queued on {self.name}")

    def total_owed_to(self, creditor: str) -> Decimal:
        with exact_arithmetic():
            return sum((d.amount for d in self.debts if d.creditor == creditor), ZERO)
