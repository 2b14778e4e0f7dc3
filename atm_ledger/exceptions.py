"""
Ledger error taxonomy.

AtmError subclasses are ordinary, recoverable outcomes of a command: the
operation is rejected before any state changes and the message is shown to
the user. LedgerIntegrityError signals a broken invariant and is never
rendered as a user message.
"""

from typing import Optional


class AtmError(ValueError):
    """Base class for user-facing ATM errors"""

    default_message = "Operation failed!"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class NotLoggedIn(AtmError):
    default_message = "Please login first!"


class InvalidAmount(AtmError):
    default_message = "Invalid amount!"


class InsufficientFunds(AtmError):
    default_message = "Insufficient funds!"


class SelfTransferNotAllowed(AtmError):
    default_message = "Self-transfer not allowed!"


class TargetUserNotFound(AtmError):
    default_message = "Target user does not exist!"


class LedgerIntegrityError(RuntimeError):
    """Internal consistency fault; aborts the current operation"""


class CreditorNotFound(LedgerIntegrityError):
    """A debt names a creditor that is not in the registry"""

    def __init__(self, creditor: str):
        super().__init__(f"Creditor {creditor} not found.")
        self.creditor = creditor
