"""
Settlement Engine Module

Moves money between balances and debt records: deposits settle the
depositor's debts oldest-first, withdrawals only ever touch the balance, and
transfers first net against any debt the recipient owes the sender before
moving balance or recording a new debt for the shortfall.

Every operation runs against an explicit Session and returns a structured
result; rendering those results into text happens in the formatting module.
"""

from decimal import Decimal, InvalidOperation
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum

from .models import Account
from .money import ZERO, AmountLike, to_decimal, is_positive, exact_arithmetic
from .registry import AccountRegistry
from .session import Session
from .audit import AuditTrail, AuditEventType
from .exceptions import (
    InvalidAmount, InsufficientFunds, SelfTransferNotAllowed,
    TargetUserNotFound, CreditorNotFound
)
from .logging_config import get_logger, log_action


class MovementKind(Enum):
    """Kinds of money movement reported by the engine"""
    DEBT_PAYMENT = "debt_payment"    # Deposit funds paid to a creditor
    TRANSFER = "transfer"            # Balance moved sender -> recipient
    NETTING = "netting"              # Transfer funds cancelled a reverse debt
    DEBT_CREATED = "debt_created"    # Shortfall recorded as a new debt


@dataclass(frozen=True)
class Movement:
    kind: MovementKind
    source: str
    target: str
    amount: Decimal


@dataclass(frozen=True)
class DebtEntry:
    """One queued debt as reported to the caller, 1-indexed in FIFO order"""
    index: int
    creditor: str
    amount: Decimal


@dataclass(frozen=True)
class Receivable:
    """Total owed to an account by one other account"""
    debtor: str
    amount: Decimal


@dataclass
class DepositResult:
    account: str
    amount: Decimal
    balance: Decimal
    payments: List[Movement] = field(default_factory=list)
    remaining_debts: List[DebtEntry] = field(default_factory=list)

    @property
    def paid_to_debts(self) -> Decimal:
        with exact_arithmetic():
            return sum((p.amount for p in self.payments), ZERO)


@dataclass
class WithdrawResult:
    account: str
    amount: Decimal
    balance: Decimal


@dataclass
class TransferResult:
    """
    Outcome of a transfer

    netted is the part of the requested amount that cancelled a reverse
    debt; the rest went through the regular path, moving `transferred` from
    balance and recording `new_debt` for any shortfall.
    """
    sender: str
    recipient: str
    requested: Decimal
    balance: Decimal
    netted: Decimal = ZERO
    reverse_debt_remaining: Optional[Decimal] = None
    transferred: Decimal = ZERO
    new_debt: Optional[Decimal] = None
    movements: List[Movement] = field(default_factory=list)

    @property
    def fully_netted(self) -> bool:
        """True when the whole amount was absorbed by the reverse debt"""
        return self.netted > ZERO and self.netted == self.requested


@dataclass
class DebtListing:
    account: str
    entries: List[DebtEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass
class LoginSummary:
    account: str
    is_new: bool
    balance: Decimal
    owed_by: List[DebtEntry] = field(default_factory=list)
    owed_to: List[Receivable] = field(default_factory=list)


def _debt_entries(account: Account) -> List[DebtEntry]:
    return [
        DebtEntry(index=i, creditor=d.creditor, amount=d.amount)
        for i, d in enumerate(account.debts, start=1)
    ]


class SettlementEngine:
    """
    Deposit, withdrawal, transfer and debt reporting against a Session
    """

    def __init__(self, registry: AccountRegistry, audit_trail: Optional[AuditTrail] = None):
        self.registry = registry
        self.audit_trail = audit_trail
        self.logger = get_logger("atm_ledger.settlement")

    def _audit(self, event_type: AuditEventType, account: str, **metadata) -> None:
        if self.audit_trail:
            self.audit_trail.log_event(event_type, account, metadata=metadata)

    def _validate_amount(self, amount: AmountLike, account: str, action: str,
                         message: Optional[str] = None) -> Decimal:
        try:
            value = to_decimal(amount)
        except (InvalidOperation, TypeError, ValueError):
            value = None
        if value is None or not value.is_finite() or not is_positive(value):
            reason = "unparsable amount" if value is None else "non-positive amount"
            log_action(
                self.logger, "warning", f"Rejected {action}: {reason}",
                account=account, action=action, extra={"amount": str(amount)}
            )
            raise InvalidAmount(message)
        return value

    # Deposits

    def deposit(self, session: Session, amount: AmountLike) -> DepositResult:
        """
        Deposit cash into the active account

        The funds first settle the account's debts oldest-first; whatever is
        left is added to the balance.

        Raises:
            NotLoggedIn: No active session
            InvalidAmount: Amount is not positive
            CreditorNotFound: A queued debt names an unknown creditor
        """
        account = session.require()
        value = self._validate_amount(amount, account.name, "deposit")

        with self.registry.lock(account.name, *(d.creditor for d in account.debts)):
            remaining, payments = self.settle_debts(account, value)
            account.credit(remaining)
            result = DepositResult(
                account=account.name,
                amount=value,
                balance=account.balance,
                payments=payments,
                remaining_debts=_debt_entries(account)
            )

        self._audit(
            AuditEventType.DEPOSIT_COMPLETED, account.name,
            amount=value, credited=remaining, balance=result.balance
        )
        log_action(
            self.logger, "info", f"Deposit completed: {value}",
            account=account.name, action="deposit",
            extra={
                "amount": str(value),
                "paid_to_debts": str(result.paid_to_debts),
                "balance": str(result.balance),
                "payments": len(payments)
            }
        )
        return result

    def settle_debts(self, account: Account, funds: Decimal) -> Tuple[Decimal, List[Movement]]:
        """
        Apply funds to the account's debt queue in FIFO order

        Each step pays min(funds left, head debt) to the head debt's creditor
        and pops the debt once it reaches zero.

        Returns:
            (funds left over, payments made in queue order)
        """
        # Resolve every creditor up front so a broken reference aborts the
        # deposit before any money has moved.
        creditors: Dict[str, Account] = {}
        for debt in account.debts:
            if debt.creditor not in creditors:
                try:
                    creditors[debt.creditor] = self.registry.get(debt.creditor)
                except CreditorNotFound:
                    log_action(
                        self.logger, "error",
                        f"Debt on {account.name} names unknown creditor {debt.creditor}",
                        account=account.name, action="settle_debts",
                        resource=f"account:{debt.creditor}"
                    )
                    raise

        remaining = funds
        payments: List[Movement] = []
        while remaining > ZERO and account.has_debts:
            head = account.debts[0]
            payment = min(remaining, head.amount)

            creditors[head.creditor].credit(payment)
            head.apply_payment(payment)
            if head.is_settled:
                account.debts.pop(0)
            with exact_arithmetic():
                remaining -= payment

            payments.append(Movement(MovementKind.DEBT_PAYMENT, account.name, head.creditor, payment))
            self._audit(
                AuditEventType.DEBT_PAYMENT, account.name,
                creditor=head.creditor, amount=payment, outstanding=head.amount
            )

        return remaining, payments

    # Withdrawals

    def withdraw(self, session: Session, amount: AmountLike) -> WithdrawResult:
        """
        Withdraw cash from the active account's balance; debts are untouched

        Raises:
            NotLoggedIn: No active session
            InvalidAmount: Amount is not positive
            InsufficientFunds: Balance does not cover the amount
        """
        account = session.require()
        value = self._validate_amount(amount, account.name, "withdraw")

        with self.registry.lock(account.name):
            if not account.debit(value):
                log_action(
                    self.logger, "warning", "Rejected withdrawal: insufficient funds",
                    account=account.name, action="withdraw",
                    extra={"amount": str(value), "balance": str(account.balance)}
                )
                raise InsufficientFunds()
            balance = account.balance

        self._audit(AuditEventType.WITHDRAWAL_COMPLETED, account.name, amount=value, balance=balance)
        log_action(
            self.logger, "info", f"Withdrawal completed: {value}",
            account=account.name, action="withdraw",
            extra={"amount": str(value), "balance": str(balance)}
        )
        return WithdrawResult(account=account.name, amount=value, balance=balance)

    # Transfers

    def transfer(self, session: Session, target_name: str, amount: AmountLike) -> TransferResult:
        """
        Transfer money from the active account to an existing account

        Runs in two phases. Netting: if the recipient already owes the sender,
        the amount first reduces that debt. Regular transfer: whatever the
        netting did not absorb moves from the sender's balance, and any part
        the balance cannot cover becomes a new debt owed to the recipient.

        Raises:
            NotLoggedIn: No active session
            InvalidAmount: Amount is not positive
            SelfTransferNotAllowed: Target is the sender
            TargetUserNotFound: Target account does not exist
        """
        sender = session.require()
        value = self._validate_amount(amount, sender.name, "transfer",
                                      message="Invalid transfer amount!")

        target = target_name.strip()
        if target == sender.name:
            log_action(self.logger, "warning", "Rejected transfer: self-transfer",
                       account=sender.name, action="transfer")
            raise SelfTransferNotAllowed()

        recipient = self.registry.find(target)
        if recipient is None:
            log_action(self.logger, "warning", f"Rejected transfer: unknown target {target}",
                       account=sender.name, action="transfer", resource=f"account:{target}")
            raise TargetUserNotFound()

        result = TransferResult(
            sender=sender.name,
            recipient=recipient.name,
            requested=value,
            balance=sender.balance
        )

        with self.registry.lock(sender.name, recipient.name), exact_arithmetic():
            remainder = self._net_reverse_debt(sender, recipient, value, result)
            if remainder > ZERO:
                self._regular_transfer(sender, recipient, remainder, result)
            result.balance = sender.balance

        log_action(
            self.logger, "info", f"Transfer completed: {value} to {recipient.name}",
            account=sender.name, action="transfer", resource=f"account:{recipient.name}",
            extra={
                "amount": str(value),
                "netted": str(result.netted),
                "transferred": str(result.transferred),
                "new_debt": str(result.new_debt) if result.new_debt is not None else None,
                "balance": str(result.balance)
            }
        )
        return result

    def _net_reverse_debt(self, sender: Account, recipient: Account, amount: Decimal,
                          result: TransferResult) -> Decimal:
        """
        Cancel a debt the recipient owes the sender using transfer funds

        Returns:
            The part of the amount left for the regular transfer
        """
        reverse_debt = recipient.find_debt_to(sender.name)
        if reverse_debt is None:
            return amount

        if amount <= reverse_debt.amount:
            reverse_debt.apply_payment(amount)
            if reverse_debt.is_settled:
                recipient.remove_debt(reverse_debt)
            netted = amount
            result.reverse_debt_remaining = reverse_debt.amount
        else:
            netted = reverse_debt.amount
            recipient.remove_debt(reverse_debt)
            result.reverse_debt_remaining = ZERO

        result.netted = netted
        result.movements.append(Movement(MovementKind.NETTING, sender.name, recipient.name, netted))
        self._audit(
            AuditEventType.DEBT_NETTED, sender.name,
            debtor=recipient.name, amount=netted,
            outstanding=result.reverse_debt_remaining
        )
        return amount - netted

    def _regular_transfer(self, sender: Account, recipient: Account, amount: Decimal,
                          result: TransferResult) -> None:
        """Move balance, recording a new debt for whatever the balance cannot cover"""
        available = min(sender.balance, amount)
        sender.debit(available)
        recipient.credit(available)
        result.transferred = available
        result.movements.append(Movement(MovementKind.TRANSFER, sender.name, recipient.name, available))
        self._audit(
            AuditEventType.TRANSFER_COMPLETED, sender.name,
            recipient=recipient.name, amount=available, balance=sender.balance
        )

        shortfall = amount - available
        if shortfall > ZERO:
            sender.add_debt(recipient.name, shortfall)
            result.new_debt = shortfall
            result.movements.append(Movement(MovementKind.DEBT_CREATED, sender.name, recipient.name, shortfall))
            self._audit(AuditEventType.DEBT_CREATED, sender.name, creditor=recipient.name, amount=shortfall)

    # Reporting

    def debts(self, session: Session) -> DebtListing:
        """The active account's debts, 1-indexed in FIFO order"""
        account = session.require()
        with self.registry.lock(account.name):
            return DebtListing(account=account.name, entries=_debt_entries(account))

    def login_summary(self, account: Account, is_new: bool = False) -> LoginSummary:
        """
        Balance, debts owed by the account, and totals owed to it

        Debts owed by the account are listed one per queue entry. Debts owed
        to it are summed per debtor account.
        """
        owed_to = []
        for other in self.registry.all_except(account.name):
            total = other.total_owed_to(account.name)
            if total > ZERO:
                owed_to.append(Receivable(debtor=other.name, amount=total))

        return LoginSummary(
            account=account.name,
            is_new=is_new,
            balance=account.balance,
            owed_by=_debt_entries(account),
            owed_to=owed_to
        )
