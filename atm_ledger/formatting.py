"""
Presentation of engine results as the ATM's text messages.
"""

from typing import List

from .money import format_amount
from .settlement import (
    DebtEntry, DepositResult, WithdrawResult, TransferResult,
    DebtListing, LoginSummary
)


def _owed_to_line(entry: DebtEntry) -> str:
    return f"Owed {format_amount(entry.amount)} to {entry.creditor}"


def render_login(summary: LoginSummary) -> str:
    lines = [
        f"Hello, {summary.account}!",
        f"Your balance is {format_amount(summary.balance)}"
    ]
    lines.extend(_owed_to_line(entry) for entry in summary.owed_by)
    lines.extend(
        f"Owed {format_amount(r.amount)} from {r.debtor}" for r in summary.owed_to
    )
    return "\n".join(lines)


def render_logout(account_name: str) -> str:
    return f"Goodbye, {account_name}!"


def render_deposit(result: DepositResult) -> str:
    lines: List[str] = [
        f"Transferred {format_amount(p.amount)} to {p.target}" for p in result.payments
    ]
    lines.append(f"Your balance is {format_amount(result.balance)}")
    lines.extend(_owed_to_line(entry) for entry in result.remaining_debts)
    return "\n".join(lines)


def render_withdraw(result: WithdrawResult) -> str:
    return f"Your balance is {format_amount(result.balance)}"


def render_transfer(result: TransferResult) -> str:
    if result.fully_netted:
        return "\n".join([
            f"Your balance is {format_amount(result.balance)}",
            f"Owed {format_amount(result.reverse_debt_remaining)} from {result.recipient}"
        ])

    lines = [
        f"Transferred {format_amount(result.transferred)} to {result.recipient}",
        f"Your balance is {format_amount(result.balance)}"
    ]
    if result.new_debt is not None:
        lines.append(f"Owed {format_amount(result.new_debt)} to {result.recipient}")
    return "\n".join(lines)


def render_debts(listing: DebtListing) -> str:
    if listing.is_empty:
        return "No outstanding debts."
    return "\n".join(
        f"{entry.index}. {_owed_to_line(entry)}" for entry in listing.entries
    )
