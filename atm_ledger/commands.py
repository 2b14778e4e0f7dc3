"""
ATM Command Surface

One method per ATM command, each returning the text shown to the user.
User-facing errors are turned into their messages here; integrity faults
propagate.
"""

import shlex
from decimal import Decimal
from functools import wraps
from typing import Callable, Dict, Optional, Tuple, Union

from .system import AtmSystem
from .money import parse_amount
from .exceptions import AtmError, InvalidAmount, NotLoggedIn
from . import formatting


AmountArg = Union[str, Decimal, int]

# command name -> (argument names, description)
COMMANDS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "login": (("name",), "Log in as a user, creating the account if needed"),
    "logout": ((), "Log out the current user"),
    "deposit": (("amount",), "Deposit money to account"),
    "withdraw": (("amount",), "Withdraw money from account"),
    "transfer": (("target", "amount"), "Transfer money to another user"),
    "debts": ((), "Show debts"),
    "help": ((), "List available commands"),
}


def _as_amount(value: AmountArg, message: Optional[str] = None) -> Decimal:
    if isinstance(value, str):
        try:
            return parse_amount(value)
        except InvalidAmount:
            raise InvalidAmount(message)
    return value


def _renders_errors(method: Callable[..., str]) -> Callable[..., str]:
    """Return an AtmError's message instead of raising it"""
    @wraps(method)
    def wrapper(*args, **kwargs) -> str:
        try:
            return method(*args, **kwargs)
        except AtmError as e:
            return e.message
    return wrapper


class ATMCommands:
    """Text command interface over an AtmSystem"""

    def __init__(self, system: Optional[AtmSystem] = None):
        self.system = system or AtmSystem()

    @property
    def session(self):
        return self.system.session

    @property
    def engine(self):
        return self.system.engine

    @_renders_errors
    def login(self, name: str) -> str:
        account, is_new = self.session.login(name)
        return formatting.render_login(self.engine.login_summary(account, is_new))

    @_renders_errors
    def logout(self) -> str:
        account = self.session.logout()
        if account is None:
            raise NotLoggedIn("No user logged in!")
        return formatting.render_logout(account.name)

    @_renders_errors
    def deposit(self, amount: AmountArg) -> str:
        self.session.require()
        result = self.engine.deposit(self.session, _as_amount(amount))
        return formatting.render_deposit(result)

    @_renders_errors
    def withdraw(self, amount: AmountArg) -> str:
        self.session.require()
        result = self.engine.withdraw(self.session, _as_amount(amount))
        return formatting.render_withdraw(result)

    @_renders_errors
    def transfer(self, target: str, amount: AmountArg) -> str:
        self.session.require()
        result = self.engine.transfer(
            self.session, target, _as_amount(amount, "Invalid transfer amount!")
        )
        return formatting.render_transfer(result)

    @_renders_errors
    def debts(self) -> str:
        return formatting.render_debts(self.engine.debts(self.session))

    def help(self) -> str:
        lines = ["Available commands:"]
        for name, (_, description) in COMMANDS.items():
            lines.append(f"  {usage(name):<28}{description}")
        return "\n".join(lines)

    def execute(self, line: str) -> str:
        """
        Run one command line such as "transfer Bob 20"

        Returns:
            The command's output, or a usage message for unknown commands and
            wrong argument counts
        """
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            return f"Cannot parse command: {e}"
        if not tokens:
            return ""

        name, args = tokens[0].lower(), tokens[1:]
        if name not in COMMANDS:
            return f"Unknown command: {tokens[0]}. Type 'help' for a list of commands."

        arg_names, _ = COMMANDS[name]
        if len(args) != len(arg_names):
            return f"Usage: {usage(name)}"

        return getattr(self, name)(*args)


def usage(name: str) -> str:
    arg_names, _ = COMMANDS[name]
    return " ".join([name] + [f"<{a}>" for a in arg_names])
