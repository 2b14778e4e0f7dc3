"""
Account Registry Module

Creates accounts lazily by name and resolves names to accounts. Accounts
live for the lifetime of the process; there is no removal.
"""

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from .models import Account
from .exceptions import CreditorNotFound
from .logging_config import get_logger, log_action


class AccountRegistry:
    """
    Mapping of account name to Account

    Each account also gets its own re-entrant lock. Operations touching two
    accounts take both locks through lock(), which always acquires them in
    name order so that opposite transfers cannot deadlock.
    """

    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._account_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()
        self.logger = get_logger("atm_ledger.registry")

    def get_or_create(self, name: str) -> Tuple[Account, bool]:
        """
        Return the named account, creating it on first reference

        Returns:
            (account, is_new) tuple
        """
        with self._lock:
            account = self._accounts.get(name)
            if account is not None:
                return account, False

            account = Account(name=name)
            self._accounts[name] = account
            self._account_locks[name] = threading.RLock()

        log_action(
            self.logger, "info", f"Account created: {name}",
            account=name, action="create_account", resource=f"account:{name}"
        )
        return account, True

    def find(self, name: str) -> Optional[Account]:
        """Look up an account without creating it"""
        with self._lock:
            return self._accounts.get(name)

    def get(self, name: str) -> Account:
        """
        Resolve a name that must already exist

        Raises:
            CreditorNotFound: If the name is unknown, which means a debt was
                recorded against an account that was never created
        """
        account = self.find(name)
        if account is None:
            raise CreditorNotFound(name)
        return account

    def all_except(self, name: str) -> List[Account]:
        """Every account other than the named one"""
        with self._lock:
            return [a for n, a in self._accounts.items() if n != name]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._accounts)

    @contextmanager
    def lock(self, *names: str) -> Iterator[None]:
        """Hold the per-account locks of the given accounts, in name order"""
        with self._lock:
            locks = [self._account_locks[n] for n in sorted(set(names))
                     if n in self._account_locks]
        with ExitStack() as stack:
            for account_lock in locks:
                stack.enter_context(account_lock)
            yield

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._accounts

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
