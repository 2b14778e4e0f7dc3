"""
Session Module

Tracks the single active account of an interaction. The session stores the
account's name and resolves it through the registry on every access.
"""

from typing import Optional, Tuple

from .models import Account
from .registry import AccountRegistry
from .audit import AuditTrail, AuditEventType
from .exceptions import NotLoggedIn
from .logging_config import get_logger, log_action


class Session:
    """At most one active account, selected by name"""

    def __init__(self, registry: AccountRegistry, audit_trail: Optional[AuditTrail] = None):
        self.registry = registry
        self.audit_trail = audit_trail
        self._active_name: Optional[str] = None
        self.logger = get_logger("atm_ledger.session")

    @property
    def is_active(self) -> bool:
        return self._active_name is not None

    def login(self, name: str) -> Tuple[Account, bool]:
        """
        Select (creating if needed) the named account as the active one

        Args:
            name: Account name; surrounding whitespace is ignored

        Returns:
            (account, is_new) tuple
        """
        account, is_new = self.registry.get_or_create(name.strip())
        self._active_name = account.name

        if self.audit_trail:
            if is_new:
                self.audit_trail.log_event(AuditEventType.ACCOUNT_CREATED, account.name)
            self.audit_trail.log_event(
                AuditEventType.SESSION_STARTED, account.name,
                metadata={"new_account": is_new}
            )

        log_action(
            self.logger, "info", f"Logged in: {account.name}",
            account=account.name, action="login",
            extra={"new_account": is_new}
        )
        return account, is_new

    def logout(self) -> Optional[Account]:
        """Clear the active account and return it; None if nobody was logged in"""
        account = self.current()
        if account is None:
            return None

        self._active_name = None
        if self.audit_trail:
            self.audit_trail.log_event(AuditEventType.SESSION_ENDED, account.name)
        log_action(self.logger, "info", f"Logged out: {account.name}",
                   account=account.name, action="logout")
        return account

    def current(self) -> Optional[Account]:
        if self._active_name is None:
            return None
        return self.registry.find(self._active_name)

    def require(self) -> Account:
        """Active account, or NotLoggedIn"""
        account = self.current()
        if account is None:
            raise NotLoggedIn()
        return account
