"""
Component wiring for the ATM ledger
"""

from typing import Optional

from .registry import AccountRegistry
from .session import Session
from .settlement import SettlementEngine
from .audit import AuditTrail
from .config import get_config


class AtmSystem:
    """ATM ledger with all components initialized"""

    def __init__(self, enable_audit: Optional[bool] = None):
        if enable_audit is None:
            enable_audit = get_config().enable_audit_logging

        self.registry = AccountRegistry()
        self.audit_trail = AuditTrail(enabled=enable_audit)
        self.session = Session(self.registry, self.audit_trail)
        self.engine = SettlementEngine(self.registry, self.audit_trail)
