"""
Audit Trail Module

Hash-chained immutable audit log with SHA-256 for tamper detection.
Every state change in the ledger is logged here. Events are kept in memory
for the lifetime of the process.
"""

import hashlib
import json
import threading
import uuid
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from enum import Enum
from decimal import Decimal


class AuditEventType(Enum):
    """Types of audit events"""
    # Session events
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"

    # Account events
    ACCOUNT_CREATED = "account_created"

    # Money movements
    DEPOSIT_COMPLETED = "deposit_completed"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    TRANSFER_COMPLETED = "transfer_completed"

    # Debt events
    DEBT_PAYMENT = "debt_payment"
    DEBT_NETTED = "debt_netted"
    DEBT_CREATED = "debt_created"


@dataclass
class AuditEvent:
    """
    Immutable audit event with hash chaining for tamper detection
    """
    id: str
    created_at: datetime
    event_type: AuditEventType
    account: str          # Account the event is recorded against
    previous_hash: str    # Hash of previous audit event for chaining
    current_hash: str     # SHA-256 hash of this event
    metadata: Dict[str, Any]

    def __post_init__(self):
        if self.metadata:
            self._serialize_metadata()

    def _serialize_metadata(self) -> None:
        """Convert metadata values to JSON-serializable format"""
        def convert_value(value):
            if isinstance(value, Decimal):
                return str(value)
            elif isinstance(value, datetime):
                return value.isoformat()
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple)):
                return [convert_value(v) for v in value]
            else:
                return value

        self.metadata = {k: convert_value(v) for k, v in self.metadata.items()}

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this event
        Hash includes all fields except current_hash to prevent circular reference
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'account': self.account,
            'previous_hash': self.previous_hash,
            'metadata': self.metadata
        }

        # Create deterministic JSON string
        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'account': self.account,
            'previous_hash': self.previous_hash,
            'current_hash': self.current_hash,
            'metadata': self.metadata
        }


class AuditTrail:
    """
    Hash-chained audit trail for tamper detection
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()

    def log_event(
        self,
        event_type: AuditEventType,
        account: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditEvent]:
        """
        Log an audit event with hash chaining

        Args:
            event_type: Type of audit event
            account: Name of the account the event concerns
            metadata: Additional event-specific data

        Returns:
            Created AuditEvent, or None when auditing is disabled
        """
        if not self.enabled:
            return None

        with self._lock:
            previous_hash = self._events[-1].current_hash if self._events else ""
            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=datetime.now(timezone.utc),
                event_type=event_type,
                account=account,
                previous_hash=previous_hash,
                current_hash="",  # Calculated below
                metadata=metadata or {}
            )
            event.current_hash = event.calculate_hash()
            self._events.append(event)
            return event

    def get_events_for_account(self, account: str, limit: Optional[int] = None) -> List[AuditEvent]:
        """Events recorded against an account, oldest first"""
        with self._lock:
            events = [e for e in self._events if e.account == account]
        if limit:
            events = events[-limit:]  # Most recent N events
        return events

    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        with self._lock:
            return [e for e in self._events if e.event_type == event_type]

    def get_all_events(self) -> List[AuditEvent]:
        with self._lock:
            return list(self._events)

    def count_events(self) -> int:
        with self._lock:
            return len(self._events)

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain

        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_events': 0,
            'hash_errors': [],
            'chain_breaks': []
        }

        events = self.get_all_events()
        result['total_events'] = len(events)

        previous_hash = ""
        for i, event in enumerate(events):
            if not event.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_hash': event.calculate_hash(),
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': event.previous_hash
                })
            previous_hash = event.current_hash

        return result
