"""In-memory storage for customers, transactions, cases, reports and audit logs.

Transactions are kept in a dict keyed by customer id so that the
threshold and structuring checks only scan one customer's history.
Nothing is ever deleted: transactions, reports and audit entries are
append-only, matching the record-keeping obligations they model.
"""

from datetime import datetime
from typing import Dict, List, Optional

from bullion_aml.models import (
    AuditEntry,
    Customer,
    EDDInvestigation,
    SMRRecord,
    StoredTransaction,
    TTRRecord,
)


ACTIVE_INVESTIGATION_STATUSES = frozenset(
    {"open", "awaiting_customer_info", "under_review", "escalated"}
)


class MemoryStore:
    """In-memory store backing the compliance services."""

    def __init__(self) -> None:
        self._customers: Dict[str, Customer] = {}
        # Transactions indexed by customer id for fast history lookups
        self._transactions: Dict[str, List[StoredTransaction]] = {}
        self._investigations: Dict[str, EDDInvestigation] = {}
        self._ttr_reports: List[TTRRecord] = []
        self._smr_reports: List[SMRRecord] = []
        # Chronological audit log
        self._audit_log: List[AuditEntry] = []

    # --- Customers ---

    def upsert_customer(self, customer: Customer) -> None:
        self._customers[customer.customer_id] = customer

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self._customers.get(customer_id)

    def get_customers(self) -> List[Customer]:
        return list(self._customers.values())

    # --- Transactions ---

    def add(self, tx: StoredTransaction) -> None:
        """Store a transaction, indexed by customer id."""
        self._transactions.setdefault(tx.customer_id, []).append(tx)

    def get_transaction(self, transaction_id: str) -> Optional[StoredTransaction]:
        for txn_list in self._transactions.values():
            for t in txn_list:
                if t.transaction_id == transaction_id:
                    return t
        return None

    def get_by_customer(
        self,
        customer_id: str,
        since: Optional[datetime] = None,
        payment_status: Optional[str] = None,
    ) -> List[StoredTransaction]:
        """Return a customer's transactions, optionally filtered by timestamp >= since."""
        txns = self._transactions.get(customer_id, [])
        if since is not None:
            txns = [t for t in txns if t.timestamp >= since]
        if payment_status is not None:
            txns = [t for t in txns if t.payment_status == payment_status]
        return list(txns)

    # --- EDD investigations ---

    def next_investigation_number(self) -> str:
        return f"EDD-{len(self._investigations) + 1:06d}"

    def save_investigation(self, investigation: EDDInvestigation) -> None:
        self._investigations[investigation.id] = investigation

    def get_investigation(self, investigation_id: str) -> Optional[EDDInvestigation]:
        return self._investigations.get(investigation_id)

    def get_active_investigation(self, customer_id: str) -> Optional[EDDInvestigation]:
        for inv in self._investigations.values():
            if inv.customer_id == customer_id and inv.status in ACTIVE_INVESTIGATION_STATUSES:
                return inv
        return None

    def get_investigations(
        self,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> List[EDDInvestigation]:
        """Return investigations; ``status='active'`` selects every open state."""
        results: List[EDDInvestigation] = []
        for inv in self._investigations.values():
            if customer_id is not None and inv.customer_id != customer_id:
                continue
            if status == "active":
                if inv.status not in ACTIVE_INVESTIGATION_STATUSES:
                    continue
            elif status is not None and inv.status != status:
                continue
            results.append(inv)
        return results

    # --- Reports ---

    def add_ttr(self, record: TTRRecord) -> None:
        self._ttr_reports.append(record)

    def get_ttr_reports(self, customer_id: Optional[str] = None) -> List[TTRRecord]:
        if customer_id is None:
            return list(self._ttr_reports)
        return [r for r in self._ttr_reports if r.customer_id == customer_id]

    def add_smr(self, record: SMRRecord) -> None:
        self._smr_reports.append(record)

    def get_smr_reports(self, customer_id: Optional[str] = None) -> List[SMRRecord]:
        if customer_id is None:
            return list(self._smr_reports)
        return [r for r in self._smr_reports if r.customer_id == customer_id]

    # --- Audit ---

    def add_audit(self, entry: AuditEntry) -> None:
        """Append an entry to the audit log."""
        self._audit_log.append(entry)

    def get_audit_log(
        self,
        entity_id: Optional[str] = None,
        action_type: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        entity_type: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Return audit entries, optionally filtered by entity, action and/or time range."""
        results: List[AuditEntry] = []
        for entry in self._audit_log:
            if entity_id is not None and entry.entity_id != entity_id:
                continue
            if entity_type is not None and entry.entity_type != entity_type:
                continue
            if action_type is not None and entry.action_type != action_type:
                continue
            if since is not None and entry.timestamp < since:
                continue
            if until is not None and entry.timestamp > until:
                continue
            results.append(entry)
        return results
