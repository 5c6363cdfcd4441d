"""Session state and the edit commands that produce new states.

A SessionState is never mutated. Every operation takes a state and returns a
new one, so a failed operation can always fall back to the state it started
from.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional

from statement_ledger.models.category import CostType, resolve_category
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.utils.decimal_utils import coerce_amount
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

# Fields an edit may change
EDITABLE_FIELDS = {
    "date",
    "description",
    "debit",
    "credit",
    "balance",
    "reference",
    "category",
    "cost_type",
}
_AMOUNT_FIELDS = {"debit", "credit", "balance"}


@dataclass(frozen=True)
class SessionState:
    """Accumulated transactions of one upload session.

    Attributes:
        transactions: Records in merge order.
        bank_name: First bank name any batch supplied.
        period: First statement period any batch supplied.
        files_processed: Files attempted so far, failed ones included. Used
            as the batch offset for record IDs.
    """

    transactions: tuple[TransactionRecord, ...] = ()
    bank_name: Optional[str] = None
    period: Optional[str] = None
    files_processed: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    def find(self, record_id: str) -> Optional[TransactionRecord]:
        """Look up a record by ID."""
        for record in self.transactions:
            if record.id == record_id:
                return record
        return None


def new_session() -> SessionState:
    """Return the empty state a fresh upload starts from."""
    return SessionState()


def update_transaction(state: SessionState, record_id: str, **changes: Any) -> SessionState:
    """Change fields of one record.

    Amounts are coerced to Decimal and category/cost type are re-resolved
    against the vocabulary, exactly as for extracted records.

    Args:
        state: Current session state.
        record_id: ID of the record to edit.
        **changes: Field values to set.

    Returns:
        New state with the edited record in its original position.

    Raises:
        KeyError: If no record has record_id.
        ValueError: If a change targets the id or an unknown field.
    """
    if "id" in changes:
        raise ValueError("Transaction id cannot be changed")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown transaction field(s): {', '.join(sorted(unknown))}")

    cleaned: dict[str, Any] = {}
    for name, value in changes.items():
        if name in _AMOUNT_FIELDS:
            cleaned[name] = coerce_amount(value)
        elif name == "category":
            cleaned[name] = resolve_category(value)
        elif name == "cost_type":
            cleaned[name] = CostType.from_value(value)
        elif name == "reference":
            cleaned[name] = str(value) if value else None
        else:
            cleaned[name] = "" if value is None else str(value)

    target = state.find(record_id)
    if target is None:
        raise KeyError(record_id)

    edited = dataclasses.replace(target, **cleaned)
    updated = [edited if record is target else record for record in state.transactions]

    logger.debug(f"Updated transaction {record_id}: {', '.join(sorted(cleaned))}")
    return dataclasses.replace(state, transactions=tuple(updated))


def delete_transaction(state: SessionState, record_id: str) -> SessionState:
    """Remove one record.

    Args:
        state: Current session state.
        record_id: ID of the record to delete.

    Returns:
        New state without the record.

    Raises:
        KeyError: If no record has record_id.
    """
    remaining = tuple(r for r in state.transactions if r.id != record_id)
    if len(remaining) == len(state.transactions):
        raise KeyError(record_id)

    logger.debug(f"Deleted transaction {record_id}")
    return dataclasses.replace(state, transactions=remaining)
