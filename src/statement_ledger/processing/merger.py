"""Merge extraction batches into a session's transaction collection."""

import dataclasses
from typing import Optional

from statement_ledger.models.transaction import ExtractionResult, TransactionRecord
from statement_ledger.session import SessionState
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)


def merge_batches(
    state: SessionState,
    batches: list[ExtractionResult],
    attempted: Optional[int] = None,
) -> SessionState:
    """Append batches to a session and reconcile its metadata.

    Existing records come first, then each batch in processing order, each
    in extraction order. The bank name and period are taken from the first
    source (the existing state included) that supplies one. IDs are
    guaranteed unique: a record whose ID is already taken gets a "-dupN"
    suffix.

    Args:
        state: Session state before the merge.
        batches: Successful extraction results, in processing order.
        attempted: Number of files attempted for these batches, failed
            ones included (defaults to len(batches)).

    Returns:
        New session state.
    """
    if attempted is None:
        attempted = len(batches)

    seen_ids = {record.id for record in state.transactions}
    merged: list[TransactionRecord] = list(state.transactions)
    bank_name = state.bank_name
    period = state.period

    for batch in batches:
        for record in batch.transactions:
            merged.append(_with_unique_id(record, seen_ids))

        if bank_name is None and batch.bank_name:
            bank_name = batch.bank_name
        if period is None and batch.period:
            period = batch.period

    added = len(merged) - len(state.transactions)
    logger.info(
        f"Merged {added} transactions from {len(batches)} batch(es); "
        f"session now holds {len(merged)}"
    )

    return SessionState(
        transactions=tuple(merged),
        bank_name=bank_name,
        period=period,
        files_processed=state.files_processed + attempted,
    )


def _with_unique_id(record: TransactionRecord, seen_ids: set[str]) -> TransactionRecord:
    """Return the record with an ID not in seen_ids, registering it."""
    record_id = record.id
    suffix = 1
    while not record_id or record_id in seen_ids:
        record_id = f"{record.id or 'txn'}-dup{suffix}"
        suffix += 1

    if record_id != record.id:
        logger.warning(f"Transaction ID collision on {record.id!r}, reassigned {record_id!r}")
        record = dataclasses.replace(record, id=record_id)

    seen_ids.add(record_id)
    return record
