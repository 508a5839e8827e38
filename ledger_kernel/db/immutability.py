"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Validated entries are the ledger.  Once an entry leaves DRAFT, its header
and lines must never change and never disappear; corrections go through a
new offsetting entry.  The services check this explicitly
(EntryImmutableError, DeclarationImmutableError).  This module is the second
line: SQLAlchemy mapper events that refuse the flush even when some code path
bypasses the services and edits ORM objects directly.

    session.flush()
         |
         v
    [before_update / before_delete / before_insert]
         |  --> _check_*()  --> ImmutabilityViolationError
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable
----------------|--------------------------------------------------------
Entry           | After status = VALIDATED
EntryLine       | When parent entry is VALIDATED (update, delete, insert)
TvaDeclaration  | After status = SUBMITTED
FiscalYear      | After status = CLOSED
Account         | Delete blocked while any entry line references it

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at / updated_by_id may change on any row (audit metadata).

2. "WAS validated" not "IS validated": the lifecycle service itself sets
   status=VALIDATED, so the DRAFT -> VALIDATED transition passes and every
   later change is blocked.  Attribute history tells the two apart.

3. Inline model imports avoid the models <-> db import cycle.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()   # init_engine_from_url() does this

Tests that need to plant corrupt rows may call
unregister_immutability_listeners() and register again afterwards.
"""

from sqlalchemy import event, func, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import AccountReferencedError, ImmutabilityViolationError
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _was_in_status(target, final_status: str) -> bool:
    """
    True if the row already held final_status before this flush.

    Status changing FROM final_status: was final.  Status unchanged and equal
    to final_status: was final.  Status changing TO final_status: this flush
    is the transition itself, so not yet final.
    """
    status_history = get_history(target, "status")
    if status_history.deleted:
        return str(_status_value(status_history.deleted[0])) == final_status
    if not status_history.added:
        return str(_status_value(target.status)) == final_status
    return False


def _status_value(status):
    return getattr(status, "value", status)


def _block(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "invariant": LedgerInvariant.IMMUTABILITY.value,
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_no_field_changes(target, entity_type: str, state_label: str) -> None:
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            _block(
                entity_type,
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on {state_label} {entity_type}",
                field=attr.key,
            )


def _parent_entry_status(connection, target) -> str | None:
    from ledger_kernel.models.entry import Entry

    if target.entry_id is None:
        return None
    return connection.execute(
        select(Entry.status).where(Entry.id == target.entry_id)
    ).scalar_one_or_none()


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------


def _check_entry_immutability(mapper, connection, target):
    """Block updates to an entry that was already validated."""
    if _was_in_status(target, "validated"):
        _check_no_field_changes(target, "Entry", "validated")


def _check_entry_delete(mapper, connection, target):
    """Validated entries cannot be deleted."""
    if _was_in_status(target, "validated"):
        _block("Entry", target.id, "DELETE", "Validated entries cannot be deleted")


# ---------------------------------------------------------------------------
# EntryLine
# ---------------------------------------------------------------------------


def _check_entry_line_immutability(mapper, connection, target):
    if _parent_entry_status(connection, target) == "validated":
        _block(
            "EntryLine",
            target.id,
            "UPDATE",
            "Entry lines cannot be modified after the entry is validated",
        )


def _check_entry_line_delete(mapper, connection, target):
    if _parent_entry_status(connection, target) == "validated":
        _block(
            "EntryLine",
            target.id,
            "DELETE",
            "Entry lines cannot be deleted after the entry is validated",
        )


def _check_entry_line_insert(mapper, connection, target):
    if _parent_entry_status(connection, target) == "validated":
        _block(
            "EntryLine",
            target.id,
            "INSERT",
            "Lines cannot be added to a validated entry",
        )


# ---------------------------------------------------------------------------
# TvaDeclaration
# ---------------------------------------------------------------------------


def _check_declaration_immutability(mapper, connection, target):
    if _was_in_status(target, "submitted"):
        _check_no_field_changes(target, "TvaDeclaration", "submitted")


def _check_declaration_delete(mapper, connection, target):
    if _was_in_status(target, "submitted"):
        _block(
            "TvaDeclaration",
            target.id,
            "DELETE",
            "Submitted declarations cannot be deleted",
        )


# ---------------------------------------------------------------------------
# FiscalYear
# ---------------------------------------------------------------------------


def _check_fiscal_year_immutability(mapper, connection, target):
    """Closed fiscal years never reopen and their bounds never move."""
    if _was_in_status(target, "closed"):
        _check_no_field_changes(target, "FiscalYear", "closed")


# ---------------------------------------------------------------------------
# Account deletion (session level)
# ---------------------------------------------------------------------------


def _check_account_deletion_before_flush(session, flush_context, instances):
    """
    Refuse to delete accounts that entry lines reference.

    Runs in SessionEvents.before_flush, before the flush plan is finalized.
    """
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.entry import EntryLine

    for obj in list(session.deleted):
        if not isinstance(obj, Account):
            continue

        with session.no_autoflush:
            line_count = session.execute(
                select(func.count(EntryLine.id)).where(EntryLine.account_id == obj.id)
            ).scalar_one()

        if line_count:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "account_has_entry_lines",
                },
            )
            raise AccountReferencedError(account_id=str(obj.id))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _listener_table():
    from ledger_kernel.models.entry import Entry, EntryLine
    from ledger_kernel.models.fiscal_year import FiscalYear
    from ledger_kernel.models.tva_declaration import TvaDeclaration

    return (
        (Session, "before_flush", _check_account_deletion_before_flush),
        (Entry, "before_update", _check_entry_immutability),
        (Entry, "before_delete", _check_entry_delete),
        (EntryLine, "before_update", _check_entry_line_immutability),
        (EntryLine, "before_delete", _check_entry_line_delete),
        (EntryLine, "before_insert", _check_entry_line_insert),
        (TvaDeclaration, "before_update", _check_declaration_immutability),
        (TvaDeclaration, "before_delete", _check_declaration_delete),
        (FiscalYear, "before_update", _check_fiscal_year_immutability),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that deliberately plant rows the
    listeners would refuse.
    """
    for target, event_name, listener_fn in _listener_table():
        _safe_remove_listener(target, event_name, listener_fn)
