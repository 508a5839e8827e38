"""
Ledger bootstrap -- seeds a chart definition into the database.

Responsibility:
    Creates the accounts and journals of a ``ChartDefinition`` through the
    kernel services, so every kernel validation applies to seeded data too.
    Re-running it is harmless: existing codes are skipped.

Invariants enforced:
    - Title accounts are created before detail accounts and parents before
      children (ordered by type, then code length, then code).
    - Existing accounts/journals are never modified.
    - Flush-only (the caller commits), except init_ledger which runs in its
      own session_scope.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ledger_config.loader import load_chart, load_settings
from ledger_config.schema import ChartDefinition, LedgerSettings
from ledger_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from ledger_kernel.exceptions import AccountNotFoundError, JournalNotFoundError
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalService

_logger = logging.getLogger("ledger_kernel.config.bootstrap")


@dataclass(frozen=True)
class BootstrapResult:
    accounts_created: int
    journals_created: int
    accounts_skipped: int
    journals_skipped: int


def _creation_order(chart: ChartDefinition):
    return sorted(
        chart.accounts,
        key=lambda a: (a.account_type != "title", len(a.code), a.code),
    )


def bootstrap_chart(
    session: Session,
    chart: ChartDefinition,
    *,
    actor_id: UUID,
) -> BootstrapResult:
    """Create the chart's missing accounts and journals."""
    accounts = AccountService(session)
    journals = JournalService(session)

    accounts_created = accounts_skipped = 0
    for account in _creation_order(chart):
        try:
            accounts.get_account_by_code(account.code)
        except AccountNotFoundError:
            accounts.create_account(
                account.code,
                account.name,
                account.account_class,
                account.nature,
                account_type=account.account_type,
                parent_code=account.parent_code,
                actor_id=actor_id,
            )
            accounts_created += 1
        else:
            accounts_skipped += 1

    journals_created = journals_skipped = 0
    for journal in chart.journals:
        try:
            journals.get_journal_by_code(journal.code)
        except JournalNotFoundError:
            journals.create_journal(
                journal.code, journal.name, journal.journal_type, actor_id=actor_id
            )
            journals_created += 1
        else:
            journals_skipped += 1

    result = BootstrapResult(
        accounts_created=accounts_created,
        journals_created=journals_created,
        accounts_skipped=accounts_skipped,
        journals_skipped=journals_skipped,
    )
    _logger.info(
        "chart_bootstrapped",
        extra={
            "chart": chart.name,
            "checksum": chart.checksum,
            "accounts_created": accounts_created,
            "journals_created": journals_created,
            "accounts_skipped": accounts_skipped,
            "journals_skipped": journals_skipped,
        },
    )
    return result


def init_ledger(
    settings: LedgerSettings | None = None,
    *,
    actor_id: UUID,
) -> Engine:
    """
    Initialize the engine from settings, create the schema and seed the chart.

    Usage:
        engine = init_ledger(load_settings(), actor_id=SYSTEM_ACTOR)
    """
    settings = settings or load_settings()
    engine = init_engine_from_url(settings.database_url, echo=settings.echo_sql)
    create_tables(engine)
    chart = load_chart(settings.chart_path)
    with session_scope() as session:
        bootstrap_chart(session, chart, actor_id=actor_id)
    return engine
