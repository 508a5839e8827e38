"""
ledger_config -- settings and chart-of-accounts configuration.

Responsibility:
    Loads runtime settings (YAML, with a LEDGER_DATABASE_URL override) and
    chart definitions (plan comptable plus journals), and seeds a database
    from a chart.

Architecture position:
    Sits above ``ledger_kernel``: it calls kernel services to seed data.
    The kernel never imports from ``ledger_config``; services receive plain
    values (for example ``balance_tolerance``) from the caller.
"""

from ledger_config.bootstrap import BootstrapResult, bootstrap_chart, init_ledger
from ledger_config.loader import (
    DEFAULT_CHART_PATH,
    compute_checksum,
    load_chart,
    load_settings,
)
from ledger_config.schema import AccountDef, ChartDefinition, JournalDef, LedgerSettings

__all__ = [
    "AccountDef",
    "BootstrapResult",
    "ChartDefinition",
    "DEFAULT_CHART_PATH",
    "JournalDef",
    "LedgerSettings",
    "bootstrap_chart",
    "compute_checksum",
    "init_ledger",
    "load_chart",
    "load_settings",
]
