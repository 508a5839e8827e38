"""
Configuration loader (``ledger_config.loader``).

Responsibility
--------------
Reads the settings file and chart definition YAML files and parses them
into the frozen dataclasses of ``ledger_config.schema``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields never get silent defaults.
* Account and journal codes are unique within a chart; every parent_code
  names a title account of the same chart.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed content.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad values (class, nature, type, tolerance)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import AccountDef, ChartDefinition, JournalDef, LedgerSettings

_logger = logging.getLogger("ledger_kernel.config")

DEFAULTS_DIR = Path(__file__).parent / "defaults"
DEFAULT_SETTINGS_PATH = DEFAULTS_DIR / "settings.yaml"
DEFAULT_CHART_PATH = DEFAULTS_DIR / "plan_comptable.yaml"

DATABASE_URL_ENV = "LEDGER_DATABASE_URL"

_NATURES = ("debit", "credit")
_ACCOUNT_TYPES = ("detail", "title")
_JOURNAL_TYPES = ("purchases", "sales", "bank", "cash", "general")
_SETTINGS_KEYS = frozenset(
    {"currency", "database_url", "balance_tolerance", "chart_path", "echo_sql"}
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def parse_tolerance(value: Any) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        tolerance = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"balance_tolerance is not a number: {value!r}")
    if not tolerance.is_finite() or tolerance <= 0:
        raise ValueError(f"balance_tolerance must be positive, got {value!r}")
    return tolerance


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    section = data.get("ledger", data)
    unknown = set(section) - _SETTINGS_KEYS
    if unknown:
        raise ValueError(f"Unknown settings keys: {sorted(unknown)}")

    defaults = LedgerSettings()
    return LedgerSettings(
        currency=str(section.get("currency", defaults.currency)),
        database_url=str(section.get("database_url", defaults.database_url)),
        balance_tolerance=parse_tolerance(
            section.get("balance_tolerance", defaults.balance_tolerance)
        ),
        chart_path=section.get("chart_path"),
        echo_sql=bool(section.get("echo_sql", False)),
    )


def load_settings(path: Path | str | None = None) -> LedgerSettings:
    """
    Load settings from YAML (the bundled defaults when ``path`` is None).

    The ``LEDGER_DATABASE_URL`` environment variable, when set, replaces
    ``database_url``.
    """
    path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = parse_settings(load_yaml_file(path))

    override = os.environ.get(DATABASE_URL_ENV)
    if override:
        settings = LedgerSettings(
            currency=settings.currency,
            database_url=override,
            balance_tolerance=settings.balance_tolerance,
            chart_path=settings.chart_path,
            echo_sql=settings.echo_sql,
        )
    _logger.debug(
        "settings_loaded",
        extra={"settings_path": str(path), "database_url_from_env": bool(override)},
    )
    return settings


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------


def parse_account(data: dict[str, Any]) -> AccountDef:
    """
    Parse an ``AccountDef``.

    ``code``, ``name`` and ``nature`` are required.  ``account_class``
    defaults to the first digit of the code (the CGNC numbering rule).
    """
    # YAML reads 3421 as an int
    code = str(data["code"]).strip()
    if not code:
        raise ValueError("Account code must not be empty")
    account_class = int(data.get("account_class", code[0]))
    if account_class not in range(1, 8):
        raise ValueError(f"Account {code}: class must be 1..7, got {account_class}")
    nature = data["nature"]
    if nature not in _NATURES:
        raise ValueError(f"Account {code}: nature must be debit or credit, got {nature!r}")
    account_type = data.get("type", "detail")
    if account_type not in _ACCOUNT_TYPES:
        raise ValueError(f"Account {code}: type must be detail or title, got {account_type!r}")
    parent = data.get("parent")
    return AccountDef(
        code=code,
        name=data["name"],
        account_class=account_class,
        nature=nature,
        account_type=account_type,
        parent_code=str(parent) if parent is not None else None,
    )


def parse_journal(data: dict[str, Any]) -> JournalDef:
    journal_type = data["type"]
    if journal_type not in _JOURNAL_TYPES:
        raise ValueError(f"Journal {data.get('code')}: unknown type {journal_type!r}")
    return JournalDef(code=str(data["code"]), name=data["name"], journal_type=journal_type)


def parse_chart(data: dict[str, Any]) -> ChartDefinition:
    accounts = tuple(parse_account(a) for a in data.get("accounts", []))
    journals = tuple(parse_journal(j) for j in data.get("journals", []))

    codes = [a.code for a in accounts]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ValueError(f"Duplicate account codes: {duplicates}")
    journal_codes = [j.code for j in journals]
    if len(set(journal_codes)) != len(journal_codes):
        raise ValueError("Duplicate journal codes")

    titles = {a.code for a in accounts if a.account_type == "title"}
    for account in accounts:
        if account.parent_code is None:
            continue
        if account.parent_code not in titles:
            raise ValueError(
                f"Account {account.code}: parent {account.parent_code} is not a title account of the chart"
            )
        if not account.code.startswith(account.parent_code) or account.code == account.parent_code:
            raise ValueError(
                f"Account {account.code}: parent {account.parent_code} is not a prefix of the code"
            )

    return ChartDefinition(
        name=data["name"],
        version=int(data.get("version", 1)),
        currency=data.get("currency", "MAD"),
        accounts=accounts,
        journals=journals,
        checksum=compute_checksum(data),
    )


def load_chart(path: Path | str | None = None) -> ChartDefinition:
    """Load a chart definition (the bundled plan comptable when ``path`` is None)."""
    path = Path(path) if path is not None else DEFAULT_CHART_PATH
    chart = parse_chart(load_yaml_file(path))
    _logger.info(
        "chart_loaded",
        extra={
            "chart": chart.name,
            "version": chart.version,
            "account_count": len(chart.accounts),
            "journal_count": len(chart.journals),
            "checksum": chart.checksum,
        },
    )
    return chart


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; same data, same hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
