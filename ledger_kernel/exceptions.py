"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell a rejected entry from a missing record from a
write against a validated entry without parsing message strings.  Every
exception in this module therefore:

  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores the offending values as attributes (structured data)

Example:
    try:
        writer.create_entry(...)
    except UnbalancedEntryError as e:
        api_response(code=e.code, difference=str(e.difference))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- ValidationError
    |   +-- InsufficientLinesError
    |   +-- UnbalancedEntryError
    |   +-- InvalidAccountError
    |   +-- InvalidAmountError
    |   +-- InvalidTvaRateError
    |   +-- EntryDateOutOfRangeError
    |   +-- ClosedFiscalYearError
    |   +-- InactiveJournalError
    |   +-- TotalsMismatchError
    |   +-- InvalidAccountClassError
    |   +-- InvalidAccountDefinitionError
    |   +-- InvalidJournalError
    |   +-- InvalidFiscalYearError
    |   +-- InvalidDeclarationError
    |
    +-- ConflictError
    |   +-- DuplicateAccountCodeError
    |   +-- DuplicateJournalCodeError
    |   +-- DuplicateEntryNumberError
    |   +-- EntryAlreadyValidatedError
    |   +-- EntryNotValidatedError
    |   +-- EntryAlreadyReversedError
    |   +-- AccountReferencedError
    |   +-- FiscalYearOverlapError
    |   +-- FiscalYearAlreadyClosedError
    |   +-- DeclarationAlreadySubmittedError
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- JournalNotFoundError
    |   +-- FiscalYearNotFoundError
    |   +-- EntryNotFoundError
    |   +-- DeclarationNotFoundError
    |
    +-- ImmutabilityError
        +-- EntryImmutableError
        +-- DeclarationImmutableError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INSUFFICIENT_LINES          | Entry has fewer than two lines
                | UNBALANCED_ENTRY            | |debits - credits| >= 0.01
                | INVALID_ACCOUNT             | Title or inactive account on a line
                | INVALID_AMOUNT              | Negative, float or sub-cent amount
                | INVALID_TVA_RATE            | Rate not in {0, 7, 10, 14, 20}
                | ENTRY_DATE_OUT_OF_RANGE     | Date outside fiscal year bounds
                | CLOSED_FISCAL_YEAR          | Target fiscal year is closed
                | INACTIVE_JOURNAL            | Journal is deactivated
                | TOTALS_MISMATCH             | Header totals differ from lines
                | INVALID_ACCOUNT_CLASS       | Class outside 1-7
                | INVALID_ACCOUNT_DEFINITION  | Bad code, nature, type or parent
                | INVALID_JOURNAL             | Empty code or unknown journal type
                | INVALID_FISCAL_YEAR         | start_date >= end_date
                | INVALID_DECLARATION         | Bad VAT period, regime or amount
----------------|-----------------------------|-----------------------------------------
Conflict        | DUPLICATE_ACCOUNT_CODE      | Account code already used
                | DUPLICATE_JOURNAL_CODE      | Journal code already used
                | DUPLICATE_ENTRY_NUMBER      | Entry number already used
                | ENTRY_ALREADY_VALIDATED     | validate() on a validated entry
                | ENTRY_NOT_VALIDATED         | reverse() on a draft
                | ENTRY_ALREADY_REVERSED      | Second reversal of one entry
                | ACCOUNT_REFERENCED          | Delete of an account with lines
                | FISCAL_YEAR_OVERLAP         | Date range overlaps another year
                | FISCAL_YEAR_ALREADY_CLOSED  | close() on a closed year
                | DECLARATION_ALREADY_SUBMITTED | submit() on a submitted declaration
----------------|-----------------------------|-----------------------------------------
Not found       | ACCOUNT_NOT_FOUND, JOURNAL_NOT_FOUND, FISCAL_YEAR_NOT_FOUND,
                | ENTRY_NOT_FOUND, DECLARATION_NOT_FOUND
----------------|-----------------------------|-----------------------------------------
Immutability    | ENTRY_IMMUTABLE             | Edit/delete of a validated entry
                | DECLARATION_IMMUTABLE       | Edit/delete of a submitted declaration
                | IMMUTABILITY_VIOLATION      | ORM listener blocked a flush
"""

from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ERROR"


# =============================================================================
# Categories
# =============================================================================


class ValidationError(LedgerError):
    """Input rejected by a domain rule."""

    code: str = "VALIDATION_ERROR"


class ConflictError(LedgerError):
    """Operation conflicts with existing state."""

    code: str = "CONFLICT"


class NotFoundError(LedgerError):
    """A referenced record does not exist."""

    code: str = "NOT_FOUND"


class ImmutabilityError(LedgerError):
    """Attempt to modify a finalized record."""

    code: str = "IMMUTABILITY_ERROR"


# =============================================================================
# Validation errors
# =============================================================================


class InsufficientLinesError(ValidationError):
    """Entry must have at least two lines."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__(f"Entry requires at least 2 lines, got {line_count}")


class UnbalancedEntryError(ValidationError):
    """Total debits and total credits differ by at least one cent."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = total_debit - total_credit
        super().__init__(
            f"Entry is unbalanced: debits={total_debit}, credits={total_credit}, "
            f"difference={self.difference}"
        )


class InvalidAccountError(ValidationError):
    """Account cannot receive entry lines."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account {account_code}: {reason}")


class InvalidAmountError(ValidationError):
    """Monetary amount is negative, a float, or finer than a cent."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: object, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid amount {value!r}: {reason}")


class InvalidTvaRateError(ValidationError):
    code: str = "INVALID_TVA_RATE"

    def __init__(self, rate: object):
        self.rate = rate
        super().__init__(f"TVA rate {rate!r} is not one of 0, 7, 10, 14, 20")


class EntryDateOutOfRangeError(ValidationError):
    """Entry date falls outside the fiscal year bounds."""

    code: str = "ENTRY_DATE_OUT_OF_RANGE"

    def __init__(self, entry_date: str, start_date: str, end_date: str):
        self.entry_date = entry_date
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Entry date {entry_date} is outside fiscal year "
            f"{start_date} .. {end_date}"
        )


class ClosedFiscalYearError(ValidationError):
    """Entries cannot be written into or validated in a closed fiscal year."""

    code: str = "CLOSED_FISCAL_YEAR"

    def __init__(self, fiscal_year_name: str):
        self.fiscal_year_name = fiscal_year_name
        super().__init__(f"Fiscal year {fiscal_year_name} is closed")


class InactiveJournalError(ValidationError):
    code: str = "INACTIVE_JOURNAL"

    def __init__(self, journal_code: str):
        self.journal_code = journal_code
        super().__init__(f"Journal {journal_code} is inactive")


class TotalsMismatchError(ValidationError):
    """Stored header totals no longer match the sum of the lines."""

    code: str = "TOTALS_MISMATCH"

    def __init__(
        self,
        entry_id: str,
        header_debit: Decimal,
        header_credit: Decimal,
        line_debit: Decimal,
        line_credit: Decimal,
    ):
        self.entry_id = entry_id
        self.header_debit = header_debit
        self.header_credit = header_credit
        self.line_debit = line_debit
        self.line_credit = line_credit
        super().__init__(
            f"Entry {entry_id} header totals ({header_debit}/{header_credit}) "
            f"differ from line sums ({line_debit}/{line_credit})"
        )


class InvalidAccountClassError(ValidationError):
    code: str = "INVALID_ACCOUNT_CLASS"

    def __init__(self, account_class: object):
        self.account_class = account_class
        super().__init__(f"Account class must be 1-7, got {account_class!r}")


class InvalidAccountDefinitionError(ValidationError):
    """Account code, nature, type or parent is malformed."""

    code: str = "INVALID_ACCOUNT_DEFINITION"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account definition {account_code!r}: {reason}")


class InvalidJournalError(ValidationError):
    code: str = "INVALID_JOURNAL"

    def __init__(self, journal_code: str, reason: str):
        self.journal_code = journal_code
        self.reason = reason
        super().__init__(f"Invalid journal {journal_code!r}: {reason}")


class InvalidFiscalYearError(ValidationError):
    code: str = "INVALID_FISCAL_YEAR"

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid fiscal year {name}: {reason}")


class InvalidDeclarationError(ValidationError):
    code: str = "INVALID_DECLARATION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid TVA declaration: {reason}")


# =============================================================================
# Conflict errors
# =============================================================================


class DuplicateAccountCodeError(ConflictError):
    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code {account_code} already exists")


class DuplicateJournalCodeError(ConflictError):
    code: str = "DUPLICATE_JOURNAL_CODE"

    def __init__(self, journal_code: str):
        self.journal_code = journal_code
        super().__init__(f"Journal code {journal_code} already exists")


class DuplicateEntryNumberError(ConflictError):
    code: str = "DUPLICATE_ENTRY_NUMBER"

    def __init__(self, entry_number: str):
        self.entry_number = entry_number
        super().__init__(f"Entry number {entry_number} already exists")


class EntryAlreadyValidatedError(ConflictError):
    """validate() called on an entry that is not a draft."""

    code: str = "ENTRY_ALREADY_VALIDATED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} is already validated")


class EntryNotValidatedError(ConflictError):
    """Only validated entries can be reversed."""

    code: str = "ENTRY_NOT_VALIDATED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} is not validated")


class EntryAlreadyReversedError(ConflictError):
    code: str = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: str, reversal_entry_id: str):
        self.entry_id = entry_id
        self.reversal_entry_id = reversal_entry_id
        super().__init__(
            f"Entry {entry_id} was already reversed by {reversal_entry_id}"
        )


class AccountReferencedError(ConflictError):
    """Account cannot be deleted while entry lines reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is referenced by entry lines")


class FiscalYearOverlapError(ConflictError):
    code: str = "FISCAL_YEAR_OVERLAP"

    def __init__(self, name: str, existing_name: str):
        self.name = name
        self.existing_name = existing_name
        super().__init__(f"Fiscal year {name} overlaps {existing_name}")


class FiscalYearAlreadyClosedError(ConflictError):
    code: str = "FISCAL_YEAR_ALREADY_CLOSED"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Fiscal year {name} is already closed")


class DeclarationAlreadySubmittedError(ConflictError):
    code: str = "DECLARATION_ALREADY_SUBMITTED"

    def __init__(self, declaration_id: str):
        self.declaration_id = declaration_id
        super().__init__(f"TVA declaration {declaration_id} is already submitted")


# =============================================================================
# Not found errors
# =============================================================================


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str):
        self.account_ref = account_ref
        super().__init__(f"Account not found: {account_ref}")


class JournalNotFoundError(NotFoundError):
    code: str = "JOURNAL_NOT_FOUND"

    def __init__(self, journal_ref: str):
        self.journal_ref = journal_ref
        super().__init__(f"Journal not found: {journal_ref}")


class FiscalYearNotFoundError(NotFoundError):
    code: str = "FISCAL_YEAR_NOT_FOUND"

    def __init__(self, fiscal_year_ref: str):
        self.fiscal_year_ref = fiscal_year_ref
        super().__init__(f"Fiscal year not found: {fiscal_year_ref}")


class EntryNotFoundError(NotFoundError):
    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")


class DeclarationNotFoundError(NotFoundError):
    code: str = "DECLARATION_NOT_FOUND"

    def __init__(self, declaration_id: str):
        self.declaration_id = declaration_id
        super().__init__(f"TVA declaration not found: {declaration_id}")


# =============================================================================
# Immutability errors
# =============================================================================


class EntryImmutableError(ImmutabilityError):
    """Validated entries cannot be edited or deleted."""

    code: str = "ENTRY_IMMUTABLE"

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(f"Cannot {operation} validated entry {entry_id}")


class DeclarationImmutableError(ImmutabilityError):
    code: str = "DECLARATION_IMMUTABLE"

    def __init__(self, declaration_id: str, operation: str):
        self.declaration_id = declaration_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} submitted TVA declaration {declaration_id}"
        )


class ImmutabilityViolationError(ImmutabilityError):
    """Raised by ORM listeners when a flush would alter a finalized row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
