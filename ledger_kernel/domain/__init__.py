"""Pure domain core: DTOs, clock, chart conventions, ledger folds, VAT arithmetic."""
