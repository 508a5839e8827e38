"""
Chart-of-accounts conventions (Moroccan CGNC).

Pure lookups: class labels, balance-sheet/income-statement placement of each
class, and the parent/child code rule used by AccountService.
"""

from ledger_kernel.exceptions import InvalidAccountClassError

ACCOUNT_CLASSES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)

CLASS_LABELS: dict[int, str] = {
    1: "Financement permanent",
    2: "Actif immobilisé",
    3: "Actif circulant",
    4: "Passif circulant",
    5: "Trésorerie",
    6: "Charges",
    7: "Produits",
}

CLASS_LABELS_EN: dict[int, str] = {
    1: "Financing",
    2: "Fixed assets",
    3: "Current assets",
    4: "Current liabilities",
    5: "Treasury",
    6: "Expenses",
    7: "Revenue",
}

# Balance sheet placement (Bilan)
ASSET_CLASSES: tuple[int, ...] = (2, 3, 5)
LIABILITY_CLASSES: tuple[int, ...] = (1, 4)

# Income statement placement (CPC)
EXPENSE_CLASS = 6
REVENUE_CLASS = 7


def validate_account_class(account_class: object) -> int:
    """Return account_class if it is an int in 1..7, else raise."""
    if isinstance(account_class, bool) or not isinstance(account_class, int):
        raise InvalidAccountClassError(account_class)
    if account_class not in ACCOUNT_CLASSES:
        raise InvalidAccountClassError(account_class)
    return account_class


def class_label(account_class: int, lang: str = "fr") -> str:
    """Human label for an account class."""
    validate_account_class(account_class)
    labels = CLASS_LABELS if lang == "fr" else CLASS_LABELS_EN
    return labels[account_class]


def is_valid_parent_code(parent_code: str, child_code: str) -> bool:
    """A parent code must be a strict prefix of its child's code."""
    return len(parent_code) < len(child_code) and child_code.startswith(parent_code)
