"""Shared books for selector tests."""

from datetime import date

import pytest


@pytest.fixture
def fleet_books(post_entry):
    """
    A month of fleet activity, all validated, plus one draft.

        OD-1   capital paid in           5141 D 10000 / 1111 C 10000
        VTE-1  transport invoice         3421 D 1200 / 7124 C 1000 / 4455 C 200
        ACH-1  fuel                      6122 D 500 / 3455 D 100 / 4411 C 600
        BQ-1   supplier paid             4411 D 600 / 5141 C 600
        OD-2   draft, never validated    6133 D 999 / 5161 C 999
    """
    return [
        post_entry(
            "OD-1", date(2024, 1, 2), "OD",
            [("5141", "10000.00", "0", "Apport"), ("1111", "0", "10000.00")],
            description="Constitution",
        ),
        post_entry(
            "VTE-1", date(2024, 1, 10), "VTE",
            [("3421", "1200.00", "0"), ("7124", "0", "1000.00"), ("4455", "0", "200.00")],
            description="Facture F-001",
        ),
        post_entry(
            "ACH-1", date(2024, 1, 15), "ACH",
            [("6122", "500.00", "0"), ("3455", "100.00", "0"), ("4411", "0", "600.00")],
            description="Carburant janvier",
        ),
        post_entry(
            "BQ-1", date(2024, 1, 31), "BQ",
            [("4411", "600.00", "0"), ("5141", "0", "600.00")],
        ),
        post_entry(
            "OD-2", date(2024, 1, 20), "OD",
            [("6133", "999.00", "0"), ("5161", "0", "999.00")],
            validate=False,
        ),
    ]
