from decimal import Decimal

import pytest

from cineseat.core.errors import SeatConfigurationError
from cineseat.utils.pricing import compute_total, derive_category

PRICES = {"Classic": 800, "Prime": 1200, "Superior": 1500}


def test_compute_total_sums_category_prices():
    assert compute_total(PRICES, ["A1", "D2", "G3"]) == 3500


def test_compute_total_accepts_stored_string_prices():
    prices = {"Classic": "800.50", "Prime": "1200", "Superior": "1500"}
    assert compute_total(prices, ["B3", "B4"]) == Decimal("1601.00")


def test_compute_total_missing_category_price():
    with pytest.raises(SeatConfigurationError):
        compute_total({"Classic": 800}, ["H1"])


def test_derive_category_single():
    assert derive_category(["A1", "A2"]) == "Classic"
    assert derive_category(["G1", "H10"]) == "Superior"


def test_derive_category_mixed():
    assert derive_category(["A1", "D2"]) == "Mixed"
