"""
tests/test_ledger_math.py — Unit Tests for Token Arithmetic
============================================================
"""

from __future__ import annotations

import pytest

from slrp_economy.engine.ledger_math import (
    clamp_to_cap,
    inflation_rate,
    seasonal_share,
    transfer_tax,
)


class TestClampToCap:
    def test_fits_entirely(self):
        assert clamp_to_cap(50, 100, 250) == (50, 150)

    def test_truncated_to_remaining(self):
        assert clamp_to_cap(50, 238, 250) == (12, 12)

    def test_exhausted_grants_zero(self):
        granted, remaining = clamp_to_cap(25, 250, 250)
        assert granted == 0
        assert remaining == 0

    def test_never_negative_when_over_cap(self):
        # Cap lowered by an owner after users already earned more.
        granted, remaining = clamp_to_cap(25, 300, 250)
        assert granted == 0
        assert remaining == -50


class TestTransferTax:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [(100, 5), (1, 1), (20, 1), (21, 2), (300, 15), (1000, 50)],
    )
    def test_rounds_up(self, amount, expected):
        assert transfer_tax(amount, 0.05) == expected

    def test_zero_rate(self):
        assert transfer_tax(100, 0.0) == 0


class TestSeasonalShare:
    def test_floors(self):
        assert seasonal_share(25, 1.5) == 37

    def test_exact_product_is_not_floored_down(self):
        # 0.1 * 30 is 3.0000000000000004 in floats
        assert seasonal_share(30, 0.1) == 3

    def test_small_multiplier_can_mint_nothing(self):
        assert seasonal_share(3, 0.1) == 0


class TestInflationRate:
    def test_ratio_in_percent(self):
        assert inflation_rate(750, 1000) == 75.0

    def test_rounded_to_one_decimal(self):
        assert inflation_rate(1, 3) == 33.3

    def test_nothing_earned(self):
        assert inflation_rate(0, 0) == 0.0
