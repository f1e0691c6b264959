"""
slrp_economy.engine.ledger_math — Token arithmetic
===================================================

Small pure helpers shared by the services: cap clamping, transfer tax,
seasonal multiplier shares and the inflation figure on the owner stats
page.  All amounts are whole tokens.
"""

from __future__ import annotations

import math


def clamp_to_cap(requested: int, already_earned: int, cap: int) -> tuple[int, int]:
    """Return ``(granted, remaining)`` for an earn request.

    ``remaining`` is the allowance before this request.  ``granted`` is
    ``min(requested, remaining)`` and never negative; a zero grant means the
    caller must reject the award rather than record it.
    """
    remaining = cap - already_earned
    granted = max(0, min(requested, remaining))
    return granted, remaining


def transfer_tax(amount: int, rate: float) -> int:
    """Tax on a transfer, always rounded up to a whole token."""
    # 300 * 0.05 == 15.000000000000002 in floats; must stay 15
    return math.ceil(round(amount * rate, 9))


def seasonal_share(granted: int, multiplier: float) -> int:
    """Seasonal currency minted alongside an earn: ``floor(granted * multiplier)``."""
    return math.floor(round(granted * multiplier, 9))


def inflation_rate(circulation: int, total_earned: int) -> float:
    """Share of everything ever earned that is still in circulation, in percent."""
    if total_earned <= 0:
        return 0.0
    return round(circulation / total_earned * 100, 1)
