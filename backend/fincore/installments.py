"""Installments vs. cash, in today's money.

Monthly rate from an annual inflation assumption:

    i_m = (1 + i_annual) ** (1 / 12) - 1

Present value of ``count`` equal installments paid at the end of each month:

    PV = sum(amount / (1 + i_m) ** k for k in 1..count)

With a positive cash price the two are compared; differences within
``SIMILARITY_BAND_PERCENT`` are reported as "similar" rather than as a
preference.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from .models import InstallmentLabel, InstallmentResult
from .safe_math import is_finite_number, round_half_up, safe_divide, safe_round

logger = logging.getLogger(__name__)

SIMILARITY_BAND_PERCENT = 3


def monthly_rate_from_annual(annual_inflation_percent: Any) -> float:
    """Effective monthly rate (fraction) for an annual percentage.

    Rates at or below -100 % have no real monthly equivalent and are treated
    as zero, as are non-finite inputs.
    """
    if not is_finite_number(annual_inflation_percent):
        return 0.0
    base = 1 + annual_inflation_percent / 100
    if base <= 0:
        logger.debug("annual rate %s%% has no monthly equivalent", annual_inflation_percent)
        return 0.0
    rate = base ** (1 / 12) - 1
    return rate if math.isfinite(rate) else 0.0


def present_value(installment_amount: Any, count: Any, monthly_rate: float) -> float:
    if not is_finite_number(installment_amount) or not is_finite_number(count):
        return 0.0
    total = 0.0
    growth = 1 + monthly_rate
    for k in range(1, int(count) + 1):
        try:
            discount = growth**k
        except OverflowError:
            # remaining installments are worth nothing at this rate
            break
        total += safe_divide(installment_amount, discount, 0)
    return total


def evaluate_installments(
    installment_amount: Any,
    count: Any,
    annual_inflation_percent: Any,
    cash_price: Any = None,
) -> InstallmentResult:
    """Present value of an installment plan and, optionally, how it compares to cash.

    ``monthly_rate`` in the result is a percentage with two decimals.
    Comparison fields (``cash_price``, ``difference_vs_cash``,
    ``difference_percent``, ``label``) are ``None`` unless ``cash_price``
    is positive.
    """
    monthly = monthly_rate_from_annual(annual_inflation_percent)
    pv = round_half_up(present_value(installment_amount, count, monthly))
    nominal = (
        round_half_up(installment_amount * count)
        if is_finite_number(installment_amount) and is_finite_number(count)
        else 0
    )
    monthly_pct = safe_round(monthly * 10000, 0, 0) / 100

    cash = cash_price if is_finite_number(cash_price) and cash_price > 0 else None
    difference = None
    difference_percent = None
    label = None
    if cash is not None:
        difference = round_half_up(pv - cash)
        difference_percent = round_half_up(safe_divide(pv - cash, cash, 0) * 100)
        if abs(difference_percent) <= SIMILARITY_BAND_PERCENT:
            label = InstallmentLabel.SIMILAR
        elif pv < cash:
            label = InstallmentLabel.INSTALLMENTS_BETTER
        else:
            label = InstallmentLabel.CASH_BETTER

    return InstallmentResult(
        present_value=pv,
        total_nominal=nominal,
        monthly_rate=monthly_pct,
        cash_price=cash,
        difference_vs_cash=difference,
        difference_percent=difference_percent,
        label=label,
    )


__all__ = [
    "SIMILARITY_BAND_PERCENT",
    "evaluate_installments",
    "monthly_rate_from_annual",
    "present_value",
]
