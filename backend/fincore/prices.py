"""Price judgement against the user's own purchase history.

No external price feeds: a price is only compared with what the user paid
before for the same product. The thresholds are fixed and symmetric around
the historical mean; with the small sample sizes a personal history has,
predictable labels matter more than clever ones.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from .models import PriceClassification, PriceHistorySummary, PriceLabel, PriceSample
from .safe_math import (
    is_finite_number,
    positive_values,
    round_half_up,
    safe_average,
    safe_divide,
)

CHEAP_THRESHOLD = 0.9
EXPENSIVE_THRESHOLD = 1.1
ABOVE_AVG_PERCENT = 5


def _sample_price(entry: Any) -> Any:
    if isinstance(entry, PriceSample):
        return entry.price
    if isinstance(entry, Mapping):
        return entry.get("price")
    return getattr(entry, "price", entry)


def history_prices(history: Iterable[Any] | None) -> List[float]:
    """Positive, finite prices out of ``PriceSample``s, ``{"price": ...}`` dicts or numbers."""
    return positive_values(_sample_price(e) for e in (history or ()))


def classify_price(price: Any, history: Iterable[Any] | None) -> Optional[PriceClassification]:
    """Label ``price`` as cheap / normal / expensive versus the historical mean.

    Returns ``None`` when there is nothing to compare with: empty history,
    a non-positive price, no positive samples, or a non-positive mean.
    """
    if not is_finite_number(price) or price <= 0:
        return None
    prices = history_prices(history)
    if not prices:
        return None
    avg = safe_average(prices)
    if avg is None or avg <= 0:
        return None

    ratio = safe_divide(price, avg, None)
    if ratio is None:
        return None
    delta_percent = round_half_up((ratio - 1) * 100)

    if ratio < CHEAP_THRESHOLD:
        label = PriceLabel.CHEAP
    elif ratio > EXPENSIVE_THRESHOLD:
        label = PriceLabel.EXPENSIVE
    else:
        label = PriceLabel.NORMAL
    return PriceClassification(label, delta_percent)


def _delta_percent(current: Optional[float], reference: float) -> int:
    if current is None or reference <= 0:
        return 0
    return round_half_up(safe_divide(current - reference, reference, 0) * 100)


def summarize_price_history(
    current_price: Any, history: Iterable[Any] | None
) -> Optional[PriceHistorySummary]:
    """Min / max / average of a product's history and where ``current_price`` sits.

    ``current_price`` may be ``None`` (nothing bought today); deltas are then
    zero. Returns ``None`` for an empty history.
    """
    prices = history_prices(history)
    if not prices:
        return None
    current = current_price if is_finite_number(current_price) and current_price > 0 else None
    min_price = min(prices)
    max_price = max(prices)
    avg_price = round_half_up(safe_average(prices, 0))

    delta_vs_avg = _delta_percent(current, avg_price)
    return PriceHistorySummary(
        min_price=min_price,
        max_price=max_price,
        avg_price=avg_price,
        current_price=current,
        delta_vs_avg_percent=delta_vs_avg,
        delta_vs_min_percent=_delta_percent(current, min_price),
        is_at_historic_low=current is not None and current <= min_price,
        is_above_avg=delta_vs_avg > ABOVE_AVG_PERCENT,
        data_points=len(prices),
    )


__all__ = [
    "CHEAP_THRESHOLD",
    "EXPENSIVE_THRESHOLD",
    "classify_price",
    "history_prices",
    "summarize_price_history",
]
