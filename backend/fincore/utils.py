"""Small pandas helpers for callers holding movements / purchases in a DataFrame."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import pandas as pd

from .models import PriceSample
from .normalize import normalize_text


def ensure_dates(df: pd.DataFrame, date_col: str = "date") -> pd.DataFrame:
    """Return a DataFrame where ``date_col`` is coerced to datetime (copy on write).

    If the column is absent, the original frame is returned unchanged.
    """
    if date_col in df.columns and not pd.api.types.is_datetime64_any_dtype(
        df[date_col]
    ):
        df = df.copy()
        df[date_col] = pd.to_datetime(df[date_col], errors="coerce")
    return df


def price_history_from_frame(
    df: pd.DataFrame,
    product: str,
    *,
    days: Optional[int] = 90,
    now: Optional[datetime] = None,
    product_col: str = "product",
    price_col: str = "price",
    date_col: str = "date",
) -> List[PriceSample]:
    """Past prices paid for ``product``, newest first.

    Product names are compared after normalization so "Yerba MP" and
    "yerba mercado pago" are the same key. With ``days`` set, only rows dated
    within that window (relative to ``now``) are kept; rows with unparseable
    dates are dropped in that case. Non-positive or missing prices are
    skipped.
    """
    if df is None or df.empty or product_col not in df.columns or price_col not in df.columns:
        return []
    key = normalize_text(product)
    if not key:
        return []
    rows = df[df[product_col].map(normalize_text) == key]
    rows = rows.assign(**{price_col: pd.to_numeric(rows[price_col], errors="coerce")})
    rows = rows[rows[price_col] > 0]
    if date_col in rows.columns:
        rows = ensure_dates(rows, date_col)
        if days is not None:
            cutoff = pd.Timestamp(now or datetime.now()) - pd.Timedelta(days=days)
            rows = rows[rows[date_col] >= cutoff]
        rows = rows.sort_values(date_col, ascending=False, kind="stable")
    return [PriceSample(float(p)) for p in rows[price_col]]


__all__ = ["ensure_dates", "price_history_from_frame"]
