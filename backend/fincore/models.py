"""Value records exchanged between the engine and its callers.

Everything here is immutable and transient: callers load rules, categories and
price history from their own store, pass them in, and render whatever comes
back. Nothing in the engine keeps a reference to these objects.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

CategoryId = str


class MatchType(str, Enum):
    INCLUDES = "includes"
    STARTS_WITH = "startsWith"
    REGEX = "regex"

    @classmethod
    def parse(cls, raw: Any) -> "MatchType":
        """Accept an enum member or its stored spelling (``starts_with`` too)."""
        if isinstance(raw, cls):
            return raw
        key = str(raw or "").strip()
        if key in {"starts_with", "startswith"}:
            return cls.STARTS_WITH
        return cls(key)


class PriceLabel(str, Enum):
    CHEAP = "cheap"
    NORMAL = "normal"
    EXPENSIVE = "expensive"


class InstallmentLabel(str, Enum):
    INSTALLMENTS_BETTER = "installments_better"
    CASH_BETTER = "cash_better"
    SIMILAR = "similar"


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


class Rule(NamedTuple):
    """User-authored pattern -> category mapping. Higher ``priority`` wins."""

    pattern: str
    match_type: MatchType
    category_id: CategoryId
    priority: int = 0
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """Build a rule from a stored mapping (snake_case or camelCase keys).

        Raises ValueError when the match type is unknown or the category is
        missing.
        """
        category_id = _first(data, "category_id", "categoryId")
        if category_id is None or str(category_id) == "":
            raise ValueError("rule has no category_id")
        return cls(
            pattern=str(_first(data, "pattern", default="")),
            match_type=MatchType.parse(_first(data, "match_type", "matchType")),
            category_id=str(category_id),
            priority=int(_first(data, "priority", default=0)),
            enabled=bool(_first(data, "enabled", default=True)),
        )


class Category(NamedTuple):
    """Keyword-tagged category used when no explicit rule matches."""

    id: CategoryId
    keywords: Tuple[str, ...] = ()
    priority: int = 0
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Category":
        cat_id = _first(data, "id")
        if cat_id is None or str(cat_id) == "":
            raise ValueError("category has no id")
        keywords = _first(data, "keywords", default=())
        if isinstance(keywords, str):
            keywords = (keywords,)
        return cls(
            id=str(cat_id),
            keywords=tuple(str(k) for k in keywords),
            priority=int(_first(data, "priority", default=0)),
            name=_first(data, "name"),
        )


class PriceSample(NamedTuple):
    price: float


class PriceClassification(NamedTuple):
    label: PriceLabel
    delta_percent: int

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label.value, "delta_percent": self.delta_percent}


class PriceHistorySummary(NamedTuple):
    min_price: float
    max_price: float
    avg_price: int
    current_price: Optional[float]
    delta_vs_avg_percent: int
    delta_vs_min_percent: int
    is_at_historic_low: bool
    is_above_avg: bool
    data_points: int

    def to_dict(self) -> Dict[str, Any]:
        return self._asdict()


class InstallmentResult(NamedTuple):
    present_value: int
    total_nominal: int
    monthly_rate: float
    cash_price: Optional[float]
    difference_vs_cash: Optional[int]
    difference_percent: Optional[int]
    label: Optional[InstallmentLabel]

    def to_dict(self) -> Dict[str, Any]:
        out = self._asdict()
        out["label"] = self.label.value if self.label is not None else None
        return out


class MatchResult(NamedTuple):
    """Outcome of a category match plus the rules that had to be skipped.

    ``source`` is ``"rule"``, ``"keyword"`` or ``None`` when nothing matched;
    ``matched`` is the winning rule pattern or keyword.
    """

    category_id: Optional[CategoryId]
    source: Optional[str] = None
    matched: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out = self._asdict()
        out["warnings"] = list(self.warnings)
        return out


__all__ = [
    "CategoryId",
    "MatchType",
    "PriceLabel",
    "InstallmentLabel",
    "Rule",
    "Category",
    "PriceSample",
    "PriceClassification",
    "PriceHistorySummary",
    "InstallmentResult",
    "MatchResult",
]
