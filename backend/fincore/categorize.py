"""Rule-first transaction categorization.

A description is matched in two tiers:

  1. User rules (``Rule``). Only enabled rules take part; they are tried in
     descending ``priority`` order (ties keep the caller's order) and the
     first hit decides. Match types:
         includes    normalized description contains the lower-cased pattern
         startsWith  normalized description starts with the lower-cased pattern
         regex       pattern searched case-insensitively
  2. Keyword categories (``Category``), again by descending ``priority``
     with stable ties; keywords are tried in declared order as
     case-insensitive substrings. The first category with any hit wins.

If neither tier matches the result is ``None``. Explicit rules always beat
keyword categories, which is what lets a user settle overlaps such as
"netflix" appearing under both subscriptions and leisure.

Malformed input never aborts a match: a rule with an invalid regex, an
unknown match type or an empty pattern is skipped, logged once, and
reported in ``MatchResult.warnings``. This departs from the plain
substring rule on purpose: an empty ``includes`` pattern is skipped rather
than matching every description.

Batch helpers (``categorize_records``, ``add_categories``) enrich movement
records with ``merchant_norm`` and ``category_id`` for callers that
re-categorize their whole store after editing rules.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import (
    Any,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Pattern,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)

from .models import Category, CategoryId, MatchResult, MatchType, Rule
from .normalize import TextNormalizer, _normalize_default, normalize_text
from .safe_math import is_finite_number

if TYPE_CHECKING:
    # Only import pandas for type checking to avoid hard runtime dependency at import time
    import pandas as pd  # type: ignore

logger = logging.getLogger(__name__)


# Seeded keyword categories. Subscriptions outrank leisure so "netflix" lands
# there by default; rent outranks everything.
DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category(
        "food",
        (
            "supermercado", "verdulería", "carnicería", "panadería", "almacén",
            "delivery", "restaurant", "café", "comida", "desayuno", "almuerzo",
            "cena", "merienda",
        ),
        10,
        "Food",
    ),
    Category(
        "transport",
        (
            "uber", "cabify", "colectivo", "subte", "tren", "taxi", "nafta",
            "combustible", "estacionamiento", "peaje", "transporte",
        ),
        10,
        "Transport",
    ),
    Category(
        "leisure",
        (
            "cine", "teatro", "bar", "boliche", "entretenimiento", "juego",
            "salida", "streaming", "spotify", "netflix",
        ),
        10,
        "Leisure",
    ),
    Category(
        "subscriptions",
        (
            "netflix", "spotify", "amazon", "disney", "hbo", "suscripción",
            "membresía", "premium",
        ),
        15,
        "Subscriptions",
    ),
    Category(
        "shopping",
        (
            "ropa", "zapatillas", "zapatos", "remera", "pantalón", "campera",
            "tienda", "shopping",
        ),
        10,
        "Shopping",
    ),
    Category(
        "services",
        ("internet", "celular", "teléfono", "luz", "gas", "agua", "expensas", "servicio"),
        10,
        "Services",
    ),
    Category(
        "health",
        (
            "farmacia", "médico", "doctor", "dentista", "kinesiología", "terapia",
            "medicamento", "análisis",
        ),
        10,
        "Health",
    ),
    Category(
        "education",
        (
            "curso", "libro", "universidad", "facultad", "colegio", "educación",
            "capacitación",
        ),
        10,
        "Education",
    ),
    Category("rent", ("alquiler", "renta", "departamento", "casa"), 20, "Rent"),
)


class _CompiledPattern(NamedTuple):
    regex: Optional[Pattern]
    error: Optional[str]


@lru_cache(maxsize=512)
def _compile_pattern(pattern: str) -> _CompiledPattern:
    try:
        return _CompiledPattern(re.compile(pattern, re.IGNORECASE), None)
    except re.error as exc:
        logger.warning("Invalid regex in category rule %r: %s", pattern, exc)
        return _CompiledPattern(None, str(exc))


def _priority(value: Any) -> float:
    return value if is_finite_number(value) else 0


def _coerce_rules(rules: Iterable[Any] | None, warnings: List[str]) -> List[Rule]:
    out: List[Rule] = []
    for item in rules or ():
        try:
            if isinstance(item, Rule):
                rule = item
            elif isinstance(item, Mapping):
                rule = Rule.from_dict(item)
            else:
                raise TypeError(f"unsupported rule type {type(item).__name__}")
        except (TypeError, ValueError, OverflowError) as exc:
            warnings.append(f"skipped malformed rule {item!r}: {exc}")
            continue
        out.append(rule)
    return out


def _coerce_categories(
    categories: Iterable[Any] | None, warnings: List[str]
) -> List[Category]:
    out: List[Category] = []
    for item in categories or ():
        try:
            if isinstance(item, Category):
                cat = item
            elif isinstance(item, Mapping):
                cat = Category.from_dict(item)
            else:
                raise TypeError(f"unsupported category type {type(item).__name__}")
        except (TypeError, ValueError, OverflowError) as exc:
            warnings.append(f"skipped malformed category {item!r}: {exc}")
            continue
        out.append(cat)
    return out


class _Prepared(NamedTuple):
    rules: Tuple[Rule, ...]
    categories: Tuple[Category, ...]
    warnings: Tuple[str, ...]


def _prepare(rules: Iterable[Any] | None, categories: Iterable[Any] | None) -> _Prepared:
    """Coerce inputs and order them once; ``sorted`` is stable, ties keep input order."""
    warnings: List[str] = []
    enabled = [r for r in _coerce_rules(rules, warnings) if r.enabled]
    ordered_rules = sorted(enabled, key=lambda r: _priority(r.priority), reverse=True)
    ordered_cats = sorted(
        _coerce_categories(categories, warnings),
        key=lambda c: _priority(c.priority),
        reverse=True,
    )
    return _Prepared(tuple(ordered_rules), tuple(ordered_cats), tuple(warnings))


def _rule_matches(rule: Rule, normalized: str, warnings: List[str]) -> bool:
    pattern = rule.pattern
    if not isinstance(pattern, str) or not pattern:
        warnings.append(f"skipped rule for '{rule.category_id}': empty pattern")
        return False
    try:
        match_type = MatchType.parse(rule.match_type)
    except ValueError:
        warnings.append(
            f"skipped rule '{pattern}': unknown match type {rule.match_type!r}"
        )
        return False
    if match_type is MatchType.INCLUDES:
        return pattern.lower() in normalized
    if match_type is MatchType.STARTS_WITH:
        return normalized.startswith(pattern.lower())
    compiled = _compile_pattern(pattern)
    if compiled.regex is None:
        warnings.append(f"skipped rule '{pattern}': invalid regex ({compiled.error})")
        return False
    return compiled.regex.search(normalized) is not None


def _match_prepared(normalized: str, prepared: _Prepared) -> MatchResult:
    warnings: List[str] = list(prepared.warnings)
    if not normalized:
        return MatchResult(None, warnings=tuple(warnings))

    for rule in prepared.rules:
        if _rule_matches(rule, normalized, warnings):
            return MatchResult(rule.category_id, "rule", rule.pattern, tuple(warnings))

    for cat in prepared.categories:
        for keyword in cat.keywords:
            if isinstance(keyword, str) and keyword and keyword.lower() in normalized:
                return MatchResult(cat.id, "keyword", keyword, tuple(warnings))

    return MatchResult(None, warnings=tuple(warnings))


def _normalizer_for(normalizer: TextNormalizer | None):
    return normalizer.normalize if normalizer is not None else normalize_text


def match_category_with_diagnostics(
    description: Any,
    rules: Iterable[Any] | None,
    categories: Iterable[Any] | None,
    normalizer: TextNormalizer | None = None,
) -> MatchResult:
    """Match ``description`` and report where the decision came from.

    Returns a ``MatchResult`` whose ``warnings`` list every rule or category
    that had to be skipped on the way (invalid regex, unknown match type,
    malformed mapping). Never raises.
    """
    if not isinstance(description, str) or not description:
        return MatchResult(None)
    normalized = _normalizer_for(normalizer)(description)
    return _match_prepared(normalized, _prepare(rules, categories))


def match_category(
    description: Any,
    rules: Iterable[Any] | None,
    categories: Iterable[Any] | None,
    normalizer: TextNormalizer | None = None,
) -> Optional[CategoryId]:
    return match_category_with_diagnostics(
        description, rules, categories, normalizer
    ).category_id


def categorize_description(
    description: Any,
    rules: Iterable[Any] | None = (),
    categories: Iterable[Any] | None = DEFAULT_CATEGORIES,
) -> Optional[CategoryId]:
    """Shortcut for intake handlers: user rules over the seeded categories."""
    return match_category(description, rules, categories)


def category_name(
    category_id: Optional[CategoryId], categories: Iterable[Any] | None
) -> Optional[str]:
    """Display name of ``category_id`` (falls back to the id when unnamed)."""
    if not category_id:
        return None
    for cat in _coerce_categories(categories, []):
        if cat.id == category_id:
            return cat.name or cat.id
    return None


def categorize_records(
    records: Sequence[Mapping[str, Any]],
    rules: Iterable[Any] | None = (),
    categories: Iterable[Any] | None = DEFAULT_CATEGORIES,
    *,
    description_key: str = "description",
    normalizer: TextNormalizer | None = None,
) -> List[dict]:
    """Return copies of ``records`` with ``merchant_norm`` and ``category_id`` set.

    Rules and categories are prepared once for the whole batch. Non-mapping
    entries are passed through as empty records.
    """
    prepared = _prepare(rules, categories)
    norm = _normalizer_for(normalizer)
    out: List[dict] = []
    for rec in records or ():
        row = dict(rec) if isinstance(rec, Mapping) else {}
        desc = row.get(description_key)
        normalized = norm(desc)
        row["merchant_norm"] = normalized
        row["category_id"] = (
            _match_prepared(normalized, prepared).category_id
            if isinstance(desc, str) and desc
            else None
        )
        out.append(row)
    return out


def add_categories(
    df: "pd.DataFrame",
    rules: Iterable[Any] | None = (),
    categories: Iterable[Any] | None = DEFAULT_CATEGORIES,
    *,
    overwrite: bool = False,
    normalizer: TextNormalizer | None = None,
) -> "pd.DataFrame":
    """Add ``merchant_norm`` / ``category_id`` columns to a movements frame.

    Keeps an existing ``category_id`` column intact unless ``overwrite`` is
    set. Safe on empty frames or frames without a ``description`` column.
    """
    if df is None or df.empty or "description" not in df.columns:
        return df
    if "category_id" in df.columns and not overwrite:
        return df
    prepared = _prepare(rules, categories)
    norm = _normalizer_for(normalizer)
    out = df.copy()
    out["merchant_norm"] = out["description"].map(norm)
    out["category_id"] = [
        _match_prepared(n, prepared).category_id if isinstance(d, str) and d else None
        for d, n in zip(out["description"], out["merchant_norm"])
    ]
    return out


def clear_caches() -> dict[str, int]:
    """Drop memoized regexes and normalized strings. Safe to call any time."""
    summary = {
        "compiled_patterns_cleared": _compile_pattern.cache_info().currsize,
        "normalized_texts_cleared": _normalize_default.cache_info().currsize,
    }
    _compile_pattern.cache_clear()
    _normalize_default.cache_clear()
    return summary


__all__ = [
    "DEFAULT_CATEGORIES",
    "match_category",
    "match_category_with_diagnostics",
    "categorize_description",
    "category_name",
    "categorize_records",
    "add_categories",
    "clear_caches",
]
