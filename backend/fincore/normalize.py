"""Description normalization applied before any category matching.

Steps:
  * Non-string input becomes ``""`` (never raises)
  * Lower-case and trim
  * Collapse known wallet-app nicknames onto one canonical name, whole words
    only, so "mp" becomes "mercado pago" while "mpeg" is left alone

The alias table is an explicit, immutable value owned by each
``TextNormalizer``; tests can build a normalizer over any table they like.
Groups are applied in declaration order. Each group is one compiled
alternation (canonical name first, then aliases longest first) run as a
single left-to-right pass, so a canonical name already present in the text
is matched as itself and normalization is idempotent.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Pattern, Sequence, Tuple

AliasGroup = Tuple[str, Tuple[str, ...]]

DEFAULT_ALIASES: Tuple[AliasGroup, ...] = (
    ("mercado pago", ("mercado", "mp", "mercadopago")),
    ("lemon cash", ("lemon",)),
    ("brubank", ("bb", "bru")),
    ("naranja x", ("naranja",)),
    ("ualá", ("uala",)),
    ("cuenta dni", ("dni",)),
)


def _compile_group(canonical: str, aliases: Sequence[str]) -> Pattern:
    words = {canonical.lower(), *(a.lower() for a in aliases if a)}
    ordered = sorted(words, key=lambda w: (-len(w), w))
    return re.compile(
        r"\b(?:" + "|".join(re.escape(w) for w in ordered) + r")\b", re.IGNORECASE
    )


class TextNormalizer:
    """Lower-case, trim and alias-substitute free-text descriptions."""

    def __init__(self, aliases: Sequence[AliasGroup] = DEFAULT_ALIASES) -> None:
        self._aliases: Tuple[AliasGroup, ...] = tuple(
            (str(canonical).lower(), tuple(str(a) for a in group))
            for canonical, group in aliases
        )
        self._compiled: Tuple[Tuple[str, Pattern], ...] = tuple(
            (canonical, _compile_group(canonical, group))
            for canonical, group in self._aliases
        )

    @property
    def aliases(self) -> Tuple[AliasGroup, ...]:
        return self._aliases

    def normalize(self, text: object) -> str:
        if not isinstance(text, str):
            return ""
        working = text.lower().strip()
        if not working:
            return ""
        for canonical, rx in self._compiled:
            working = rx.sub(canonical, working)
        return working.strip()

    __call__ = normalize

    def __repr__(self) -> str:
        return f"TextNormalizer(groups={len(self._aliases)})"


DEFAULT_NORMALIZER = TextNormalizer()


@lru_cache(maxsize=8192)
def _normalize_default(text: str) -> str:
    return DEFAULT_NORMALIZER.normalize(text)


def normalize_text(text: object) -> str:
    """Normalize with the default alias table (memoized)."""
    if not isinstance(text, str):
        return ""
    return _normalize_default(text)


__all__ = [
    "AliasGroup",
    "DEFAULT_ALIASES",
    "DEFAULT_NORMALIZER",
    "TextNormalizer",
    "normalize_text",
]
