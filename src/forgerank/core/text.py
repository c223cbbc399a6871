"""Text normalisation helpers shared by the matcher, classifier and scorers."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
_TOKEN_PATTERN = re.compile(r"[a-z0-9][a-z0-9+#.\-]*")


def normalize_text(value: str) -> str:
    return _WHITESPACE.sub(" ", value.lower()).strip()


def key_terms(value: str, *, min_length: int = 4, limit: int | None = None) -> list[str]:
    """Distinct lowercase terms longer than ``min_length - 1`` characters, in order."""
    seen: set[str] = set()
    terms: list[str] = []
    for token in _TOKEN_PATTERN.findall(value.lower()):
        token = token.strip(".-")
        if len(token) < min_length or token in seen:
            continue
        seen.add(token)
        terms.append(token)
    return terms[:limit] if limit is not None else terms
