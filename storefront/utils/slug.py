"""
Slug helpers for store URLs.
"""

import re
import unicodedata
from typing import Iterable, List, Optional

DEFAULT_SLUG = "store"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """
    Convert a store name to a URL-safe slug.

    Accents are folded to ASCII, every run of other characters becomes a
    single hyphen. Names without any usable character map to ``store``.
    """
    value = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    value = _NON_SLUG_CHARS.sub("-", value.lower()).strip("-")
    return value or DEFAULT_SLUG


def slug_pattern(base_slug: str) -> "re.Pattern[str]":
    """Pattern matching ``base_slug`` alone or followed by a numeric suffix."""
    return re.compile(rf"^({re.escape(base_slug)})(-[0-9]*)?$", re.IGNORECASE)


def count_slug_matches(base_slug: str, existing: Iterable[str]) -> int:
    pattern = slug_pattern(base_slug)
    return sum(1 for slug in existing if pattern.match(slug))


def candidate_slugs(base_slug: str, existing: Iterable[str], attempts: int) -> List[str]:
    """
    Slugs to try in order.

    With N existing matches the first candidate is ``base-(N+1)`` (or
    ``base`` when nothing matches); later candidates bump the suffix for
    retries after a uniqueness conflict.
    """
    matches = count_slug_matches(base_slug, existing)
    candidates: List[str] = []
    suffix: Optional[int] = None if matches == 0 else matches + 1
    for _ in range(attempts):
        candidates.append(base_slug if suffix is None else f"{base_slug}-{suffix}")
        suffix = 2 if suffix is None else suffix + 1
    return candidates
