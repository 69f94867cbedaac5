"""Entitlement slug parsing and filtering."""

import re
from typing import Iterable, Optional, Union

from packages.entitlements.constants import EXPECTED_SLUGS

SlugInput = Union[str, Iterable[str], None]

_SLUG_SEPARATORS = re.compile(r"[,\s]+")


def split_slugs(value: SlugInput) -> list[str]:
    """Split a comma/whitespace separated string (or list) into trimmed, non-blank slugs."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = _SLUG_SEPARATORS.split(value)
    else:
        parts = [str(v) for v in value]
    return [part.strip() for part in parts if part and part.strip()]


def _unique(slugs: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(slugs))


def matching_slugs(candidates: SlugInput) -> Optional[list[str]]:
    """
    Intersect candidate slugs with the allow-list.

    Result follows allow-list order. Returns None when nothing matches so
    upstream bulk assignment can tell "no valid slugs" apart from a list.
    """
    wanted = set(split_slugs(candidates))
    matches = [slug for slug in EXPECTED_SLUGS if slug in wanted]
    return matches or None


def clean_feature_slugs(value: SlugInput) -> list[str]:
    """Normalize slugs for storage on a feature: lower-cased, allow-listed, de-duplicated."""
    cleaned = (slug.lower() for slug in split_slugs(value))
    return _unique(slug for slug in cleaned if slug in EXPECTED_SLUGS)


def filter_child_slugs(value: SlugInput, available: Iterable[str]) -> Optional[list[str]]:
    """
    Keep only the requested child slugs that the invoice's features expose.

    Returns None for blank input, meaning "leave the current value alone".
    """
    requested = split_slugs(value)
    if not requested:
        return None
    available = set(available)
    return _unique(slug for slug in requested if slug in available)


def slugs_string(slugs: Optional[Iterable[str]]) -> str:
    return ", ".join(slugs or [])
