"""
Count-based reconciliation of an invoice's feature line items.

Join rows between invoices and features are fungible: the same feature can
be bought several times on one invoice, and any two rows for the same
feature are interchangeable. Reconciliation therefore works purely on
per-feature counts.
"""

from collections import Counter
from typing import Iterable, Mapping, Optional, Union

from pydantic import BaseModel, Field

from common.core.exceptions import ValidationError

FeatureRequest = Union[Mapping[int, int], Iterable[Union[int, str]], str, None]


class FeatureQuantityPlan(BaseModel):
    """Rows to insert and delete, per feature id."""

    additions: dict[int, int] = Field(default_factory=dict)
    removals: dict[int, int] = Field(default_factory=dict)

    def is_noop(self) -> bool:
        return not self.additions and not self.removals


def _parse_feature_id(token) -> Optional[int]:
    try:
        return int(str(token).strip())
    except (TypeError, ValueError):
        return None


def normalize_feature_request(requested: FeatureRequest) -> Counter:
    """
    Turn any accepted request shape into a Counter of feature id -> count.

    Accepts {feature_id: count}, a multiset of ids ([1, 1, 2]) or a
    comma-separated string ("1, 1, 2"). Tokens that are not integers are
    ignored.
    """
    counts: Counter = Counter()
    if requested is None:
        return counts

    if isinstance(requested, Mapping):
        for raw_id, count in requested.items():
            feature_id = _parse_feature_id(raw_id)
            if feature_id is None:
                continue
            count = int(count)
            if count < 0:
                raise ValidationError(
                    f"Feature quantity cannot be negative (feature {feature_id}: {count})"
                )
            if count:
                counts[feature_id] += count
        return counts

    tokens = requested.split(",") if isinstance(requested, str) else requested
    for token in tokens:
        feature_id = _parse_feature_id(token)
        if feature_id is not None:
            counts[feature_id] += 1
    return counts


def plan_feature_quantities(
    existing_feature_ids: Iterable[int], requested: Counter
) -> FeatureQuantityPlan:
    """
    Diff existing join rows against the requested multiset.

    Features absent from the request lose every row; for requested
    features the difference between requested and existing counts is
    added or removed.
    """
    existing = Counter(existing_feature_ids)
    additions: dict[int, int] = {}
    removals: dict[int, int] = {}

    for feature_id, count in existing.items():
        if feature_id not in requested:
            removals[feature_id] = count

    for feature_id, wanted in requested.items():
        have = existing.get(feature_id, 0)
        if wanted > have:
            additions[feature_id] = wanted - have
        elif wanted < have:
            removals[feature_id] = have - wanted

    return FeatureQuantityPlan(additions=additions, removals=removals)
