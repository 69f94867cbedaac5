"""
Unit tests for count-based feature reconciliation.
"""

from collections import Counter

import pytest

from common.core.exceptions import ValidationError
from packages.entitlements.utils.feature_quantities import (
    normalize_feature_request,
    plan_feature_quantities,
)

A, B, C = 1, 2, 3


class TestNormalizeFeatureRequest:
    def test_mapping(self):
        assert normalize_feature_request({A: 3, B: 1}) == Counter({A: 3, B: 1})

    def test_mapping_with_string_keys_and_zero_counts(self):
        """Zero counts mean "none of this feature" and are dropped."""
        assert normalize_feature_request({"1": "2", 3: 0}) == Counter({1: 2})

    def test_negative_count_raises(self):
        with pytest.raises(ValidationError):
            normalize_feature_request({A: -1})

    def test_multiset_list(self):
        assert normalize_feature_request([A, A, B]) == Counter({A: 2, B: 1})

    def test_comma_separated_string_ignores_junk(self):
        assert normalize_feature_request("1, 1,2, abc,") == Counter({1: 2, 2: 1})

    def test_none_is_empty(self):
        assert normalize_feature_request(None) == Counter()


class TestPlanFeatureQuantities:
    def test_regression_case(self):
        """{A:3, B:1} over existing {A:1, C:2} yields exactly {A:3, B:1}."""
        plan = plan_feature_quantities([A, C, C], Counter({A: 3, B: 1}))

        assert plan.additions == {A: 2, B: 1}
        assert plan.removals == {C: 2}

        result = Counter([A, C, C])
        for feature_id, count in plan.removals.items():
            result[feature_id] -= count
        for feature_id, count in plan.additions.items():
            result[feature_id] += count
        assert +result == Counter({A: 3, B: 1})

    def test_reduce_count(self):
        plan = plan_feature_quantities([A, A, A], Counter({A: 1}))
        assert plan.additions == {}
        assert plan.removals == {A: 2}

    def test_empty_request_removes_everything(self):
        plan = plan_feature_quantities([A, B, B], Counter())
        assert plan.removals == {A: 1, B: 2}

    def test_same_multiset_is_noop(self):
        """Applying the same request twice changes nothing the second time."""
        plan = plan_feature_quantities([B, A, A], Counter({A: 2, B: 1}))
        assert plan.is_noop()
