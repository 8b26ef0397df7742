import numpy as np
import pytest

from nestnet.core.errors import SizeMismatchError
from nestnet.core.signals import (
    ANALOG,
    DIGITAL,
    STRICT,
    SignalPolicy,
    aggregate,
    allocate,
    digitize,
    distribute,
    get_policy,
)


def test_aggregate_sums_consecutive_buckets():
    values = [11, 22, 33, 44, 55, 66, 77, 88, 99]
    assert aggregate(values, 3).tolist() == [66.0, 165.0, 264.0]


def test_aggregate_gives_excess_to_leading_buckets():
    assert aggregate([1, 2, 3, 4, 5], 2).tolist() == [6.0, 9.0]


def test_distribute_repeats_leading_elements_first():
    assert distribute([11, 22, 33], 5).tolist() == [11.0, 11.0, 22.0, 22.0, 33.0]


def test_allocate_is_identity_for_equal_sizes():
    assert allocate([1.5, -2.0], 2).tolist() == [1.5, -2.0]


def test_aggregate_and_distribute_reject_impossible_shapes():
    with pytest.raises(SizeMismatchError):
        aggregate([1.0], 2)
    with pytest.raises(SizeMismatchError):
        aggregate([1.0, 2.0], 0)
    with pytest.raises(SizeMismatchError):
        distribute([], 3)


def test_digitize_maps_zero_to_positive_one():
    assert digitize([-0.3, 0.0, 2.5]).tolist() == [-1.0, 1.0, 1.0]


def test_policy_shape_orders_digitize_and_reshape():
    values = [0.2, 0.3, -0.9]
    assert DIGITAL.shape(values, 1).tolist() == [1.0]
    late = SignalPolicy(digitize_first=False)
    assert late.shape(values, 1).tolist() == [-1.0]
    assert np.allclose(ANALOG.shape(values, 1), [-0.4])


def test_fit_inputs_aggregates_multiples_unless_strict():
    assert DIGITAL.fit_inputs([1, 2, 3, 4], 2).tolist() == [3.0, 7.0]
    with pytest.raises(SizeMismatchError):
        DIGITAL.fit_inputs([1, 2, 3], 2)
    with pytest.raises(SizeMismatchError):
        STRICT.fit_inputs([1, 2, 3, 4], 2)
    assert STRICT.fit_inputs([1, 2], 2).tolist() == [1.0, 2.0]


def test_get_policy_resolves_names_and_mappings():
    assert get_policy(None) is DIGITAL
    assert get_policy("analog") is ANALOG
    assert get_policy({"strict_size": True}) == STRICT
    with pytest.raises(KeyError, match="Available policies"):
        get_policy("fuzzy")
