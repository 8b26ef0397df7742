import math

import pytest

from nestnet.core.activations import HyperbolicTangent, Linear, get_activation, names


@pytest.mark.parametrize("x", [-1.234, 0.0, 12.34])
def test_tanh_matches_math_library(x):
    fn = HyperbolicTangent()
    assert fn.invoke(x) == pytest.approx(math.tanh(x), abs=1e-7)
    assert fn.invoke_derivative(x) == pytest.approx(1.0 - math.tanh(x) ** 2, abs=1e-7)


@pytest.mark.parametrize("x", [-1.234, 0.0, 12.34])
def test_linear_is_identity_with_unit_slope(x):
    fn = Linear()
    assert fn.invoke(x) == x
    assert fn.invoke_derivative(x) == 1.0


def test_registry_lookup():
    assert get_activation("tanh") == HyperbolicTangent()
    assert get_activation("relu").invoke(-2.0) == 0.0
    assert set(names()) == {"linear", "relu", "tanh"}
    with pytest.raises(KeyError, match="Available activations"):
        get_activation("sigmoid")
