import pytest

from nestnet.core.activations import HyperbolicTangent, Linear
from nestnet.core.connection import BackpropConnection, Connection
from nestnet.core.errors import EmptyInputError, InvalidArgumentError
from nestnet.core.neuron import BackpropNeuron, Neuron


def test_neuron_waits_for_every_inbound_connection():
    first = Neuron(Linear())
    second = Neuron(Linear())
    target = Neuron(Linear(), bias=0.5)
    left = Connection(first, target, 1.0)
    right = Connection(second, target, 2.0)

    first.fire_all([1.0])
    assert target.pending_input_signal == 1.0
    assert target.cached_outputs[0] == 0.0

    second.fire_all([3.0])
    assert target.cached_outputs[0] == pytest.approx(7.5)
    assert target.pending_input_signal == 0.0
    assert not left.is_fired and not right.is_fired


def test_input_node_bias_reads_zero():
    neuron = Neuron(Linear(), bias=0.7)
    assert neuron.is_input_node
    assert neuron.bias == 0.0
    neuron.bias = 3.0
    assert neuron.bias == 0.0

    hidden = Neuron(Linear(), bias=0.7)
    Connection(neuron, hidden, 1.0)
    assert hidden.bias == pytest.approx(0.7)


def test_fire_all_sums_inputs_and_applies_activation():
    neuron = Neuron(HyperbolicTangent())
    neuron.fire_all([0.25, 0.25])
    assert neuron.cached_outputs[0] == pytest.approx(0.46211715726)
    assert neuron.input_size == 1
    assert neuron.output_size == 1


def test_neuron_rejects_bad_arguments():
    with pytest.raises(InvalidArgumentError):
        Neuron(None)
    with pytest.raises(EmptyInputError):
        Neuron(Linear()).fire_all([])
    with pytest.raises(EmptyInputError):
        BackpropNeuron(Linear()).calculate_errors([])


def test_backprop_neuron_waits_for_all_outbound_errors():
    neuron = BackpropNeuron(Linear(), bias=0.0)
    up = BackpropNeuron(Linear(), bias=0.0)
    down = BackpropNeuron(Linear(), bias=0.0)
    source = BackpropNeuron(Linear())
    BackpropConnection(source, neuron, 1.0)
    to_up = BackpropConnection(neuron, up, 1.0)
    BackpropConnection(neuron, down, 1.0)

    source.fire_all([1.0])
    up.calculate_errors([1.0])
    assert neuron.pending_bias_adjustment == 0.0
    assert to_up.is_reporting_error

    down.calculate_errors([2.0])
    assert neuron.pending_bias_adjustment == pytest.approx(3.0)
    assert not to_up.is_reporting_error


def test_bias_update_uses_learning_rate_and_momentum():
    source = BackpropNeuron(Linear())
    neuron = BackpropNeuron(Linear(), bias=1.0)
    BackpropConnection(source, neuron, 1.0)
    neuron.pending_bias_adjustment = 2.0
    neuron.previous_bias_adjustment = -1.0

    neuron.apply_weight_adjustments(0.5, 0.5)

    assert neuron.bias == pytest.approx(1.5)
    assert neuron.previous_bias_adjustment == pytest.approx(0.5)
    assert neuron.pending_bias_adjustment == 0.0
