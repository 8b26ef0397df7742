import numpy as np
import pytest

from nestnet.core.activations import Linear
from nestnet.core.connection import BackpropConnection
from nestnet.core.errors import (
    EmptyAggregateError,
    EmptyInputError,
    InvalidArgumentError,
    SizeMismatchError,
)
from nestnet.core.network import BackpropNetwork
from nestnet.core.neuron import BackpropNeuron
from nestnet.models import build_feedforward

XOR_INPUTS = [[-1.0, -1.0], [-1.0, 1.0], [1.0, -1.0], [1.0, 1.0]]
XOR_TARGETS = [[-1.0], [1.0], [1.0], [-1.0]]


def _adder(policy=None):
    left = BackpropNeuron(Linear())
    right = BackpropNeuron(Linear())
    out = BackpropNeuron(Linear(), bias=0.5)
    BackpropConnection(left, out, 1.0)
    BackpropConnection(right, out, 2.0)
    network = BackpropNetwork(policy=policy)
    network.add_input_node(left)
    network.add_input_node(right)
    network.add_output_node(out)
    return network


def test_compute_outputs_runs_the_layers_in_order():
    network = _adder()
    assert network.input_size == 2
    assert network.output_size == 1
    assert network.compute_outputs([3.0, 4.0]).tolist() == [11.5]
    assert network.cached_outputs.tolist() == [11.5]
    assert network.compute_outputs([1.0, 1.0]).tolist() == [3.5]


def test_compute_outputs_aggregates_multiples_of_the_input_size():
    assert _adder().compute_outputs([1.0, 2.0, 3.0, 4.0]).tolist() == [17.5]
    with pytest.raises(SizeMismatchError):
        _adder().compute_outputs([1.0, 2.0, 3.0])
    with pytest.raises(SizeMismatchError):
        _adder("strict").compute_outputs([1.0, 2.0, 3.0, 4.0])


def test_network_rejects_bad_arguments():
    network = _adder()
    with pytest.raises(InvalidArgumentError):
        network.add_input_node(None)
    with pytest.raises(InvalidArgumentError):
        network.add_output_node(None)
    with pytest.raises(EmptyInputError):
        network.fire_all([])
    with pytest.raises(EmptyInputError):
        network.calculate_errors([])
    with pytest.raises(SizeMismatchError):
        network.calculate_errors([1.0, 2.0])


def test_adding_a_layer_node_twice_is_a_no_op():
    network = _adder()
    network.add_input_node(network.input_nodes[0])
    assert network.input_size == 2


def test_calculate_errors_caches_input_layer_errors():
    network = _adder()
    network.compute_outputs([3.0, 4.0])
    network.calculate_errors([1.0])
    assert network.cached_errors.tolist() == [1.0, 2.0]
    network.clear_cached_errors()
    assert network.cached_errors.tolist() == [0.0, 0.0]


def test_train_moves_weights_once_per_epoch():
    network = _adder()
    error = network.train(1, 0.01, 0.0, [[1.0, 1.0]], [[0.5]])
    assert error == pytest.approx(3.0)
    weights = [c.weight for c in network.connections()]
    assert weights == pytest.approx([1.0 - 0.03, 2.0 - 0.03])
    assert network.output_nodes[0].bias == pytest.approx(0.5 - 0.03)


def test_train_validates_its_table():
    network = _adder()
    with pytest.raises(InvalidArgumentError):
        network.train(1, 0.1, 0.0, [[1.0, 1.0]], [])
    with pytest.raises(SizeMismatchError):
        network.train(1, 0.1, 0.0, [[1.0, 1.0]], [[1.0, 2.0]])
    with pytest.raises(EmptyAggregateError):
        network.train(1, 0.1, 0.0, [], [])


def test_training_reduces_error_and_is_deterministic():
    first = build_feedforward([2, 3, 1], rng=np.random.default_rng(3))
    second = build_feedforward([2, 3, 1], rng=np.random.default_rng(3))

    start = first.train(1, 0.1, 0.9, XOR_INPUTS, XOR_TARGETS)
    end = first.train(200, 0.1, 0.9, XOR_INPUTS, XOR_TARGETS)
    second.train(1, 0.1, 0.9, XOR_INPUTS, XOR_TARGETS)
    repeat = second.train(200, 0.1, 0.9, XOR_INPUTS, XOR_TARGETS)

    assert end < start
    assert repeat == end


def test_state_dict_round_trip():
    source = build_feedforward([2, 3, 1], rng=np.random.default_rng(1))
    target = build_feedforward([2, 3, 1], rng=np.random.default_rng(2))
    state = source.state_dict()
    assert state["weights"].shape == (9,)
    assert state["biases"].shape == (6,)

    target.load_state_dict(state)

    for row in XOR_INPUTS:
        np.testing.assert_allclose(target.compute_outputs(row), source.compute_outputs(row))
    with pytest.raises(KeyError):
        target.load_state_dict({"weights": state["weights"]})
    with pytest.raises(SizeMismatchError):
        target.load_state_dict({"weights": state["weights"][:3], "biases": state["biases"]})


def test_graph_walk_counts_parameters():
    network = build_feedforward([2, 3, 1], rng=np.random.default_rng(0))
    assert len(network.neurons()) == 6
    assert len(network.connections()) == 9
    assert network.parameter_count() == 9 + 4
    topology = network.topology([2, 3, 1]).as_dict()
    assert topology == {
        "input_size": 2,
        "output_size": 1,
        "neurons": 6,
        "connections": 9,
        "layers": [2, 3, 1],
    }


def test_reset_clears_flags_left_by_an_interrupted_pass():
    network = build_feedforward([2, 3, 1], rng=np.random.default_rng(0))
    first_input = network.input_nodes[0]
    first_input.fire_all([1.0])
    assert any(c.is_fired for c in network.connections())

    network.reset()

    assert not any(c.is_fired for c in network.connections())
    assert all(n.pending_input_signal == 0.0 for n in network.neurons())
    network.compute_outputs([1.0, -1.0])


def _pair_sum(network):
    left = BackpropNeuron(Linear())
    right = BackpropNeuron(Linear())
    out = BackpropNeuron(Linear(), bias=0.0)
    BackpropConnection(left, out, 1.0)
    BackpropConnection(right, out, 1.0)
    network.add_input_node(left)
    network.add_input_node(right)
    network.add_output_node(out)
    return network


def test_network_fires_once_every_inbound_connection_has_fired():
    inner = _pair_sum(BackpropNetwork())
    sources = [BackpropNeuron(Linear()) for _ in range(3)]
    inbound = [
        BackpropConnection(source, inner, weight)
        for source, weight in zip(sources, [0.5, -2.0, 3.0])
    ]

    sources[0].fire_all([1.0])
    sources[1].fire_all([1.0])
    assert inner.cached_outputs.size == 0

    sources[2].fire_all([1.0])

    # [0.5, -2, 3] digitizes to [1, -1, 1] and aggregates to [0, 1]
    assert inner.cached_outputs.tolist() == [1.0]
    assert not any(connection.is_fired for connection in inbound)


def test_network_gathers_errors_once_every_outbound_connection_reports():
    inner = _pair_sum(BackpropNetwork())
    targets = [BackpropNeuron(Linear(), bias=0.0) for _ in range(3)]
    outbound = [
        BackpropConnection(inner, target, weight)
        for target, weight in zip(targets, [0.5, -2.0, 3.0])
    ]
    inner.fire_all([1.0, 1.0])
    out = inner.output_nodes[0]

    targets[0].calculate_errors([1.0])
    targets[1].calculate_errors([1.0])
    assert out.pending_bias_adjustment == 0.0
    assert outbound[0].is_reporting_error and outbound[1].is_reporting_error

    targets[2].calculate_errors([1.0])

    # reported [0.5, -2, 3] digitizes to [1, -1, 1] and aggregates to [1]
    assert out.pending_bias_adjustment == pytest.approx(1.0)
    assert inner.cached_errors.tolist() == [1.0, 1.0]
    assert not any(connection.is_reporting_error for connection in outbound)
