import math

import numpy as np
import pytest

from backpropviz.core.errors import InvalidInputShape
from backpropviz.core.types import ForwardLayerCompleteStep, ForwardNeuronStep, InputStep
from backpropviz.training.engine import NetworkConfig, TrainingEngine


def _sig(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def _fixed_engine() -> TrainingEngine:
    engine = TrainingEngine(
        NetworkConfig(input_size=2, hidden_layers=1, neurons_per_layer=2, learning_rate=0.5)
    )
    engine.load_state_dict(
        {
            "W0": [[0.5, -0.3], [0.2, 0.4]],
            "b0": [0.1, -0.1],
            "W1": [[0.6, -0.2]],
            "b1": [0.05],
        }
    )
    return engine


def test_concrete_forward_scenario():
    engine = _fixed_engine()
    output = engine.forward([1.0, 0.5])

    snapshot = engine.snapshot_for_display()
    z0, z1 = snapshot.pre_activations[1]
    a0, a1 = snapshot.activations[1]
    assert z0 == pytest.approx(0.45)
    assert z1 == pytest.approx(0.3)
    assert a0 == pytest.approx(0.6106, abs=1e-4)
    assert a1 == pytest.approx(0.5744, abs=1e-4)

    z_out = snapshot.pre_activations[2][0]
    assert z_out == pytest.approx(0.6 * a0 - 0.2 * a1 + 0.05)
    assert z_out == pytest.approx(0.3015, abs=1e-4)
    assert output == pytest.approx(_sig(z_out))
    assert output == pytest.approx(0.5748, abs=1e-4)


def test_forward_trace_layout():
    engine = _fixed_engine()
    engine.forward([1.0, 0.5])
    steps = engine.steps
    assert [s.kind for s in steps] == [
        "input",
        "forward_neuron",
        "forward_neuron",
        "forward_layer_complete",
        "forward_neuron",
        "forward_layer_complete",
    ]
    assert isinstance(steps[0], InputStep)
    assert steps[0].values == (1.0, 0.5)

    first = steps[1]
    assert isinstance(first, ForwardNeuronStep)
    assert (first.layer_index, first.neuron_index) == (1, 0)
    assert first.input_weights == (0.5, -0.3)
    assert first.input_activations == (1.0, 0.5)
    rebuilt = first.bias + sum(w * a for w, a in zip(first.input_weights, first.input_activations))
    assert rebuilt == pytest.approx(first.weighted_sum)

    layer_done = steps[3]
    assert isinstance(layer_done, ForwardLayerCompleteStep)
    assert layer_done.activations == (steps[1].activation, steps[2].activation)


@pytest.mark.parametrize("activation", ["relu", "tanh"])
def test_output_neuron_is_always_sigmoid(activation):
    engine = TrainingEngine(
        NetworkConfig(input_size=3, hidden_layers=2, neurons_per_layer=3, activation=activation, seed=5)
    )
    output = engine.forward([0.2, -0.4, 0.9])
    neurons = [s for s in engine.steps if s.kind == "forward_neuron"]
    assert all(s.activation_name == activation for s in neurons[:-1])
    assert neurons[-1].activation_name == "sigmoid"
    assert output == pytest.approx(_sig(neurons[-1].weighted_sum))
    assert 0.0 < output < 1.0


def test_forward_is_deterministic():
    engine = TrainingEngine(NetworkConfig(input_size=4, hidden_layers=3, neurons_per_layer=5, seed=11))
    first = engine.forward([0.1, 0.2, 0.3, 0.4])
    first_steps = engine.steps
    second = engine.forward([0.1, 0.2, 0.3, 0.4])
    assert first == second
    assert first_steps == engine.steps


def test_same_seed_same_parameters():
    a = TrainingEngine(NetworkConfig(seed=3))
    b = TrainingEngine(NetworkConfig(seed=3))
    assert np.array_equal(a.params.weight_buffer, b.params.weight_buffer)
    assert np.array_equal(a.params.bias_buffer, b.params.bias_buffer)


def test_input_layer_is_copied_not_aliased():
    engine = _fixed_engine()
    values = np.array([1.0, 0.5])
    engine.forward(values)
    values[0] = 99.0
    assert engine.snapshot_for_display().activations[0] == (1.0, 0.5)


@pytest.mark.parametrize("bad", [[1.0], [1.0, 2.0, 3.0], [[1.0, 0.5]]])
def test_invalid_input_shape(bad):
    engine = _fixed_engine()
    engine.forward([1.0, 0.5])
    before = engine.steps
    with pytest.raises(InvalidInputShape) as info:
        engine.forward(bad)
    assert info.value.expected == 2
    assert isinstance(info.value, ValueError)
    assert engine.steps == before


def test_zero_hidden_layers_and_single_input():
    engine = TrainingEngine(NetworkConfig(input_size=1, hidden_layers=0, neurons_per_layer=1, seed=0))
    assert engine.layers == (1, 1)
    output = engine.forward([0.7])
    assert [s.kind for s in engine.steps] == ["input", "forward_neuron", "forward_layer_complete"]
    assert 0.0 < output < 1.0
