import json
import math

import pytest

from backpropviz.core.types import STEP_TYPES
from backpropviz.reporting.trace import read_trace, step_from_record, step_to_record, write_trace
from backpropviz.training.engine import NetworkConfig, TrainingEngine

KIND_FIELDS = {
    "input": {"values", "layer_index"},
    "forward_neuron": {
        "layer_index",
        "neuron_index",
        "weighted_sum",
        "activation",
        "bias",
        "input_weights",
        "input_activations",
        "activation_name",
    },
    "forward_layer_complete": {"layer_index", "activations"},
    "loss": {"output", "target", "error", "loss"},
    "backward_delta": {
        "layer_index",
        "neuron_index",
        "delta",
        "weighted_error",
        "derivative",
        "downstream_deltas",
        "downstream_weights",
        "activation_name",
    },
    "weight_update": {
        "layer_index",
        "from_neuron",
        "to_neuron",
        "old_weight",
        "new_weight",
        "gradient",
        "weight_update",
        "delta",
        "source_activation",
        "learning_rate",
    },
    "complete": {"weights", "previous_weights"},
}

PHASES = {
    "input": "forward",
    "forward_neuron": "forward",
    "forward_layer_complete": "forward",
    "loss": "backward",
    "backward_delta": "backward",
    "weight_update": "backward",
    "complete": "complete",
}


def _steps():
    engine = TrainingEngine(NetworkConfig(input_size=2, hidden_layers=2, neurons_per_layer=3, seed=8))
    return engine.train_on_example([0.25, 0.75], 1.0).steps


def test_closed_set_of_kinds():
    assert set(STEP_TYPES) == set(KIND_FIELDS)
    assert {s.kind for s in _steps()} == set(KIND_FIELDS)


def test_records_carry_exact_field_sets():
    for step in _steps():
        record = step_to_record(step)
        assert set(record) == KIND_FIELDS[step.kind] | {"kind", "phase"}
        assert record["phase"] == PHASES[step.kind]
        json.dumps(record)
        assert step.describe()


def test_trace_file_roundtrip(tmp_path):
    steps = _steps()
    path = write_trace(tmp_path / "trace.jsonl", steps)
    lines = (tmp_path / "trace.jsonl").read_text().splitlines()
    assert len(lines) == len(steps)
    assert json.loads(lines[0])["kind"] == "input"
    assert tuple(read_trace(path)) == steps


def test_non_finite_values_survive_encoding():
    engine = TrainingEngine(NetworkConfig(input_size=1, hidden_layers=0, seed=0))
    steps = engine.train_on_example([float("inf")], 1.0).steps
    record = step_to_record(steps[0])
    assert record["values"] == ["inf"]
    json.dumps(record, allow_nan=False)
    assert math.isinf(step_from_record(record).values[0])


def test_unknown_kind_rejected():
    with pytest.raises(ValueError, match="Unknown step kind"):
        step_from_record({"kind": "bias_update"})
