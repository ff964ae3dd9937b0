"""Core typing contracts for backpropviz."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple, Union

import numpy as np

Array = np.ndarray

Vector = Tuple[float, ...]
Matrix = Tuple[Vector, ...]
WeightSet = Tuple[Matrix, ...]


@dataclass(frozen=True)
class Sample:
    """A single training example: one input vector and a scalar target."""

    inputs: Vector
    target: float


@dataclass(frozen=True)
class LayerShape:
    """Dimensions and buffer offsets of one layer transition."""

    fan_in: int
    fan_out: int
    weight_offset: int
    bias_offset: int

    @property
    def weight_count(self) -> int:
        return self.fan_in * self.fan_out


def _fmt(values: Vector, digits: int) -> str:
    return ", ".join(f"{v:.{digits}f}" for v in values)


# ----------------------------------------------------------------------
# Step trace variants


@dataclass(frozen=True)
class InputStep:
    values: Vector
    layer_index: int = 0
    kind: Literal["input"] = field(default="input", init=False)

    @property
    def phase(self) -> str:
        return "forward"

    def describe(self) -> str:
        return f"Input layer receives values: [{_fmt(self.values, 3)}]"


@dataclass(frozen=True)
class ForwardNeuronStep:
    layer_index: int
    neuron_index: int
    weighted_sum: float
    activation: float
    bias: float
    input_weights: Vector
    input_activations: Vector
    activation_name: str
    kind: Literal["forward_neuron"] = field(default="forward_neuron", init=False)

    @property
    def phase(self) -> str:
        return "forward"

    def describe(self) -> str:
        return (
            f"Layer {self.layer_index}, Neuron {self.neuron_index + 1}: "
            f"z = sum(w*a) + b = {self.weighted_sum:.4f}, "
            f"a = {self.activation_name}(z) = {self.activation:.4f}"
        )


@dataclass(frozen=True)
class ForwardLayerCompleteStep:
    layer_index: int
    activations: Vector
    kind: Literal["forward_layer_complete"] = field(
        default="forward_layer_complete", init=False
    )

    @property
    def phase(self) -> str:
        return "forward"

    def describe(self) -> str:
        return f"Layer {self.layer_index} complete: [{_fmt(self.activations, 4)}]"


@dataclass(frozen=True)
class LossStep:
    output: float
    target: float
    error: float
    loss: float
    kind: Literal["loss"] = field(default="loss", init=False)

    @property
    def phase(self) -> str:
        return "backward"

    def describe(self) -> str:
        return (
            f"Output: {self.output:.4f}, Target: {self.target:g}, "
            f"Error: {self.error:.4f}, Loss (MSE): {self.loss:.6f}"
        )


@dataclass(frozen=True)
class BackwardDeltaStep:
    """Error signal of one neuron.

    ``weighted_error`` is the output error for the output neuron and the sum of
    ``downstream_deltas[k] * downstream_weights[k]`` for a hidden neuron, so
    ``delta == weighted_error * derivative``.
    """

    layer_index: int
    neuron_index: int
    delta: float
    weighted_error: float
    derivative: float
    downstream_deltas: Vector
    downstream_weights: Vector
    activation_name: str
    kind: Literal["backward_delta"] = field(default="backward_delta", init=False)

    @property
    def phase(self) -> str:
        return "backward"

    def describe(self) -> str:
        if not self.downstream_deltas:
            return (
                f"Output layer delta = error x sigmoid'(z) = {self.weighted_error:.4f} "
                f"x {self.derivative:.4f} = {self.delta:.6f}"
            )
        return (
            f"Layer {self.layer_index}, Neuron {self.neuron_index + 1}: "
            f"delta = sum(delta_next x w) x {self.activation_name}'(z) = {self.delta:.6f}"
        )


@dataclass(frozen=True)
class WeightUpdateStep:
    layer_index: int
    from_neuron: int
    to_neuron: int
    old_weight: float
    new_weight: float
    gradient: float
    weight_update: float
    delta: float
    source_activation: float
    learning_rate: float
    kind: Literal["weight_update"] = field(default="weight_update", init=False)

    @property
    def phase(self) -> str:
        return "backward"

    def describe(self) -> str:
        return (
            f"w[{self.layer_index}][{self.to_neuron}][{self.from_neuron}]: "
            f"{self.old_weight:.4f} -> {self.new_weight:.4f} "
            f"(change = {self.weight_update:.6f})"
        )


@dataclass(frozen=True)
class CompleteStep:
    weights: WeightSet
    previous_weights: WeightSet
    kind: Literal["complete"] = field(default="complete", init=False)

    @property
    def phase(self) -> str:
        return "complete"

    def describe(self) -> str:
        return "Training step complete. New loss will be calculated on next forward pass."


Step = Union[
    InputStep,
    ForwardNeuronStep,
    ForwardLayerCompleteStep,
    LossStep,
    BackwardDeltaStep,
    WeightUpdateStep,
    CompleteStep,
]

STEP_TYPES = {
    "input": InputStep,
    "forward_neuron": ForwardNeuronStep,
    "forward_layer_complete": ForwardLayerCompleteStep,
    "loss": LossStep,
    "backward_delta": BackwardDeltaStep,
    "weight_update": WeightUpdateStep,
    "complete": CompleteStep,
}


# ----------------------------------------------------------------------
# Results


@dataclass(frozen=True)
class BackwardResult:
    loss: float
    output: float
    error: float


@dataclass(frozen=True)
class TrainResult:
    """Outcome of :meth:`TrainingEngine.train_on_example`."""

    loss: float
    output: float
    error: float
    steps: Tuple[Step, ...]


@dataclass(frozen=True)
class NetworkSnapshot:
    """Read-only copy of the engine state handed to renderers.

    ``pre_activations[0]`` is ``None``: the input layer has no weighted sum.
    Trace fields are empty tuples until the corresponding pass has run.
    """

    layers: Tuple[int, ...]
    weights: WeightSet
    biases: Matrix
    activations: Matrix
    pre_activations: Tuple[Optional[Vector], ...]
    deltas: Matrix
    weight_gradients: WeightSet
    bias_gradients: Matrix
    previous_weights: WeightSet


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`backpropviz.training.pipelines.run_pipeline`."""

    steps: int
    metrics_path: str
    trace_path: str
    summary_path: str = ""
