"""Step-recording training engine for a single-output feed-forward network."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..core.activations import OUTPUT_ACTIVATION, resolve_activation
from ..core.errors import BackwardBeforeForward, InvalidInputShape
from ..core.params import ParameterStore
from ..core.types import (
    Array,
    BackwardDeltaStep,
    BackwardResult,
    CompleteStep,
    ForwardLayerCompleteStep,
    ForwardNeuronStep,
    InputStep,
    LossStep,
    NetworkSnapshot,
    Step,
    TrainResult,
    Vector,
    WeightUpdateStep,
)
from .losses import REGISTRY as LOSS_REGISTRY
from .playback import StepCursor

_CAMEL_KEYS = {
    "inputSize": "input_size",
    "hiddenLayers": "hidden_layers",
    "neuronsPerLayer": "neurons_per_layer",
    "activationFunction": "activation",
    "activation_function": "activation",
    "learningRate": "learning_rate",
}


@dataclass(frozen=True)
class NetworkConfig:
    """Construction parameters of a :class:`TrainingEngine`."""

    input_size: int = 3
    hidden_layers: int = 2
    neurons_per_layer: int = 4
    activation: str = "sigmoid"
    learning_rate: float = 0.5
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("input_size", "hidden_layers", "neurons_per_layer"):
            object.__setattr__(self, name, int(getattr(self, name)))
        object.__setattr__(self, "learning_rate", float(self.learning_rate))
        if self.seed is not None:
            object.__setattr__(self, "seed", int(self.seed))
        if self.input_size < 1:
            raise ValueError(f"input_size must be >= 1, got {self.input_size}")
        if self.hidden_layers < 0:
            raise ValueError(f"hidden_layers must be >= 0, got {self.hidden_layers}")
        if self.neurons_per_layer < 1:
            raise ValueError(
                f"neurons_per_layer must be >= 1, got {self.neurons_per_layer}"
            )
        if not self.learning_rate > 0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        resolve_activation(self.activation)

    @property
    def layer_dims(self) -> List[int]:
        return [self.input_size, *([self.neurons_per_layer] * self.hidden_layers), 1]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "NetworkConfig":
        """Build a config from snake_case or camelCase keys."""

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, object] = {}
        for key, value in mapping.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                raise KeyError(f"Unknown network option: {key}")
            kwargs[name] = value
        return cls(**kwargs)  # type: ignore[arg-type]


def _vector(values: Array) -> Vector:
    return tuple(float(v) for v in values)


class TrainingEngine:
    """Forward/backward propagation that records every arithmetic step.

    The engine owns the parameters and the traces of the most recent training
    call. ``steps`` is rebuilt from scratch by each ``forward`` call and is
    completed by the following ``backward`` call.
    """

    previous: ParameterStore

    def __init__(self, config: NetworkConfig | None = None, **overrides: object) -> None:
        config = config or NetworkConfig()
        if overrides:
            config = replace(config, **overrides)
        self.config = config
        self.layers: Tuple[int, ...] = tuple(config.layer_dims)
        self.activation = resolve_activation(config.activation)
        self.learning_rate = config.learning_rate
        self.params = ParameterStore(self.layers)
        self.cursor = StepCursor()
        self._rng = np.random.default_rng(config.seed)
        self._loss = LOSS_REGISTRY.get("mse")
        self.reinitialize()

    # ------------------------------------------------------------------
    # Configuration

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    @learning_rate.setter
    def learning_rate(self, value: float) -> None:
        value = float(value)
        if not value > 0:
            raise ValueError(f"learning_rate must be > 0, got {value}")
        self._learning_rate = value

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    def parameter_count(self) -> int:
        return self.params.parameter_count()

    def reinitialize(self) -> None:
        """Redraw all weights and biases and forget the previous trace."""

        self.params.xavier_init(self._rng)
        self.previous = self.params.copy()
        self._clear_traces()

    def state_dict(self) -> Mapping[str, Array]:
        return self.params.state_dict()

    def load_state_dict(self, state: Mapping[str, object]) -> None:
        """Install explicit parameters; the weight-change snapshot is reset."""

        self.params.load_state_dict(state)
        self.previous = self.params.copy()
        self._clear_traces()

    def _clear_traces(self) -> None:
        self._activations: List[Array] = []
        self._pre_activations: List[Optional[Array]] = []
        self._deltas: List[Array] = []
        self._weight_grads: List[Array] = []
        self._bias_grads: List[Array] = []
        self._steps: List[Step] = []
        self._forward_ready = False
        self.cursor.reset(())

    # ------------------------------------------------------------------
    # Propagation

    def forward(self, inputs: Sequence[float]) -> float:
        x = np.array(inputs, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.layers[0]:
            raise InvalidInputShape(self.layers[0], int(x.size))

        self._steps = [InputStep(values=_vector(x))]
        self._activations = [x.copy()]
        self._pre_activations = [None]

        last = self.params.num_transitions - 1
        current = x
        for layer in range(self.params.num_transitions):
            W = self.params.weights(layer)
            b = self.params.biases(layer)
            act = OUTPUT_ACTIVATION if layer == last else self.activation
            z_layer = np.empty(W.shape[0], dtype=np.float64)
            a_layer = np.empty(W.shape[0], dtype=np.float64)
            for j in range(W.shape[0]):
                z = float(b[j] + np.dot(W[j], current))
                a = act(z)
                z_layer[j] = z
                a_layer[j] = a
                self._steps.append(
                    ForwardNeuronStep(
                        layer_index=layer + 1,
                        neuron_index=j,
                        weighted_sum=z,
                        activation=a,
                        bias=float(b[j]),
                        input_weights=_vector(W[j]),
                        input_activations=_vector(current),
                        activation_name=act.name,
                    )
                )
            self._pre_activations.append(z_layer)
            self._activations.append(a_layer)
            self._steps.append(
                ForwardLayerCompleteStep(layer_index=layer + 1, activations=_vector(a_layer))
            )
            current = a_layer

        self._forward_ready = True
        return float(current[0])

    def backward(self, target: float) -> BackwardResult:
        if not self._forward_ready:
            raise BackwardBeforeForward()
        self._forward_ready = False

        target = float(target)
        output = float(self._activations[-1][0])
        loss, error = self._loss(output, target)
        self.previous = self.params.copy()
        self._steps.append(LossStep(output=output, target=target, error=error, loss=loss))

        n = self.params.num_transitions
        self._deltas = [np.zeros(shape.fan_out, dtype=np.float64) for shape in self.params.shapes]

        # output neuron: sigmoid derivative regardless of the hidden activation
        derivative = output * (1.0 - output)
        delta_out = error * derivative
        self._deltas[-1][0] = delta_out
        self._steps.append(
            BackwardDeltaStep(
                layer_index=len(self.layers) - 1,
                neuron_index=0,
                delta=delta_out,
                weighted_error=error,
                derivative=derivative,
                downstream_deltas=(),
                downstream_weights=(),
                activation_name=OUTPUT_ACTIVATION.name,
            )
        )

        for layer in range(n - 2, -1, -1):
            next_deltas = self._deltas[layer + 1]
            next_W = self.params.weights(layer + 1)
            for j in range(self.layers[layer + 1]):
                column = next_W[:, j]
                weighted = float(np.dot(next_deltas, column))
                z = float(self._pre_activations[layer + 1][j])
                a = float(self._activations[layer + 1][j])
                derivative = self.activation.derivative(z, a)
                delta = weighted * derivative
                self._deltas[layer][j] = delta
                self._steps.append(
                    BackwardDeltaStep(
                        layer_index=layer + 1,
                        neuron_index=j,
                        delta=delta,
                        weighted_error=weighted,
                        derivative=derivative,
                        downstream_deltas=_vector(next_deltas),
                        downstream_weights=_vector(column),
                        activation_name=self.activation.name,
                    )
                )

        lr = self._learning_rate
        self._weight_grads = []
        self._bias_grads = []
        for layer in range(n):
            W = self.params.weights(layer)
            b = self.params.biases(layer)
            source = self._activations[layer]
            deltas = self._deltas[layer]
            grads = np.outer(deltas, source)
            for j in range(W.shape[0]):
                delta = float(deltas[j])
                for i in range(W.shape[1]):
                    gradient = float(grads[j, i])
                    old = float(W[j, i])
                    update = -lr * gradient
                    W[j, i] = old + update
                    self._steps.append(
                        WeightUpdateStep(
                            layer_index=layer,
                            from_neuron=i,
                            to_neuron=j,
                            old_weight=old,
                            new_weight=float(W[j, i]),
                            gradient=gradient,
                            weight_update=update,
                            delta=delta,
                            source_activation=float(source[i]),
                            learning_rate=lr,
                        )
                    )
                # bias updates are applied without a trace step
                b[j] -= lr * delta
            self._weight_grads.append(grads)
            self._bias_grads.append(deltas.copy())

        self._steps.append(
            CompleteStep(
                weights=self.params.nested_weights(),
                previous_weights=self.previous.nested_weights(),
            )
        )
        return BackwardResult(loss=loss, output=output, error=error)

    def train_on_example(self, inputs: Sequence[float], target: float) -> TrainResult:
        """Run one forward and one backward pass and return the full trace."""

        self.forward(inputs)
        result = self.backward(target)
        steps = self.steps
        self.cursor.reset(steps)
        return TrainResult(
            loss=result.loss, output=result.output, error=result.error, steps=steps
        )

    # ------------------------------------------------------------------
    # Queries

    def weight_delta(self, layer: int, dest: int, src: int) -> float:
        """Change of one weight caused by the most recent backward pass."""

        if not 0 <= layer < self.params.num_transitions:
            return 0.0
        idx = self.params.weight_index(layer, dest, src)
        return float(self.params.weight_buffer[idx] - self.previous.weight_buffer[idx])

    def snapshot_for_display(self) -> NetworkSnapshot:
        return NetworkSnapshot(
            layers=self.layers,
            weights=self.params.nested_weights(),
            biases=self.params.nested_biases(),
            activations=tuple(_vector(a) for a in self._activations),
            pre_activations=tuple(
                None if z is None else _vector(z) for z in self._pre_activations
            ),
            deltas=tuple(_vector(d) for d in self._deltas),
            weight_gradients=tuple(
                tuple(_vector(row) for row in g) for g in self._weight_grads
            ),
            bias_gradients=tuple(_vector(g) for g in self._bias_grads),
            previous_weights=self.previous.nested_weights(),
        )


__all__ = ["NetworkConfig", "TrainingEngine"]
