"""Flat-backed parameter storage for small fully connected networks."""

from __future__ import annotations

from typing import Mapping, Sequence, Tuple

import numpy as np

from .types import Array, LayerShape, Matrix, WeightSet

BIAS_LIMIT = 0.1


def xavier_limit(fan_in: int, fan_out: int) -> float:
    """Half-width of the Glorot uniform range for one layer transition."""

    return float(np.sqrt(6.0 / (fan_in + fan_out)))


class ParameterStore:
    """Weights and biases of every layer transition in two contiguous buffers.

    ``weights(l)`` is a ``(fan_out, fan_in)`` view into the weight buffer, so
    ``weights(l)[j, i]`` connects source neuron ``i`` of layer ``l`` to
    destination neuron ``j`` of layer ``l + 1``.
    """

    def __init__(self, layer_dims: Sequence[int]) -> None:
        dims = tuple(int(d) for d in layer_dims)
        if len(dims) < 2:
            raise ValueError("A network needs at least an input and an output layer")
        if any(d < 1 for d in dims):
            raise ValueError(f"Layer sizes must be positive, got {list(dims)}")
        self.layer_dims = dims

        shapes: list[LayerShape] = []
        weight_offset = 0
        bias_offset = 0
        for fan_in, fan_out in zip(dims[:-1], dims[1:]):
            shapes.append(LayerShape(fan_in, fan_out, weight_offset, bias_offset))
            weight_offset += fan_in * fan_out
            bias_offset += fan_out
        self.shapes: Tuple[LayerShape, ...] = tuple(shapes)
        self.weight_buffer = np.zeros(weight_offset, dtype=np.float64)
        self.bias_buffer = np.zeros(bias_offset, dtype=np.float64)

    @property
    def num_transitions(self) -> int:
        return len(self.shapes)

    def weights(self, layer: int) -> Array:
        shape = self.shapes[layer]
        flat = self.weight_buffer[shape.weight_offset : shape.weight_offset + shape.weight_count]
        return flat.reshape(shape.fan_out, shape.fan_in)

    def biases(self, layer: int) -> Array:
        shape = self.shapes[layer]
        return self.bias_buffer[shape.bias_offset : shape.bias_offset + shape.fan_out]

    def weight_index(self, layer: int, dest: int, src: int) -> int:
        """Offset of ``weights(layer)[dest, src]`` in the flat weight buffer."""

        shape = self.shapes[layer]
        if not 0 <= dest < shape.fan_out:
            raise IndexError(f"Destination neuron {dest} out of range for layer {layer}")
        if not 0 <= src < shape.fan_in:
            raise IndexError(f"Source neuron {src} out of range for layer {layer}")
        return shape.weight_offset + dest * shape.fan_in + src

    def xavier_init(self, rng: np.random.Generator) -> None:
        """Redraw every parameter: Glorot uniform weights, biases in +-0.1."""

        for layer, shape in enumerate(self.shapes):
            limit = xavier_limit(shape.fan_in, shape.fan_out)
            self.weights(layer)[...] = rng.uniform(
                -limit, limit, size=(shape.fan_out, shape.fan_in)
            )
            self.biases(layer)[...] = rng.uniform(-BIAS_LIMIT, BIAS_LIMIT, size=shape.fan_out)

    def copy(self) -> "ParameterStore":
        clone = ParameterStore(self.layer_dims)
        clone.weight_buffer[...] = self.weight_buffer
        clone.bias_buffer[...] = self.bias_buffer
        return clone

    def nested_weights(self) -> WeightSet:
        return tuple(
            tuple(tuple(float(w) for w in row) for row in self.weights(layer))
            for layer in range(self.num_transitions)
        )

    def nested_biases(self) -> Matrix:
        return tuple(
            tuple(float(b) for b in self.biases(layer))
            for layer in range(self.num_transitions)
        )

    def parameter_count(self) -> int:
        return int(self.weight_buffer.size + self.bias_buffer.size)

    def state_dict(self) -> Mapping[str, Array]:
        state: dict[str, Array] = {}
        for layer in range(self.num_transitions):
            state[f"W{layer}"] = self.weights(layer).copy()
            state[f"b{layer}"] = self.biases(layer).copy()
        return state

    def load_state_dict(self, state: Mapping[str, object]) -> None:
        staged: list[tuple[Array, Array]] = []
        for layer, shape in enumerate(self.shapes):
            for key in (f"W{layer}", f"b{layer}"):
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
            W = np.asarray(state[f"W{layer}"], dtype=np.float64)
            b = np.asarray(state[f"b{layer}"], dtype=np.float64)
            if W.shape != (shape.fan_out, shape.fan_in):
                raise ValueError(
                    f"W{layer} must have shape {(shape.fan_out, shape.fan_in)}, got {W.shape}"
                )
            if b.shape != (shape.fan_out,):
                raise ValueError(f"b{layer} must have shape {(shape.fan_out,)}, got {b.shape}")
            staged.append((W, b))
        for layer, (W, b) in enumerate(staged):
            self.weights(layer)[...] = W
            self.biases(layer)[...] = b


__all__ = ["BIAS_LIMIT", "ParameterStore", "xavier_limit"]
