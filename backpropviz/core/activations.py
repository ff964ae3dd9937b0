"""Activation functions and their derivatives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

SIGMOID_CLAMP = 500.0


def sigmoid(x: float) -> float:
    """Logistic sigmoid with the input clamped to avoid overflow in ``exp``."""

    x = np.clip(x, -SIGMOID_CLAMP, SIGMOID_CLAMP)
    return float(1.0 / (1.0 + np.exp(-x)))


def relu(x: float) -> float:
    """Return the ReLU activation."""

    return float(np.maximum(x, 0.0))


def tanh(x: float) -> float:
    return float(np.tanh(x))


def _sigmoid_deriv(z: float, a: float) -> float:
    # reuse the evaluated activation instead of recomputing sigmoid(z)
    return a * (1.0 - a)


def _relu_deriv(z: float, a: float) -> float:
    return 1.0 if z > 0 else 0.0


def _tanh_deriv(z: float, a: float) -> float:
    t = np.tanh(z)
    return float(1.0 - t * t)


DerivativeFn = Callable[[float, float], float]


@dataclass(frozen=True)
class Activation:
    """Activation wrapper pairing ``f(z)`` with ``f'(z)``.

    The derivative receives both the pre-activation ``z`` and the already
    evaluated ``a = f(z)``.
    """

    name: str
    fn: Callable[[float], float]
    derivative: DerivativeFn

    def __call__(self, z: float) -> float:
        return self.fn(z)


ACTIVATIONS: Dict[str, Activation] = {
    "sigmoid": Activation("sigmoid", sigmoid, _sigmoid_deriv),
    "relu": Activation("relu", relu, _relu_deriv),
    "tanh": Activation("tanh", tanh, _tanh_deriv),
}

OUTPUT_ACTIVATION = ACTIVATIONS["sigmoid"]


def names() -> Iterable[str]:
    return sorted(ACTIVATIONS)


def resolve_activation(name: str) -> Activation:
    try:
        return ACTIVATIONS[name]
    except KeyError as exc:
        available = ", ".join(names())
        raise ValueError(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from exc


__all__ = [
    "Activation",
    "ACTIVATIONS",
    "OUTPUT_ACTIVATION",
    "SIGMOID_CLAMP",
    "names",
    "relu",
    "resolve_activation",
    "sigmoid",
    "tanh",
]
