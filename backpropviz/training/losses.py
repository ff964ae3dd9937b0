"""Loss registry used by the training engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

LossFn = Callable[[float, float], tuple[float, float]]


@dataclass(frozen=True)
class Loss:
    """Loss wrapper returning both the scalar loss and dL/dy."""

    name: str
    fn: LossFn

    def __call__(self, prediction: float, target: float) -> tuple[float, float]:
        return self.fn(prediction, target)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def get(self, name: str) -> Loss:
        if name not in self._registry:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = LossRegistry()


def _half_mse(pred: float, target: float) -> tuple[float, float]:
    # halved so that dL/dy is the plain error
    error = pred - target
    return 0.5 * error * error, error


REGISTRY.register("mse", _half_mse)

__all__ = ["Loss", "LossRegistry", "REGISTRY"]
