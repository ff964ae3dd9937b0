"""Core numerical primitives for backpropviz."""

from . import activations, errors, params, types

__all__ = ["activations", "errors", "params", "types"]
