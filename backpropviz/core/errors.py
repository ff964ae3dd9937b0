"""Exceptions raised by the training engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for training engine failures."""


class InvalidInputShape(EngineError, ValueError):
    """The input vector does not match the configured input width."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Expected an input vector of length {expected}, got {received}"
        )
        self.expected = expected
        self.received = received


class BackwardBeforeForward(EngineError, RuntimeError):
    """``backward`` was called without a forward pass for the current step."""

    def __init__(self) -> None:
        super().__init__("backward() requires a preceding forward() call")


__all__ = ["EngineError", "InvalidInputShape", "BackwardBeforeForward"]
