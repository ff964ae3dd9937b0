"""backpropviz public API."""

from .core import activations, types  # noqa: F401
from .core.errors import BackwardBeforeForward, EngineError, InvalidInputShape
from .training.engine import NetworkConfig, TrainingEngine
from .training.pipelines import load_preset, presets, run_pipeline
from .training.playback import StepCursor

__all__ = [
    "BackwardBeforeForward",
    "EngineError",
    "InvalidInputShape",
    "NetworkConfig",
    "StepCursor",
    "TrainingEngine",
    "activations",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
