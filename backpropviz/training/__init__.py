"""Training engine, playback and pipelines."""

from .engine import NetworkConfig, TrainingEngine
from .playback import StepCursor

__all__ = ["NetworkConfig", "StepCursor", "TrainingEngine"]
