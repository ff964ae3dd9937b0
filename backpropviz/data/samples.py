"""Random binary-classification samples for the visualizer."""

from __future__ import annotations

from typing import Iterator

import numpy as np

from ..core.types import Sample


def label_for(inputs: np.ndarray) -> float:
    """Target rule: 1 when the mean input exceeds 0.5, otherwise 0."""

    return 1.0 if float(np.mean(inputs)) > 0.5 else 0.0


def make_sample(rng: np.random.Generator, input_size: int) -> Sample:
    """Draw one sample with inputs uniform in ``[0, 1)``."""

    if input_size < 1:
        raise ValueError(f"input_size must be >= 1, got {input_size}")
    x = rng.random(input_size)
    return Sample(inputs=tuple(float(v) for v in x), target=label_for(x))


class SampleStream:
    """Endless, seed-deterministic iterator of samples."""

    def __init__(self, input_size: int, seed: int = 0) -> None:
        self.input_size = int(input_size)
        self.seed = int(seed)

    def __iter__(self) -> Iterator[Sample]:
        rng = np.random.default_rng(self.seed)
        while True:
            yield make_sample(rng, self.input_size)


__all__ = ["SampleStream", "label_for", "make_sample"]
