"""Deterministic run summaries."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

from .trace import encode_float


def _stats(values: Sequence[float]) -> Mapping[str, float]:
    arr = np.asarray(values, dtype=np.float64)
    return {
        "min": float(np.min(arr)),
        "max": float(np.max(arr)),
        "mean": float(np.mean(arr)),
        "first": float(arr[0]),
        "last": float(arr[-1]),
    }


def build_summary(
    sample_losses: Sequence[float], epoch_losses: Sequence[float]
) -> Mapping[str, object]:
    summary: dict[str, object] = {
        "version": 1,
        "samples": len(sample_losses),
        "epochs": len(epoch_losses),
        "epoch_loss": [float(v) for v in epoch_losses],
    }
    if sample_losses:
        summary["loss"] = _stats(sample_losses)
    return summary


def write_summary(
    path: str | Path,
    sample_losses: Sequence[float],
    epoch_losses: Sequence[float],
) -> str:
    """Write the summary JSON with sorted keys so reruns are byte-identical."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    summary = build_summary(sample_losses, epoch_losses)
    path.write_text(json.dumps(encode_float(summary), sort_keys=True, indent=2, allow_nan=False))
    return str(path)


__all__ = ["build_summary", "write_summary"]
