"""Metric sinks receiving per-sample and per-epoch training results."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping

from .trace import encode_float


def _numeric(metrics: Mapping[str, object]) -> dict[str, float]:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Append-only JSONL writer; the file is truncated on construction."""

    def __init__(
        self,
        path: str | Path,
        *,
        seed: int | None = None,
        activation: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed
        self.activation = activation

    def _write(self, counter: str, index: int, metrics: Mapping[str, object]) -> None:
        record: dict[str, object] = {
            counter: int(index),
            "seed": self.seed,
            "activation": self.activation,
        }
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(encode_float(record), allow_nan=False) + "\n")

    def on_step(self, step: int, metrics: Mapping[str, object]) -> None:
        self._write("step", step, metrics)

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self._write("epoch", epoch, metrics)


class CsvSink:
    """CSV writer with a header derived from the first row."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self._fieldnames: list[str] | None = None

    def _write(self, counter: str, index: int, metrics: Mapping[str, object]) -> None:
        row: dict[str, object] = {counter: int(index)}
        row.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            if self._fieldnames is None:
                self._fieldnames = [counter, *sorted(k for k in row if k != counter)]
                writer = csv.DictWriter(handle, fieldnames=self._fieldnames, extrasaction="ignore")
                writer.writeheader()
            else:
                writer = csv.DictWriter(handle, fieldnames=self._fieldnames, extrasaction="ignore")
            writer.writerow(row)

    def on_step(self, step: int, metrics: Mapping[str, object]) -> None:
        self._write("step", step, metrics)

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self._write("epoch", epoch, metrics)


__all__ = ["CsvSink", "JsonlSink"]
