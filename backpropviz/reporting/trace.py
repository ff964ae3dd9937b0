"""JSONL wire format for step traces."""

from __future__ import annotations

import json
import math
from dataclasses import asdict, fields
from pathlib import Path
from typing import Iterable, List, Mapping

from ..core.types import STEP_TYPES, Step


def _freeze(value: object) -> object:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value

    """Replace non-finite floats with ``"nan"``, ``"inf"`` or ``"-inf"``, recursively."""
def encode_float(value: object) -> object:
    """Replace non-finite floats with \"nan\", \"inf\" or \"-inf\", recursively."""

    # JSON has no NaN/Infinity literals
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return [encode_float(v) for v in value]
    if isinstance(value, Mapping):
        return {k: encode_float(v) for k, v in value.items()}
    return value


def _decode_float(value: object) -> object:
    if value in ("nan", "inf", "-inf"):
        return float(value)  # type: ignore[arg-type]
    if isinstance(value, list):
        return [_decode_float(v) for v in value]
    return value


def step_to_record(step: Step) -> dict:
    """Plain-dict form of ``step`` including its ``kind`` and ``phase``."""

    record = {key: encode_float(value) for key, value in asdict(step).items()}
    record["phase"] = step.phase
    return record


def step_from_record(record: Mapping[str, object]) -> Step:
    kind = record.get("kind")
    try:
        cls = STEP_TYPES[str(kind)]
    except KeyError as exc:
        raise ValueError(f"Unknown step kind: {kind!r}") from exc
    kwargs = {
        f.name: _freeze(_decode_float(record[f.name]))
        for f in fields(cls)
        if f.init
    }
    return cls(**kwargs)  # type: ignore[arg-type]


def write_trace(path: str | Path, steps: Iterable[Step]) -> str:
    """Write one JSON record per step and return the path."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for step in steps:
            handle.write(json.dumps(step_to_record(step), allow_nan=False) + "\n")
    return str(path)


def read_trace(path: str | Path) -> List[Step]:
    steps: List[Step] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        steps.append(step_from_record(json.loads(line)))
    return steps


__all__ = ["encode_float", "read_trace", "step_from_record", "step_to_record", "write_trace"]
