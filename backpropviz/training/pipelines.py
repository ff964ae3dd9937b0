"""Presets and a headless epoch driver around :class:`TrainingEngine`."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from itertools import islice
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.types import RunResult
from ..data.samples import SampleStream
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from ..reporting.trace import write_trace
from .engine import NetworkConfig, TrainingEngine

_PRESETS: Dict[str, Mapping[str, object]] = {
    "default": {
        "network": {
            "input_size": 3,
            "hidden_layers": 2,
            "neurons_per_layer": 4,
            "activation": "sigmoid",
            "learning_rate": 0.5,
        },
        "train": {
            "epochs": 5,
            "samples_per_epoch": 5,
            "seed": 0,
            "run_dir": "runs/default",
            "enable_plots": False,
        },
    },
    "perceptron": {
        "network": {
            "input_size": 2,
            "hidden_layers": 0,
            "neurons_per_layer": 1,
            "activation": "sigmoid",
            "learning_rate": 1.0,
        },
        "train": {
            "epochs": 10,
            "samples_per_epoch": 8,
            "seed": 1,
            "run_dir": "runs/perceptron",
            "enable_plots": False,
        },
    },
    "relu-deep": {
        "network": {
            "input_size": 6,
            "hidden_layers": 4,
            "neurons_per_layer": 8,
            "activation": "relu",
            "learning_rate": 0.05,
        },
        "train": {
            "epochs": 5,
            "samples_per_epoch": 10,
            "seed": 7,
            "run_dir": "runs/relu-deep",
            "enable_plots": False,
        },
    },
    "tanh-shallow": {
        "network": {
            "input_size": 2,
            "hidden_layers": 1,
            "neurons_per_layer": 3,
            "activation": "tanh",
            "learning_rate": 0.3,
        },
        "train": {
            "epochs": 8,
            "samples_per_epoch": 5,
            "seed": 3,
            "run_dir": "runs/tanh-shallow",
            "enable_plots": False,
        },
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


def build_engine(config: Mapping[str, object]) -> TrainingEngine:
    """Construct an engine from the ``network`` section of a pipeline config."""

    network_cfg = dict(config.get("network", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]
    if network_cfg.get("seed") is None and "seed" in train_cfg:
        network_cfg["seed"] = train_cfg["seed"]
    return TrainingEngine(NetworkConfig.from_mapping(network_cfg))


class _LossCapture:
    def __init__(self) -> None:
        self.samples: List[float] = []
        self.epochs: List[float] = []

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        self.samples.append(float(metrics["loss"]))

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.epochs.append(float(metrics["loss"]))


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train on ``epochs * samples_per_epoch`` random samples, one at a time.

    Every call to :meth:`TrainingEngine.train_on_example` is reported to the
    per-sample sinks; the mean loss of each epoch goes to the epoch sinks. The
    step trace of the final call is written as JSONL.
    """

    if "network" not in config or "train" not in config:
        raise KeyError("Pipeline config requires 'network' and 'train' sections")
    train_cfg = dict(config["train"])  # type: ignore[arg-type]
    epochs = int(train_cfg.get("epochs", 1))
    samples_per_epoch = int(train_cfg.get("samples_per_epoch", 1))
    if epochs < 1 or samples_per_epoch < 1:
        raise ValueError("epochs and samples_per_epoch must both be >= 1")
    seed = int(train_cfg.get("seed", 0))
    run_dir = _resolve_run_dir(train_cfg)
    run_dir.mkdir(parents=True, exist_ok=True)

    engine = build_engine(config)
    _print_startup_summary(
        dims=engine.layers,
        activation=engine.activation.name,
        learning_rate=engine.learning_rate,
        epochs=epochs,
        samples_per_epoch=samples_per_epoch,
        param_count=engine.parameter_count(),
    )

    sample_jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed, activation=engine.activation.name)
    sample_csv = CsvSink(run_dir / "metrics.csv")
    epoch_jsonl = JsonlSink(run_dir / "epochs.jsonl", seed=seed, activation=engine.activation.name)
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    capture = _LossCapture()
    step_sinks: Sequence[object] = (sample_jsonl, sample_csv, plots, capture)
    epoch_sinks: Sequence[object] = (epoch_jsonl, capture)

    stream = iter(SampleStream(engine.layers[0], seed=seed))
    total = 0
    last_steps = ()
    for epoch in range(1, epochs + 1):
        losses: List[float] = []
        for sample in islice(stream, samples_per_epoch):
            result = engine.train_on_example(sample.inputs, sample.target)
            total += 1
            losses.append(result.loss)
            last_steps = result.steps
            metrics = {
                "loss": result.loss,
                "output": result.output,
                "error": result.error,
                "target": sample.target,
            }
            for sink in step_sinks:
                sink.on_step(total, metrics)  # type: ignore[attr-defined]
        epoch_metrics = {"loss": sum(losses) / len(losses)}
        for sink in epoch_sinks:
            sink.on_epoch(epoch, epoch_metrics)  # type: ignore[attr-defined]

    plots.close()
    trace_path = write_trace(run_dir / "trace.jsonl", last_steps)
    summary_path = write_summary(run_dir / "summary.json", capture.samples, capture.epochs)
    (run_dir / "config.json").write_text(json.dumps(_safe_config(config), indent=2))

    return RunResult(
        steps=total,
        metrics_path=str(sample_jsonl.path),
        trace_path=trace_path,
        summary_path=summary_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object]) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp


def _safe_config(config: Mapping[str, object]) -> Mapping[str, object]:
    return json.loads(json.dumps(config))


def _print_startup_summary(
    *,
    dims: Sequence[int],
    activation: str,
    learning_rate: float,
    epochs: int,
    samples_per_epoch: int,
    param_count: int,
) -> None:
    print("=== backpropviz run ===")
    print(f"Layers        : {list(dims)}")
    print(f"Activation    : {activation} (output: sigmoid)")
    print(f"Learning rate : {learning_rate}")
    print(f"Epochs        : {epochs} x {samples_per_epoch} samples")
    print(f"Parameters    : {param_count}")
    print("=======================")


__all__ = ["build_engine", "load_preset", "presets", "run_pipeline"]
