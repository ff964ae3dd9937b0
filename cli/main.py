"""Command line entry point for backpropviz training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from backpropviz.core.activations import names as activation_names
from backpropviz.reporting.trace import write_trace
from backpropviz.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "metrics": result.metrics_path,
        "trace": result.trace_path,
    }
    if getattr(result, "summary_path", ""):
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=sorted(pipelines.presets().keys()),
        default="default",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument("--seed", type=int, help="Seed for initialisation and samples")
    parser.add_argument("--epochs", type=int, help="Number of epochs")
    parser.add_argument(
        "--samples-per-epoch", type=int, help="Training calls per epoch"
    )
    parser.add_argument("--input-size", type=int, help="Number of input neurons")
    parser.add_argument("--hidden-layers", type=int, help="Number of hidden layers")
    parser.add_argument(
        "--neurons-per-layer", type=int, help="Neurons in each hidden layer"
    )
    parser.add_argument(
        "--activation", choices=list(activation_names()), help="Hidden-layer activation"
    )
    parser.add_argument("--learning-rate", type=float, help="Gradient descent step size")
    parser.add_argument("--run-dir", type=Path, help="Directory for run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a loss curve (matplotlib)"
    )
    parser.add_argument(
        "--input",
        type=float,
        nargs="+",
        help="Train once on this input vector and print every recorded step",
    )
    parser.add_argument(
        "--target", type=float, default=1.0, help="Target used together with --input"
    )
    parser.add_argument(
        "--trace-out", type=Path, help="Write the --input trace as JSONL to this path"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))
    if args.config:
        config = _merge(config, _load_override(args.config))

    network = config.setdefault("network", {})
    train = config.setdefault("train", {})
    for option in ("input_size", "hidden_layers", "neurons_per_layer"):
        value = getattr(args, option)
        if value is not None:
            network[option] = int(value)
    if args.activation:
        network["activation"] = args.activation
    if args.learning_rate is not None:
        network["learning_rate"] = float(args.learning_rate)
    if args.seed is not None:
        train["seed"] = int(args.seed)
    if args.epochs is not None:
        train["epochs"] = int(args.epochs)
    if args.samples_per_epoch is not None:
        train["samples_per_epoch"] = int(args.samples_per_epoch)
    if args.run_dir is not None:
        train["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train["enable_plots"] = True
    return config


def _explain(config: dict, inputs: list[float], target: float, trace_out: Path | None) -> None:
    engine = pipelines.build_engine(config)
    result = engine.train_on_example(inputs, target)
    for index, step in enumerate(result.steps):
        print(f"[{index:3d}] {step.phase:<8} {step.kind:<22} {step.describe()}")
    if trace_out is not None:
        write_trace(trace_out, result.steps)
    print(
        json.dumps(
            {"loss": result.loss, "output": result.output, "error": result.error},
            sort_keys=True,
        )
    )


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = _resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    if args.input:
        _explain(config, list(args.input), float(args.target), args.trace_out)
        return

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
