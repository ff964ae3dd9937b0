import numpy as np
import pytest

from backpropviz.data.samples import SampleStream, label_for, make_sample
from backpropviz.training.engine import NetworkConfig, TrainingEngine
from backpropviz.training.losses import REGISTRY as LOSS_REGISTRY


def test_layer_dims():
    assert NetworkConfig(input_size=3, hidden_layers=2, neurons_per_layer=4).layer_dims == [3, 4, 4, 1]
    assert NetworkConfig(input_size=6, hidden_layers=0).layer_dims == [6, 1]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"input_size": 0},
        {"hidden_layers": -1},
        {"neurons_per_layer": 0},
        {"learning_rate": 0.0},
        {"activation": "softmax"},
    ],
)
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        NetworkConfig(**kwargs)


def test_from_mapping_accepts_camel_case():
    cfg = NetworkConfig.from_mapping(
        {
            "inputSize": "2",
            "hiddenLayers": 1,
            "neuronsPerLayer": 5,
            "activationFunction": "relu",
            "learningRate": "0.1",
        }
    )
    assert cfg == NetworkConfig(2, 1, 5, "relu", 0.1)
    with pytest.raises(KeyError):
        NetworkConfig.from_mapping({"momentum": 0.9})


def test_engine_overrides():
    engine = TrainingEngine(NetworkConfig(seed=0), activation="tanh")
    assert engine.activation.name == "tanh"
    assert engine.layers == (3, 4, 4, 1)


def test_half_mse_loss():
    loss = LOSS_REGISTRY.get("mse")
    assert loss(0.75, 1.0) == (pytest.approx(0.03125), -0.25)
    assert loss(0.4, 0.4) == (0.0, 0.0)
    with pytest.raises(KeyError):
        LOSS_REGISTRY.get("hinge")


def test_samples_follow_mean_rule():
    rng = np.random.default_rng(0)
    for _ in range(20):
        sample = make_sample(rng, 4)
        assert len(sample.inputs) == 4
        assert all(0.0 <= v < 1.0 for v in sample.inputs)
        assert sample.target == (1.0 if np.mean(sample.inputs) > 0.5 else 0.0)
    assert label_for(np.array([0.5, 0.5])) == 0.0
    assert label_for(np.array([0.6, 0.5])) == 1.0


def test_sample_stream_is_deterministic():
    a = iter(SampleStream(3, seed=4))
    b = iter(SampleStream(3, seed=4))
    assert [next(a) for _ in range(5)] == [next(b) for _ in range(5)]


def test_sizes_coerced_to_int():
    cfg = NetworkConfig(input_size=2.0, hidden_layers=1.0, neurons_per_layer=2.0, learning_rate=1)
    assert cfg.layer_dims == [2, 2, 1]
    assert all(type(d) is int for d in cfg.layer_dims)
    assert isinstance(cfg.learning_rate, float)
    engine = TrainingEngine(cfg)
    assert engine.layers == (2, 2, 1)
    assert len(engine.train_on_example([0.1, 0.2], 1.0).steps) > 0
