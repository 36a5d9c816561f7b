import pytest

from filmrate import SyntheticConfig, TrainConfig, TrainingError


def test_defaults_validate():
    config = TrainConfig()
    assert config.validate() is config
    assert (config.k, config.epochs, config.batch_size) == (6, 5, 32)
    assert config.learning_rate == 0.01
    assert config.validation_fraction == 0.2
    assert config.scaling == "sigmoid"


@pytest.mark.parametrize(
    "overrides",
    [
        {"k": 0},
        {"epochs": 0},
        {"batch_size": -4},
        {"learning_rate": 0.0},
        {"learning_rate": float("nan")},
        {"validation_fraction": 0.0},
        {"validation_fraction": 1.0},
        {"scaling": "tanh"},
    ],
)
def test_invalid_hyperparameters(overrides):
    with pytest.raises(TrainingError):
        TrainConfig().replace(**overrides).validate()


def test_from_env_overrides_fields():
    env = {
        "FILMRATE_K": "16",
        "FILMRATE_EPOCHS": "40",
        "FILMRATE_LEARNING_RATE": "0.002",
        "FILMRATE_SCALING": "linear",
        "UNRELATED": "1",
    }
    config = TrainConfig.from_env(environ=env)
    assert config.k == 16
    assert config.epochs == 40
    assert config.learning_rate == 0.002
    assert config.scaling == "linear"
    assert config.batch_size == TrainConfig().batch_size


def test_from_env_rejects_garbage():
    with pytest.raises(ValueError, match="FILMRATE_EPOCHS"):
        TrainConfig.from_env(environ={"FILMRATE_EPOCHS": "many"})


def test_synthetic_from_env():
    config = SyntheticConfig.from_env(environ={"FILMRATE_SYNTHETIC_NUM_USERS": "7"})
    assert config.num_users == 7
    assert config.num_items == SyntheticConfig().num_items


@pytest.mark.parametrize(
    "overrides",
    [
        {"k": 2.5},
        {"epochs": 2.5},
        {"batch_size": 8.0},
        {"seed": "42"},
        {"k": True},
        {"learning_rate": "0.01"},
        {"validation_fraction": None},
    ],
)
def test_non_numeric_hyperparameters(overrides):
    with pytest.raises(TrainingError):
        TrainConfig().replace(**overrides).validate()
