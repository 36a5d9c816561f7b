"""
Training and synthetic-data settings.

Defaults are the small, fast values the browser demo trained with
(6 latent factors, 5 epochs, batch 32, Adam lr 0.01, 20% validation).
Every field can be overridden from the environment, e.g.

    FILMRATE_EPOCHS=50 FILMRATE_K=16 python scripts/train_mf.py
"""

import dataclasses
import numbers
import os
from dataclasses import dataclass

from .errors import TrainingError

ENV_PREFIX = "FILMRATE_"

SCALINGS = ("sigmoid", "linear", "none")


def _from_env(cls, prefix: str, environ=None):
    environ = os.environ if environ is None else environ
    values = {}
    for field in dataclasses.fields(cls):
        raw = environ.get(f"{prefix}{field.name.upper()}")
        if raw is None:
            continue
        type_name = getattr(field.type, "__name__", field.type)
        try:
            if type_name == "int":
                values[field.name] = int(raw)
            elif type_name == "float":
                values[field.name] = float(raw)
            else:
                values[field.name] = raw
        except ValueError as e:
            raise ValueError(f"{prefix}{field.name.upper()}={raw!r} is not a valid {type_name}") from e
    return cls(**values)


@dataclass(frozen=True)
class TrainConfig:
    k: int = 6
    epochs: int = 5
    batch_size: int = 32
    learning_rate: float = 0.01
    validation_fraction: float = 0.2
    seed: int = 42
    scaling: str = "sigmoid"

    def validate(self) -> "TrainConfig":
        """Raise TrainingError naming the first hyperparameter that is out of range."""
        for name in ("k", "epochs", "batch_size", "seed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise TrainingError(f"{name} must be an integer, got {value!r}")
        if self.k < 1:
            raise TrainingError(f"k must be >= 1, got {self.k}")
        for name in ("epochs", "batch_size", "learning_rate", "validation_fraction"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise TrainingError(f"{name} must be a number, got {value!r}")
            if not value > 0:
                raise TrainingError(f"{name} must be positive, got {value}")
        if self.validation_fraction >= 1:
            raise TrainingError(
                f"validation_fraction must be < 1, got {self.validation_fraction}"
            )
        if self.scaling not in SCALINGS:
            raise TrainingError(f"scaling must be one of {SCALINGS}, got {self.scaling!r}")
        return self

    def replace(self, **overrides) -> "TrainConfig":
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, environ=None) -> "TrainConfig":
        return _from_env(cls, prefix, environ)


@dataclass(frozen=True)
class SyntheticConfig:
    num_users: int = 100
    num_items: int = 50
    retention: float = 0.65
    noise_std: float = 0.3
    seed: int = 42

    def validate(self) -> "SyntheticConfig":
        if self.num_users < 1 or self.num_items < 1:
            raise ValueError(
                f"num_users and num_items must be >= 1, got {self.num_users}x{self.num_items}"
            )
        if not 0 < self.retention <= 1:
            raise ValueError(f"retention must be in (0, 1], got {self.retention}")
        if self.noise_std < 0:
            raise ValueError(f"noise_std must be >= 0, got {self.noise_std}")
        return self

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX + "SYNTHETIC_", environ=None) -> "SyntheticConfig":
        return _from_env(cls, prefix, environ)
