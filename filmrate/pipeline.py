"""
Recommender: load data -> train -> serve predictions.

Holds the current Dataset and RatingModel and reports where it is through
``status`` / ``status_message`` (and the optional ``on_status`` callback),
which is what a front end shows while the model trains.
"""

import logging
from typing import Callable, Optional

from .config import SyntheticConfig, TrainConfig
from .data import Dataset, load_dataset
from .errors import FilmrateError, ModelBusyError, TrainingCancelled, TrainingError
from .models import RatingModel
from .predict import categorize, predict
from .synthetic import generate_dataset
from .training import EpochProgress, fit

logger = logging.getLogger(__name__)


class Recommender:
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    TRAINING = "training"
    READY = "ready"
    ERROR = "error"

    def __init__(self, train_config: Optional[TrainConfig] = None,
                 synthetic_config: Optional[SyntheticConfig] = None,
                 on_status: Optional[Callable[[str, str], None]] = None):
        self.train_config = train_config or TrainConfig()
        self.synthetic_config = synthetic_config or SyntheticConfig()
        self.on_status = on_status
        self.dataset: Optional[Dataset] = None
        self.model = RatingModel(dim=self.train_config.k, scaling=self.train_config.scaling)
        self.status = self.IDLE
        self.status_message = ""

    def _set_status(self, status: str, message: str) -> None:
        self.status = status
        self.status_message = message
        logger.info("[%s] %s", status, message)
        if self.on_status is not None:
            self.on_status(status, message)

    @property
    def is_ready(self) -> bool:
        return self.model.is_ready

    @property
    def history(self) -> list:
        return self.model.history

    def load(self, items_text: Optional[str], ratings_text: Optional[str]) -> Dataset:
        """Ingest item/rating text; unusable input silently becomes synthetic data."""
        self._reset_model()
        self._set_status(self.LOADING, "Loading data...")
        self.dataset = load_dataset(items_text, ratings_text, self.synthetic_config)
        self._loaded()
        return self.dataset

    def load_synthetic(self) -> Dataset:
        self._reset_model()
        self._set_status(self.LOADING, "Generating synthetic data...")
        self.dataset = generate_dataset(self.synthetic_config)
        self._loaded()
        return self.dataset

    def _reset_model(self) -> None:
        """A new dataset invalidates the trained model; refuse while one is training."""
        if self.model.state == RatingModel.TRAINING:
            raise ModelBusyError("cannot load a new dataset while the model is training")
        self.model = RatingModel(dim=self.train_config.k, scaling=self.train_config.scaling)

    def _loaded(self) -> None:
        d = self.dataset
        self._set_status(
            self.LOADED,
            f"Data loaded ({d.source}): {d.num_users} users, {d.num_items} movies, "
            f"{len(d.ratings)} ratings",
        )

    def train(self, on_epoch_end: Optional[Callable[[EpochProgress], None]] = None,
              cancel_event=None) -> RatingModel:
        if self.dataset is None:
            raise TrainingError("no dataset loaded; call load() or load_synthetic() first")
        epochs = self.train_config.epochs
        self._set_status(self.TRAINING, f"Starting training... ({epochs} epochs)")

        def progress(p: EpochProgress) -> None:
            self._set_status(self.TRAINING, f"Epoch {p.epoch}/{epochs} - Loss: {p.training_loss:.4f}")
            if on_epoch_end is not None:
                on_epoch_end(p)

        try:
            fit(self.dataset, self.train_config, model=self.model,
                on_epoch_end=progress, cancel_event=cancel_event)
        except ModelBusyError:
            raise
        except TrainingCancelled as e:
            self._set_status(self.READY if self.is_ready else self.LOADED, f"Training cancelled: {e}")
            raise
        except FilmrateError as e:
            self._set_status(self.READY if self.is_ready else self.ERROR, f"Error during training: {e}")
            raise
        self._set_status(self.READY, "Model training completed! Ready for predictions.")
        return self.model

    def predict(self, user_id: int, item_id: int) -> float:
        return predict(self.model, user_id, item_id)

    def categorize(self, rating: float) -> str:
        return categorize(rating)
