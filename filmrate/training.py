"""
Train an MF model on a Dataset.

Random train/validation split, per-epoch shuffled mini-batches, Adam on MSE.
After every epoch an EpochProgress is logged and handed to ``on_epoch_end``.

Usage:
  model = fit(dataset, epochs=50, k=16)
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import torch
import torch.nn as nn
from torch.utils.data import DataLoader
from torch.utils.data import Dataset as TorchDataset

from .config import TrainConfig
from .data import Dataset
from .errors import DataError, TrainingCancelled, TrainingError
from .models import MF, RatingModel

logger = logging.getLogger(__name__)


class RatingsDS(TorchDataset):
    def __init__(self, u: torch.Tensor, i: torch.Tensor, r: torch.Tensor):
        self.u = u
        self.i = i
        self.r = r

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "RatingsDS":
        return cls(
            torch.tensor([x.user_id for x in dataset.ratings], dtype=torch.long),
            torch.tensor([x.item_id for x in dataset.ratings], dtype=torch.long),
            torch.tensor([x.value for x in dataset.ratings], dtype=torch.float32),
        )

    def subset(self, idx: torch.Tensor) -> "RatingsDS":
        return RatingsDS(self.u[idx], self.i[idx], self.r[idx])

    def __len__(self): return len(self.r)
    def __getitem__(self, idx): return self.u[idx], self.i[idx], self.r[idx]


@dataclass(frozen=True)
class EpochProgress:
    epoch: int
    training_loss: float
    validation_loss: Optional[float]

    @property
    def diverged(self) -> bool:
        losses = [self.training_loss, self.validation_loss]
        return any(x is not None and not math.isfinite(x) for x in losses)


def split_indices(n: int, validation_fraction: float, generator: torch.Generator):
    """Random (train, valid) index split; the training side always keeps a row."""
    n_valid = min(int(n * validation_fraction), n - 1)
    perm = torch.randperm(n, generator=generator)
    return perm[n_valid:], perm[:n_valid]


def evaluate(net: MF, loader: DataLoader, loss_fn) -> Optional[float]:
    """Mean loss over ``loader``, or None when it is empty."""
    net.eval()
    total_loss, n = 0.0, 0
    with torch.no_grad():
        for u, i, r in loader:
            pred = net(u, i)
            loss = loss_fn(pred, r)
            total_loss += loss.item() * len(r)
            n += len(r)
    return total_loss / n if n else None


def _check_trainable(dataset: Dataset) -> None:
    if dataset is None or not dataset.ratings:
        raise TrainingError("cannot train on an empty dataset")
    try:
        dataset.validate()
    except DataError as e:
        raise TrainingError(f"dataset is not trainable: {e}") from e


def _train(dataset: Dataset, config: TrainConfig,
           on_epoch_end: Optional[Callable[[EpochProgress], None]],
           cancel_event) -> tuple:
    # all randomness (init, split, shuffling) comes from one local generator
    gen = torch.Generator().manual_seed(config.seed)

    full = RatingsDS.from_dataset(dataset)
    train_idx, valid_idx = split_indices(len(full), config.validation_fraction, gen)
    train_ds, valid_ds = full.subset(train_idx), full.subset(valid_idx)

    train_loader = DataLoader(train_ds, batch_size=config.batch_size, shuffle=True,
                              drop_last=False, generator=gen)
    valid_loader = DataLoader(valid_ds, batch_size=config.batch_size, shuffle=False,
                              drop_last=False, generator=gen)

    net = MF(n_users=dataset.num_users, n_items=dataset.num_items,
             dim=config.k, scaling=config.scaling, generator=gen)
    opt = torch.optim.Adam(net.parameters(), lr=config.learning_rate)
    loss_fn = nn.MSELoss()

    logger.info(
        "Training MF: users=%d items=%d dim=%d scaling=%s train=%d valid=%d",
        dataset.num_users, dataset.num_items, config.k, config.scaling,
        len(train_ds), len(valid_ds),
    )
    history = []
    for ep in range(1, config.epochs + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise TrainingCancelled(f"training cancelled before epoch {ep}/{config.epochs}")

        net.train()
        running = 0.0
        seen = 0
        for u, i, r in train_loader:
            opt.zero_grad()
            pred = net(u, i)
            loss = loss_fn(pred, r)
            loss.backward()
            opt.step()
            running += loss.item() * len(r)
            seen += len(r)

        progress = EpochProgress(
            epoch=ep,
            training_loss=running / max(seen, 1),
            validation_loss=evaluate(net, valid_loader, loss_fn),
        )
        history.append(progress)
        logger.info(
            "Epoch %02d/%d | train MSE %.4f | valid MSE %s", ep, config.epochs,
            progress.training_loss,
            "n/a" if progress.validation_loss is None else f"{progress.validation_loss:.4f}",
        )
        if progress.diverged:
            logger.warning("Loss is not finite at epoch %d; the model has diverged", ep)
        if on_epoch_end is not None:
            on_epoch_end(progress)

    return net, history


def fit(dataset: Dataset, config: Optional[TrainConfig] = None, *,
        model: Optional[RatingModel] = None,
        on_epoch_end: Optional[Callable[[EpochProgress], None]] = None,
        cancel_event=None, **overrides) -> RatingModel:
    """
    Train a latent-factor model on ``dataset`` and return it ready for predict().

    Hyperparameters come from ``config`` (default TrainConfig()) with keyword
    overrides, e.g. ``fit(ds, k=2, epochs=50, batch_size=3, learning_rate=0.05)``.
    Passing an existing ``model`` retrains it in place; its previous
    parameters are kept if training fails or is cancelled.
    ``cancel_event`` (anything with ``is_set()``) is checked between epochs.
    """
    config = config or TrainConfig()
    if overrides:
        try:
            config = config.replace(**overrides)
        except TypeError as e:
            raise TrainingError(f"unknown hyperparameter: {e}") from e
    config.validate()
    _check_trainable(dataset)

    if model is None:
        model = RatingModel(dim=config.k, scaling=config.scaling)
    with model.training_session():
        net, history = _train(dataset, config, on_epoch_end, cancel_event)
        model.install(net, history)
    return model
