"""
Synthetic ratings used when no real data is available (or it is unusable).

Each item has a fixed mix of genres, each user a preference in [-1, 1] per
genre; the rating is ``clip(3 + 2 * affinity + noise, 1, 5)`` rounded to the
nearest half star, kept with probability ``retention`` per (user, item) pair.
"""

import logging
from typing import Optional

import numpy as np

from .config import SyntheticConfig
from .data import MAX_RATING, MIN_RATING, Dataset, Movie, Rating

logger = logging.getLogger(__name__)

GENRES = ("Action", "Drama", "Comedy", "Sci-Fi", "Romance")


def genre_weights(num_items: int, rng: np.random.Generator) -> np.ndarray:
    """[num_items, n_genres] non-negative weights, each row summing to 1."""
    raw = rng.uniform(0.0, 1.0, size=(num_items, len(GENRES))) ** 2
    return raw / raw.sum(axis=1, keepdims=True)


def affinity_ratings(prefs: np.ndarray, weights: np.ndarray, noise_std: float,
                     rng: np.random.Generator) -> np.ndarray:
    """Dense [num_users, num_items] rating matrix on the half-star grid."""
    affinity = prefs @ weights.T
    noise = np.clip(rng.normal(0.0, noise_std, size=affinity.shape), -2 * noise_std, 2 * noise_std)
    values = np.clip(3.0 + 2.0 * affinity + noise, MIN_RATING, MAX_RATING)
    return np.round(values * 2.0) / 2.0


def sparsity_mask(num_users: int, num_items: int, retention: float,
                  rng: np.random.Generator) -> np.ndarray:
    """
    Keep each pair with probability ``retention``, then force one pair into
    every empty row and every empty column.
    """
    mask = rng.random((num_users, num_items)) < retention
    for u in np.flatnonzero(~mask.any(axis=1)):
        mask[u, rng.integers(num_items)] = True
    for i in np.flatnonzero(~mask.any(axis=0)):
        mask[rng.integers(num_users), i] = True
    return mask


def generate_dataset(config: Optional[SyntheticConfig] = None) -> Dataset:
    config = (config or SyntheticConfig()).validate()
    rng = np.random.default_rng(config.seed)

    weights = genre_weights(config.num_items, rng)
    prefs = rng.uniform(-1.0, 1.0, size=(config.num_users, len(GENRES)))
    values = affinity_ratings(prefs, weights, config.noise_std, rng)
    mask = sparsity_mask(config.num_users, config.num_items, config.retention, rng)

    items = [
        Movie(id=i, title=f"{GENRES[int(weights[i].argmax())]} Feature {i + 1}", original_id=i + 1)
        for i in range(config.num_items)
    ]
    users, cols = np.nonzero(mask)
    ratings = [
        Rating(user_id=int(u), item_id=int(i), value=float(values[u, i]))
        for u, i in zip(users, cols)
    ]

    dataset = Dataset.from_ratings(items, ratings, source="synthetic")
    logger.info(
        "Generated synthetic data: %d users, %d items, %d ratings (%.0f%% dense)",
        dataset.num_users, dataset.num_items, len(ratings),
        100.0 * len(ratings) / (config.num_users * config.num_items),
    )
    return dataset
