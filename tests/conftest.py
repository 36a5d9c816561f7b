import numpy as np
import pytest

from filmrate import Dataset, Movie, Rating, SyntheticConfig, build_dataset, fit

ITEMS_TEXT = "1|Alpha\n2|Beta\n"
RATINGS_TEXT = "1\t1\t5.0\n1\t2\t3.0\n2\t1\t4.0\n"


@pytest.fixture
def items_text():
    return ITEMS_TEXT


@pytest.fixture
def ratings_text():
    return RATINGS_TEXT


@pytest.fixture
def tiny_dataset():
    return build_dataset(ITEMS_TEXT, RATINGS_TEXT)


@pytest.fixture
def small_synthetic():
    return SyntheticConfig(num_users=12, num_items=8, retention=0.6, seed=7)


def preference_dataset(seed: int, n_users: int = 20, n_items: int = 6) -> Dataset:
    """Every user loves item 0 and dislikes item 1; other items are noise."""
    rng = np.random.default_rng(seed)
    ratings = []
    for u in range(n_users):
        ratings.append(Rating(u, 0, float(rng.choice([4.5, 5.0]))))
        ratings.append(Rating(u, 1, float(rng.choice([1.0, 1.5]))))
        for i in range(2, n_items):
            if rng.random() < 0.7:
                ratings.append(Rating(u, i, float(rng.integers(2, 5))))
    items = [Movie(i, f"Movie {i}", i + 1) for i in range(n_items)]
    return Dataset.from_ratings(items, ratings)


@pytest.fixture
def trained(tiny_dataset):
    return fit(tiny_dataset, k=2, epochs=50, batch_size=3, learning_rate=0.05)


@pytest.fixture
def make_preference_dataset():
    return preference_dataset
