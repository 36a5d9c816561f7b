import numpy as np
import pytest

from filmrate import SyntheticConfig, generate_dataset
from filmrate.synthetic import GENRES, affinity_ratings, genre_weights, sparsity_mask


def test_default_dataset_is_valid():
    ds = generate_dataset()
    assert ds.validate() is ds
    assert ds.source == "synthetic"
    assert ds.num_users == 100
    assert ds.num_items == 50
    assert len(ds.items) == 50


def test_every_user_and_item_is_rated():
    config = SyntheticConfig(num_users=30, num_items=20, retention=0.01, seed=3)
    ds = generate_dataset(config)
    assert {r.user_id for r in ds.ratings} == set(range(30))
    assert {r.item_id for r in ds.ratings} == set(range(20))


def test_values_on_half_star_grid():
    ds = generate_dataset(SyntheticConfig(num_users=40, num_items=25, seed=11))
    values = np.array([r.value for r in ds.ratings])
    assert values.min() >= 1.0
    assert values.max() <= 5.0
    assert np.all(values * 2 == np.round(values * 2))


def test_sparsity_follows_retention():
    config = SyntheticConfig(num_users=100, num_items=50, retention=0.65, seed=5)
    density = len(generate_dataset(config).ratings) / (100 * 50)
    assert 0.55 < density < 0.75


def test_deterministic_for_seed():
    a = generate_dataset(SyntheticConfig(num_users=10, num_items=6, seed=1))
    b = generate_dataset(SyntheticConfig(num_users=10, num_items=6, seed=1))
    c = generate_dataset(SyntheticConfig(num_users=10, num_items=6, seed=2))
    assert a == b
    assert a.ratings != c.ratings


def test_affinity_drives_rating():
    rng = np.random.default_rng(0)
    weights = genre_weights(4, rng)
    np.testing.assert_allclose(weights.sum(axis=1), 1.0)
    prefs = np.array([[1.0] * len(GENRES), [-1.0] * len(GENRES), [0.0] * len(GENRES)])
    values = affinity_ratings(prefs, weights, noise_std=0.0, rng=rng)
    assert np.all(values[0] == 5.0)
    assert np.all(values[1] == 1.0)
    assert np.all(values[2] == 3.0)


def test_sparsity_mask_fills_empty_rows_and_columns():
    mask = sparsity_mask(15, 9, retention=1e-6, rng=np.random.default_rng(4))
    assert mask.any(axis=1).all()
    assert mask.any(axis=0).all()


def test_titles_name_a_genre():
    ds = generate_dataset(SyntheticConfig(num_users=5, num_items=5))
    for movie in ds.items:
        assert movie.title.split(" Feature ")[0] in GENRES
        assert movie.original_id == movie.id + 1


@pytest.mark.parametrize(
    "kwargs",
    [{"num_users": 0}, {"num_items": -1}, {"retention": 0.0}, {"retention": 1.5}, {"noise_std": -0.1}],
)
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        generate_dataset(SyntheticConfig(**kwargs))
