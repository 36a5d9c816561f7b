"""
Parse MovieLens-style item and rating text into a validated Dataset.

- items:   one record per line, pipe-delimited  ``sourceId|title|...``
- ratings: one record per line, tab-delimited   ``user<TAB>item<TAB>rating<TAB>...``

Source ids are 1-based; everything inside filmrate is 0-based.  The offset is
applied here and nowhere else (``Movie.original_id`` keeps the source id).
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .errors import DataError

logger = logging.getLogger(__name__)

MIN_RATING = 1.0
MAX_RATING = 5.0


@dataclass(frozen=True)
class Movie:
    id: int
    title: str
    original_id: int


@dataclass(frozen=True)
class Rating:
    user_id: int
    item_id: int
    value: float


@dataclass(frozen=True)
class Dataset:
    items: tuple
    ratings: tuple
    num_users: int
    num_items: int
    source: str = "ingested"

    @classmethod
    def from_ratings(cls, items, ratings, source: str = "ingested") -> "Dataset":
        """Derive the cardinalities from ``ratings`` and validate."""
        ratings = tuple(ratings)
        num_users = max((r.user_id for r in ratings), default=-1) + 1
        num_items = max((r.item_id for r in ratings), default=-1) + 1
        dataset = cls(tuple(items), ratings, num_users, num_items, source)
        dataset.validate()
        return dataset

    def validate(self) -> "Dataset":
        if not self.ratings:
            raise DataError("dataset has no ratings")
        if self.num_users <= 0 or self.num_items <= 0:
            raise DataError(f"dataset is empty: {self.num_users} users x {self.num_items} items")
        max_user = max(r.user_id for r in self.ratings)
        max_item = max(r.item_id for r in self.ratings)
        if self.num_users != max_user + 1:
            raise DataError(f"num_users={self.num_users} but max user id is {max_user}")
        if self.num_items != max_item + 1:
            raise DataError(f"num_items={self.num_items} but max item id is {max_item}")
        for r in self.ratings:
            if r.user_id < 0 or r.item_id < 0:
                raise DataError(f"negative id in {r}")
            if not MIN_RATING <= r.value <= MAX_RATING:
                raise DataError(f"rating out of range in {r}")
        return self

    def title(self, item_id: int) -> str:
        for movie in self.items:
            if movie.id == item_id:
                return movie.title
        return f"<item {item_id}>"

    def summary(self) -> dict:
        return {
            "source": self.source,
            "n_users": int(self.num_users),
            "n_items": int(self.num_items),
            "n_titles": len(self.items),
            "n_ratings": len(self.ratings),
        }

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "user_id": [r.user_id for r in self.ratings],
                "item_id": [r.item_id for r in self.ratings],
                "rating": [r.value for r in self.ratings],
            },
            columns=["user_id", "item_id", "rating"],
        )


def _split_lines(text: Optional[str], sep: str, min_fields: int) -> list:
    rows = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        parts = line.split(sep)
        if len(parts) >= min_fields:
            rows.append(parts[:min_fields])
    return rows


def _positive_int(col: pd.Series) -> pd.Series:
    """Mask of values that are finite, integral and > 0."""
    return np.isfinite(col) & (col > 0) & (col == col.round())


def parse_items(text: Optional[str]) -> list:
    """
    Parse pipe-delimited item records into Movies sorted by id.

    Records whose first field is not a positive integer are discarded.
    A repeated source id keeps the later record; unused ids leave no gap.
    """
    rows = _split_lines(text, "|", 2)
    if not rows:
        return []
    df = pd.DataFrame(rows, columns=["source_id", "title"])
    df["source_id"] = pd.to_numeric(df["source_id"].str.strip(), errors="coerce")
    df = df[_positive_int(df["source_id"])]
    df = df.drop_duplicates("source_id", keep="last").sort_values("source_id")

    dropped = len(rows) - len(df)
    if dropped:
        logger.debug("Discarded %d item records (bad id or duplicate)", dropped)

    return [
        Movie(id=int(sid) - 1, title=title, original_id=int(sid))
        for sid, title in zip(df["source_id"], df["title"])
    ]


def parse_ratings(text: Optional[str]) -> list:
    """
    Parse tab-delimited rating records into 0-based Ratings, in input order.

    A record is kept only if user and item ids are positive integers and the
    rating is a number in [1, 5].
    """
    rows = _split_lines(text, "\t", 3)
    if not rows:
        return []
    df = pd.DataFrame(rows, columns=["user", "item", "rating"])
    for col in df.columns:
        df[col] = pd.to_numeric(df[col].str.strip(), errors="coerce")

    valid = (
        _positive_int(df["user"])
        & _positive_int(df["item"])
        & df["rating"].between(MIN_RATING, MAX_RATING)
    )
    if not valid.all():
        logger.debug("Discarded %d invalid rating records", int((~valid).sum()))
    df = df[valid]

    return [
        Rating(user_id=int(u) - 1, item_id=int(i) - 1, value=float(r))
        for u, i, r in zip(df["user"], df["item"], df["rating"])
    ]


def build_dataset(items_text: Optional[str], ratings_text: Optional[str]) -> Dataset:
    """Parse both blobs and build a validated Dataset, or raise DataError."""
    items = parse_items(items_text)
    if not items:
        raise DataError("no valid item records")
    ratings = parse_ratings(ratings_text)
    if not ratings:
        raise DataError("no valid rating records")

    known = {m.id for m in items}
    kept = [r for r in ratings if r.item_id in known]
    if len(kept) < len(ratings):
        logger.info("Dropped %d ratings for unknown items", len(ratings) - len(kept))
    if not kept:
        raise DataError("no rating references a known item")

    dataset = Dataset.from_ratings(items, kept, source="ingested")
    logger.info(
        "Data loaded: %d users, %d items, %d ratings",
        dataset.num_users, dataset.num_items, len(dataset.ratings),
    )
    return dataset


def load_dataset(items_text: Optional[str], ratings_text: Optional[str], synthetic=None) -> Dataset:
    """
    Like build_dataset, but never fails: unusable input is replaced by a
    synthetic dataset generated from ``synthetic`` (a SyntheticConfig).
    """
    from .synthetic import generate_dataset

    try:
        return build_dataset(items_text, ratings_text)
    except DataError as e:
        logger.warning("Falling back to synthetic data: %s", e)
        return generate_dataset(synthetic)
