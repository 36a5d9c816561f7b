# filmrate/utils.py
from pathlib import Path

import pandas as pd

from .data import Dataset


def read_text(path: str | Path) -> str:
    """Read a data file; MovieLens u.item is Latin-1, so fall back to it."""
    raw = Path(path).read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def load_item_titles(dataset: Dataset) -> dict[int, str]:
    # internal item id -> title
    return {m.id: m.title for m in dataset.items}


def rating_stats(dataset: Dataset) -> pd.DataFrame:
    """Per-item count and mean rating, most rated first."""
    df = dataset.to_frame()
    stats = df.groupby("item_id")["rating"].agg(n="count", mean="mean").reset_index()
    titles = load_item_titles(dataset)
    stats["title"] = stats["item_id"].map(titles).fillna("")
    return stats.sort_values(["n", "item_id"], ascending=[False, True]).reset_index(drop=True)
