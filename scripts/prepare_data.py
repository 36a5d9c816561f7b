
"""
Check MovieLens-style rating data before training:
- Load u.item (pipe-delimited) and u.data (tab-delimited)
- Parse, drop invalid rows, reindex to 0-based ids
- Fall back to synthetic data when nothing usable is left
- Save artifacts/data_meta.json with counts and the most-rated items
"""

import argparse
import json
from pathlib import Path

from filmrate import SyntheticConfig, load_dataset, parse_items, parse_ratings
from filmrate.utils import rating_stats, read_text


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--data-dir", type=str, default="data", help="Directory containing u.item and u.data")
    ap.add_argument("--items", type=str, default="u.item", help="Item file name inside --data-dir")
    ap.add_argument("--ratings", type=str, default="u.data", help="Rating file name inside --data-dir")
    ap.add_argument("--artifacts-dir", type=str, default="artifacts", help="Where to write metadata")
    ap.add_argument("--top", type=int, default=10, help="How many most-rated items to list")
    args = ap.parse_args(argv)

    DATA = Path(args.data_dir)
    ART = Path(args.artifacts_dir)
    ART.mkdir(parents=True, exist_ok=True)

    items_path = DATA / args.items
    ratings_path = DATA / args.ratings
    items_text = read_text(items_path) if items_path.exists() else ""
    ratings_text = read_text(ratings_path) if ratings_path.exists() else ""
    if not items_text or not ratings_text:
        print(f"Missing or empty {items_path} / {ratings_path}; using synthetic data")

    dataset = load_dataset(items_text, ratings_text, SyntheticConfig.from_env())

    top = rating_stats(dataset).head(args.top)
    meta = {
        **dataset.summary(),
        "raw": {
            "n_item_records": len(parse_items(items_text)),
            "n_valid_rating_records": len(parse_ratings(ratings_text)),
        },
        "most_rated": [
            {"item_id": int(r.item_id), "title": r.title, "n": int(r.n), "mean": round(float(r.mean), 3)}
            for r in top.itertuples()
        ],
    }
    with open(ART / "data_meta.json", "w") as f:
        json.dump(meta, f, indent=2)

    print(json.dumps(meta, indent=2))
    return meta


if __name__ == "__main__":
    main()
