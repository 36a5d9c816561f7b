#!/usr/bin/env python3
"""
Train an MF model on MovieLens-style u.item / u.data files (or synthetic data)
and predict one user/movie rating.

Usage:
  python -m scripts.train_mf --items data/u.item --ratings data/u.data --epochs 20 --uid 0 --iid 49
  python -m scripts.train_mf --synthetic --epochs 10
"""

import argparse
import logging
import sys

from filmrate import Recommender, SyntheticConfig, TrainConfig, format_stars
from filmrate.errors import PredictionError
from filmrate.utils import read_text


def build_parser() -> argparse.ArgumentParser:
    defaults = TrainConfig.from_env()
    ap = argparse.ArgumentParser()
    ap.add_argument("--items", type=str, default=None, help="Pipe-delimited item file (u.item)")
    ap.add_argument("--ratings", type=str, default=None, help="Tab-delimited rating file (u.data)")
    ap.add_argument("--synthetic", action="store_true", help="Skip the files and use synthetic data")
    ap.add_argument("--epochs", type=int, default=defaults.epochs)
    ap.add_argument("--dim", type=int, default=defaults.k)
    ap.add_argument("--batch", type=int, default=defaults.batch_size)
    ap.add_argument("--lr", type=float, default=defaults.learning_rate)
    ap.add_argument("--valid-frac", type=float, default=defaults.validation_fraction)
    ap.add_argument("--scaling", choices=["sigmoid", "linear", "none"], default=defaults.scaling)
    ap.add_argument("--seed", type=int, default=defaults.seed)
    ap.add_argument("--uid", type=int, default=0, help="internal (0-based) user id to predict for")
    ap.add_argument("--iid", type=int, default=0, help="internal (0-based) item id to predict for")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = TrainConfig(
        k=args.dim,
        epochs=args.epochs,
        batch_size=args.batch,
        learning_rate=args.lr,
        validation_fraction=args.valid_frac,
        seed=args.seed,
        scaling=args.scaling,
    )
    rec = Recommender(train_config=config, synthetic_config=SyntheticConfig.from_env())

    if args.synthetic or not (args.items and args.ratings):
        dataset = rec.load_synthetic()
    else:
        dataset = rec.load(read_text(args.items), read_text(args.ratings))
    print(rec.status_message)

    def report(p):
        valid = "n/a" if p.validation_loss is None else f"{p.validation_loss:.4f}"
        print(f"Epoch {p.epoch:02d} | train MSE {p.training_loss:.4f} | valid MSE {valid}")

    print(f"Training MF: users={dataset.num_users} items={dataset.num_items} dim={config.k}")
    rec.train(on_epoch_end=report)

    try:
        rating = rec.predict(args.uid, args.iid)
    except PredictionError as e:
        print(f"Error making prediction: {e}", file=sys.stderr)
        return 2

    print(
        f"Predicted rating for {dataset.title(args.iid)} by user {args.uid}: "
        f"{rating:.1f} {format_stars(rating)} ({rec.categorize(rating)})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
