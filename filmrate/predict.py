# filmrate/predict.py
import math
import numbers

import torch

from .data import MAX_RATING, MIN_RATING
from .errors import ModelNotReady, UnknownItem, UnknownUser
from .models import RatingModel

MIDPOINT = (MIN_RATING + MAX_RATING) / 2

# (threshold, label), highest first
LABELS = (
    (4.5, "Excellent"),
    (4.0, "Very Good"),
    (3.0, "Good"),
    (2.0, "Fair"),
)


def _check_id(value, upper: int, error, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise error(f"{what} id must be an integer, got {value!r}", id=value)
    if not 0 <= value < upper:
        raise error(f"unknown {what} id {value} (model has {upper})", id=int(value), limit=upper)
    return int(value)


def predict(model: RatingModel, user_id: int, item_id: int) -> float:
    """Predicted rating in [1, 5] for one (user, item) pair. Reads the model only."""
    if model is None or not model.is_ready:
        state = "missing" if model is None else model.state
        raise ModelNotReady(f"model is not ready for predictions (state: {state})", state=state)
    net = model.net
    u = _check_id(user_id, net.n_users, UnknownUser, "user")
    i = _check_id(item_id, net.n_items, UnknownItem, "item")

    with torch.inference_mode():
        out = net(torch.tensor([u], dtype=torch.long), torch.tensor([i], dtype=torch.long))
        out = torch.nan_to_num(out, nan=MIDPOINT).clamp(MIN_RATING, MAX_RATING)
    return float(out.item())


def categorize(rating: float) -> str:
    for threshold, label in LABELS:
        if rating >= threshold:
            return label
    return "Poor"


def format_stars(rating: float) -> str:
    """Five-star bar, e.g. 3.6 -> '★★★★☆'."""
    # half stars round up: 4.5 -> 5
    filled = int(math.floor(min(max(rating, MIN_RATING), MAX_RATING) + 0.5))
    return "★" * filled + "☆" * (5 - filled)
