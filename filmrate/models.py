# filmrate/models.py
import threading
from contextlib import contextmanager
from typing import Optional

import torch
import torch.nn as nn

from .config import SCALINGS
from .errors import ModelBusyError

RATING_LOW = 1.0
RATING_SPAN = 4.0


def _embedding(weight: torch.Tensor) -> nn.Embedding:
    return nn.Embedding.from_pretrained(weight, freeze=False)


class MF(nn.Module):
    """Matrix Factorization with user/item/global biases and an output transform.

    scaling:
      "sigmoid"  1 + 4 * sigmoid(a * score + b), a and b trained with the factors
      "linear"   clamp(3 + score, 1, 5), a fixed shift to the middle of the scale
      "none"     raw score
    """
    def __init__(self, n_users: int, n_items: int, dim: int = 6, scaling: str = "sigmoid",
                 generator: Optional[torch.Generator] = None):
        super().__init__()
        if scaling not in SCALINGS:
            raise ValueError(f"unknown scaling {scaling!r}, expected one of {SCALINGS}")
        self.scaling = scaling
        # factors ~ N(0, 0.01), biases 0; drawn from ``generator`` (global RNG if None)
        self.user = _embedding(torch.randn(n_users, dim, generator=generator) * 0.01)
        self.item = _embedding(torch.randn(n_items, dim, generator=generator) * 0.01)
        self.ubias = _embedding(torch.zeros(n_users, 1))
        self.ibias = _embedding(torch.zeros(n_items, 1))
        self.gbias = nn.Parameter(torch.zeros(1))

        if scaling == "sigmoid":
            self.out_scale = nn.Parameter(torch.ones(1))
            self.out_shift = nn.Parameter(torch.zeros(1))

    @property
    def n_users(self) -> int:
        return self.user.num_embeddings

    @property
    def n_items(self) -> int:
        return self.item.num_embeddings

    @property
    def dim(self) -> int:
        return self.user.embedding_dim

    def score(self, u, i):
        pu = self.user(u)            # [B, dim]
        qi = self.item(i)            # [B, dim]
        dot = (pu * qi).sum(dim=1)   # [B]
        return dot + self.ubias(u).squeeze(1) + self.ibias(i).squeeze(1) + self.gbias

    def forward(self, u, i):
        s = self.score(u, i)
        if self.scaling == "sigmoid":
            return RATING_LOW + RATING_SPAN * torch.sigmoid(self.out_scale * s + self.out_shift)
        if self.scaling == "linear":
            return torch.clamp(RATING_LOW + RATING_SPAN / 2 + s, RATING_LOW, RATING_LOW + RATING_SPAN)
        return s


class RatingModel:
    """Owns one trained MF and its lifecycle: untrained -> training -> ready.

    The parameter tables are replaced as a whole when a fit succeeds and are
    never written afterwards, so ready models are safe for concurrent reads.
    """

    UNTRAINED = "untrained"
    TRAINING = "training"
    READY = "ready"

    def __init__(self, dim: int = 6, scaling: str = "sigmoid"):
        self.dim = dim
        self.scaling = scaling
        self.net = None
        self.history = []
        self.state = self.UNTRAINED
        self._train_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self.state == self.READY and self.net is not None

    @property
    def n_users(self) -> int:
        return self.net.n_users if self.net is not None else 0

    @property
    def n_items(self) -> int:
        return self.net.n_items if self.net is not None else 0

    @contextmanager
    def training_session(self):
        """Hold the model in the training state; restore the prior state unless install() ran."""
        if not self._train_lock.acquire(blocking=False):
            raise ModelBusyError("model is already training")
        prior = self.state
        self.state = self.TRAINING
        try:
            yield self
        finally:
            if self.state == self.TRAINING:
                self.state = prior
            self._train_lock.release()

    def install(self, net: MF, history) -> None:
        """Freeze ``net`` and make it the served model."""
        net.eval()
        net.requires_grad_(False)
        self.net = net
        self.dim = net.dim
        self.scaling = net.scaling
        self.history = list(history)
        self.state = self.READY

    def parameter_snapshot(self) -> dict:
        if self.net is None:
            return {}
        return {name: t.detach().clone() for name, t in self.net.state_dict().items()}

    def tables(self) -> dict:
        """user_factors, item_factors, user_bias, item_bias, global_bias as tensors."""
        if self.net is None:
            return {}
        return {
            "user_factors": self.net.user.weight.detach(),
            "item_factors": self.net.item.weight.detach(),
            "user_bias": self.net.ubias.weight.detach().squeeze(1),
            "item_bias": self.net.ibias.weight.detach().squeeze(1),
            "global_bias": self.net.gbias.detach().squeeze(0),
        }

    def __repr__(self) -> str:
        return (f"RatingModel(dim={self.dim}, scaling={self.scaling!r}, state={self.state!r}, "
                f"users={self.n_users}, items={self.n_items})")
