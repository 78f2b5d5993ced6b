"""Losses over independent binary attributes.

Labels have the same [N, D, H, W] shape as the predictions and hold +1 when
an attribute is present, -1 when it is absent and 0 to ignore the entry.
"""

import torch

from nnloss.config import LossConfig
from nnloss.losses.base import FlatGradientMixin


class BinaryClassificationError(FlatGradientMixin):
    """L(x, c) = [sign(x - t) != c], t being ``config.threshold``."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return (torch.sign(x - config.threshold) != c).to(x.dtype)


class BinaryLogLoss:
    """L(x, c) = -log(c (x - 0.5) + 0.5), for x a probability in [0, 1]."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return -torch.log(c * (x - 0.5) + 0.5)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        return -scale / (x + (c - 1) * 0.5)


class LogisticLoss:
    """L(x, c) = log(1 + exp(-c x)).

    Equivalent to the softmax log loss with score x for c = +1 and score 0
    for c = -1.
    """

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        a = -c * x
        b = torch.clamp(a, min=0)
        return b + torch.log(torch.exp(-b) + torch.exp(a - b))

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        # 1 / (1 + exp(c x)) without overflow
        return -scale * c * torch.sigmoid(-c * x)


class HingeLoss:
    """L(x, c) = max(0, 1 - c x)."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return torch.clamp(1 - c * x, min=0)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        return -scale * c * (c * x < 1).to(x.dtype)
