"""Losses over mutually exclusive categories.

Labels have shape [N, 1, H, W] and hold 1-based category indices, with 0
marking ignored locations. Per-instance losses have shape [N, 1, H, W].
"""

import torch

from nnloss.config import LossConfig
from nnloss.losses.base import FlatGradientMixin

# Lower bound on the probability divided by in the log loss derivative
LOG_EPSILON = 1e-8


def label_index(c: torch.Tensor) -> torch.Tensor:
    """Convert 1-based labels into gather indices along the category axis.

    Ignored labels map to index 0; their weight is zero so the value read
    there never matters.
    """
    return (c - 1).clamp(min=0)


def label_scores(x: torch.Tensor, c: torch.Tensor) -> torch.Tensor:
    """Score of the labelled category at every location, shape [N, 1, H, W]."""
    return x.gather(1, label_index(c))


def best_competitor(
    x: torch.Tensor, c: torch.Tensor
) -> tuple[torch.Tensor, torch.Tensor]:
    """Highest score among the categories other than the label.

    Returns:
        Tuple of (scores, indices), both of shape [N, 1, H, W]. With a single
        category the score is -inf.
    """
    competitors = x.scatter(1, label_index(c), float("-inf"))
    scores, indices = competitors.max(dim=1, keepdim=True)
    return scores, indices


class ClassificationError(FlatGradientMixin):
    """L(X, c) = [argmax_q X(q) != c]. Useful for assessment, not training."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        predicted = x.argmax(dim=1, keepdim=True) + 1
        return (c != predicted).to(x.dtype)


class LogLoss:
    """L(X, c) = -log(X(c)), for X already normalized into probabilities."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return -torch.log(label_scores(x, c))

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        xc = label_scores(x, c)
        values = -scale.expand_as(xc) / xc.clamp(min=LOG_EPSILON)
        return torch.zeros_like(x).scatter(1, label_index(c), values)


class SoftmaxLogLoss:
    """Multinomial logistic loss, L(X, c) = -log(softmax(X)(c))."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        x_max = x.amax(dim=1, keepdim=True)
        log_norm = x_max + torch.log(torch.exp(x - x_max).sum(dim=1, keepdim=True))
        return log_norm - label_scores(x, c)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        ex = torch.exp(x - x.amax(dim=1, keepdim=True))
        probs = ex / ex.sum(dim=1, keepdim=True)
        index = label_index(c)
        probs = probs.scatter_add(
            1, index, torch.full(index.shape, -1.0, dtype=x.dtype, device=x.device)
        )
        return scale * probs


class MulticlassHingeLoss:
    """L(X, c) = max(0, 1 - X(c)), with X(c) a precomputed class margin."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return torch.clamp(1 - label_scores(x, c), min=0)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        xc = label_scores(x, c)
        values = -scale.expand_as(xc) * (xc < 1).to(x.dtype)
        return torch.zeros_like(x).scatter(1, label_index(c), values)


class MulticlassStructuredHingeLoss:
    """Crammer-Singer loss, L(X, c) = max(0, 1 - X(c) + max_{q != c} X(q))."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        competitor, _ = best_competitor(x, c)
        return torch.clamp(1 - label_scores(x, c) + competitor, min=0)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        xc = label_scores(x, c)
        competitor, q = best_competitor(x, c)
        active = scale.expand_as(xc) * (xc - competitor < 1).to(x.dtype)
        grad = torch.zeros_like(x)
        grad.scatter_add_(1, label_index(c), -active)
        grad.scatter_add_(1, q, active)
        return grad
