"""Common interface of the loss kernels."""

from typing import Protocol

import torch

from nnloss.config import LossConfig


class LossKernel(Protocol):
    """Protocol for a closed-form loss and its derivative.

    Tensors are in canonical [N, C, H, W] order. ``forward`` returns the
    unweighted per-instance losses, shaped like the instance weights.
    ``backward`` receives ``scale = dzdy * weights`` and returns the gradient
    with respect to the predictions.
    """

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor: ...

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor: ...


class FlatGradientMixin:
    """Kernels whose derivative is zero almost everywhere."""

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        return torch.zeros_like(x)
