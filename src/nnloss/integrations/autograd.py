"""PyTorch autograd wrappers for the loss operator."""

from typing import Any

import torch

from nnloss.config import LossConfig
from nnloss.operator import LossOperator


class NNLossFunction(torch.autograd.Function):
    """Autograd function whose backward pass is the closed-form gradient.

    Usage: ``NNLossFunction.apply(predictions, labels, config)``. Labels and
    config receive no gradient.
    """

    @staticmethod
    def forward(
        ctx: Any,
        predictions: torch.Tensor,
        labels: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        ctx.save_for_backward(predictions, labels)
        ctx.config = config
        return LossOperator(config).forward(predictions, labels)

    @staticmethod
    def backward(
        ctx: Any, grad_output: torch.Tensor
    ) -> tuple[torch.Tensor | None, None, None]:
        if not ctx.needs_input_grad[0]:
            return None, None, None
        predictions, labels = ctx.saved_tensors
        grad = LossOperator(ctx.config).backward(predictions, labels, grad_output)
        return grad, None, None


class NNLossModule(torch.nn.Module):
    """Loss layer for use inside a ``torch.nn`` model.

    Example:
        >>> criterion = NNLossModule(LossConfig(loss="softmaxlog", layout="NCHW"))
        >>> loss = criterion(model(images), labels)
        >>> loss.backward()
    """

    def __init__(self, config: LossConfig | None = None, **options: Any) -> None:
        """Initialize the loss layer.

        Args:
            config: Loss configuration
            **options: ``LossConfig`` fields, used when ``config`` is omitted
        """
        super().__init__()
        if config is None:
            config = LossConfig(**options)
        elif options:
            raise ValueError("pass either config or keyword options, not both")
        self.config: LossConfig = config

    def forward(self, predictions: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
        """Compute the loss; gradients flow back to ``predictions``."""
        result: torch.Tensor = NNLossFunction.apply(predictions, labels, self.config)
        return result

    def extra_repr(self) -> str:
        return f"loss={self.config.loss.value!r}, layout={self.config.layout!r}"
