"""Loss operator: forward loss and gradient for a CNN prediction field."""

import logging
from typing import Any

import torch

from nnloss.config import LossConfig, LossFamily
from nnloss.labels import compute_instance_weights, from_canonical, prepare_inputs
from nnloss.losses import get_kernel
from nnloss.types import LossTensor

logger = logging.getLogger(__name__)


class LossOperator:
    """Categorical, attribute and regression losses for dense predictions.

    The forward pass returns the weighted sum of the per-instance losses
    over the batch. The backward pass returns the derivative of that sum with
    respect to the predictions, multiplied by the upstream derivative
    ``dzdy``.
    """

    def __init__(self, config: LossConfig):
        """Initialize the operator.

        Args:
            config: Loss selection, weights and tensor layout
        """
        self.config = config
        self.kernel = get_kernel(config.loss)

    def __call__(
        self,
        predictions: torch.Tensor,
        labels: torch.Tensor,
        dzdy: torch.Tensor | float | None = None,
    ) -> torch.Tensor:
        """Run the forward pass, or the backward pass when ``dzdy`` is given."""
        if dzdy is None:
            return self.forward(predictions, labels)
        return self.backward(predictions, labels, dzdy)

    def forward(self, predictions: torch.Tensor, labels: torch.Tensor) -> LossTensor:
        """Compute the scalar loss.

        Args:
            predictions: Scores in the configured layout
            labels: Labels in any of the supported forms

        Returns:
            0-d tensor with the dtype and device of ``predictions``
        """
        inputs = prepare_inputs(predictions, labels, self.config)
        weights = compute_instance_weights(inputs, self.config)
        logger.debug(
            "%s forward on predictions of shape %s",
            self.config.loss.value,
            tuple(inputs.predictions.shape),
        )
        losses = self.kernel.forward(inputs.predictions, inputs.labels, self.config)
        # Zero-weight instances must not leak inf or nan into the sum
        return torch.where(weights != 0, weights * losses, 0.0).sum()

    def backward(
        self,
        predictions: torch.Tensor,
        labels: torch.Tensor,
        dzdy: torch.Tensor | float,
    ) -> torch.Tensor:
        """Compute the gradient of the loss with respect to the predictions.

        Args:
            predictions: Scores in the configured layout
            labels: Labels in any of the supported forms
            dzdy: Upstream derivative of the scalar loss

        Returns:
            Tensor with the shape and layout of ``predictions``
        """
        inputs = prepare_inputs(predictions, labels, self.config)
        weights = compute_instance_weights(inputs, self.config)
        x = inputs.predictions
        logger.debug(
            "%s backward on predictions of shape %s",
            self.config.loss.value,
            tuple(x.shape),
        )

        scale = _as_scalar(dzdy, x) * weights
        grad = self.kernel.backward(x, inputs.labels, scale, self.config)

        if self.config.family is LossFamily.REGRESSION:
            weights = weights.reshape(-1, 1, 1, 1)
        grad = torch.where(weights != 0, grad, 0.0)

        return from_canonical(grad, self.config.layout).reshape(predictions.shape)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(loss={self.config.loss.value!r})"


def _as_scalar(dzdy: torch.Tensor | float, x: torch.Tensor) -> torch.Tensor:
    value = torch.as_tensor(dzdy, dtype=x.dtype, device=x.device)
    if value.numel() != 1:
        raise ValueError(
            f"dzdy must hold a single value, got shape {tuple(value.shape)}"
        )
    return value.reshape(())


def nnloss(
    predictions: torch.Tensor,
    labels: torch.Tensor,
    dzdy: torch.Tensor | float | None = None,
    *,
    config: LossConfig | None = None,
    **options: Any,
) -> torch.Tensor:
    """Compute a CNN categorical, attribute or regression loss.

    ``nnloss(x, c)`` returns the loss of the predictions ``x`` given the
    labels ``c``. ``nnloss(x, c, dzdy)`` returns the derivative of the loss
    with respect to ``x``, projected onto ``dzdy``.

    Args:
        predictions: Scores, [H, W, D, N] by default or [N, D, H, W] with
            ``layout="NCHW"``
        labels: One label per image, one categorical label per location, or
            one +1/-1 attribute per prediction scalar
        dzdy: Upstream derivative; selects the backward pass when given
        config: Prebuilt configuration
        **options: ``LossConfig`` fields, used when ``config`` is omitted

    Returns:
        The scalar loss, or the gradient shaped like ``predictions``

    Example:
        >>> x = torch.randn(1, 1, 10, 4)  # 4 images, 10 classes
        >>> c = torch.tensor([1, 5, 2, 10])
        >>> loss = nnloss(x, c, loss="softmaxlog")
        >>> dx = nnloss(x, c, 1.0, loss="softmaxlog")
    """
    if config is None:
        config = LossConfig(**options)
    elif options:
        raise ValueError("pass either config or keyword options, not both")
    return LossOperator(config)(predictions, labels, dzdy)
