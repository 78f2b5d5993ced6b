"""Label and weight preparation for the loss operator."""

import logging

import torch

from nnloss.config import Layout, LossConfig, LossFamily
from nnloss.types import LabelTensor, LossInputs, PredictionTensor, WeightTensor

logger = logging.getLogger(__name__)


def to_canonical(tensor: torch.Tensor, layout: Layout) -> torch.Tensor:
    """Reorder a 4-D tensor into [N, C, H, W].

    In the HWDN layout trailing singleton dimensions may be omitted, so a
    [H, W, D] tensor is read as a batch of one.

    Args:
        tensor: Tensor in ``layout`` order
        layout: Either "HWDN" or "NCHW"

    Returns:
        View of the tensor in [N, C, H, W] order
    """
    if layout == "NCHW":
        if tensor.dim() != 4:
            raise ValueError(f"expected a 4-D NCHW tensor, got {tensor.dim()}-D")
        return tensor
    if tensor.dim() > 4:
        raise ValueError(f"expected at most 4 dimensions, got {tensor.dim()}")
    tensor = tensor.reshape(tuple(tensor.shape) + (1,) * (4 - tensor.dim()))
    return tensor.permute(3, 2, 0, 1)


def from_canonical(tensor: torch.Tensor, layout: Layout) -> torch.Tensor:
    """Inverse of ``to_canonical`` for full 4-D tensors."""
    if layout == "NCHW":
        return tensor
    return tensor.permute(2, 3, 1, 0)


def expand_labels(
    labels: torch.Tensor, predictions: PredictionTensor, layout: Layout
) -> LabelTensor:
    """Bring labels into [N, C, H, W] order.

    One label per image (``labels.numel() == N``) is broadcast to every
    spatial location, giving a [N, 1, H, W] tensor.

    Args:
        labels: Labels in the caller's layout
        predictions: Canonical predictions of shape [N, D, H, W]
        layout: Layout of ``labels``

    Returns:
        Labels of shape [N, C, H, W]
    """
    n, _, h, w = predictions.shape
    if labels.numel() == n:
        return labels.reshape(n, 1, 1, 1).expand(n, 1, h, w)
    if layout == "NCHW" and labels.dim() == 3:
        labels = labels.unsqueeze(1)
    return to_canonical(labels, layout)


def prepare_inputs(
    predictions: torch.Tensor, labels: torch.Tensor, config: LossConfig
) -> LossInputs:
    """Convert caller tensors into validated canonical inputs."""
    x = to_canonical(predictions, config.layout)
    c = expand_labels(labels.to(x.device), x, config.layout)
    if config.family is LossFamily.CATEGORICAL:
        if c.is_floating_point() and (c != c.round()).any():
            raise ValueError("categorical labels must be whole numbers")
        c = c.long()
    else:
        c = c.to(x.dtype)
    return LossInputs(predictions=x, labels=c, family=config.family)


def compute_instance_weights(inputs: LossInputs, config: LossConfig) -> WeightTensor:
    """Compute the weight of every loss instance.

    Categorical and binary losses get one weight per label, zero where the
    label is 0. Without user weights each image contributes the mean of its
    per-location losses. Regression losses get one weight per image.

    Args:
        inputs: Canonical operator inputs
        config: Operator configuration

    Returns:
        Weights of shape [N, 1, H, W] (categorical), [N, D, H, W] (binary) or
        [N] (regression), in the prediction dtype
    """
    x, c = inputs.predictions, inputs.labels
    n = inputs.size.batch

    if config.family is LossFamily.REGRESSION:
        weights = x.new_ones(n)
        if config.instance_weights is not None:
            weights = weights * _per_image_weights(config.instance_weights, x)
        if config.class_weights is not None:
            logger.warning(
                "class_weights are ignored by the %s loss", config.loss.value
            )
        return weights

    # Null labels denote instances that should be skipped
    weights = (c != 0).to(x.dtype)

    if config.instance_weights is not None:
        weights = weights * _broadcast_instance_weights(
            config.instance_weights, weights, config.layout
        )
    else:
        weights = weights * (1.0 / inputs.label_volume)

    if config.class_weights is not None:
        weights = weights * _class_weight_field(config.class_weights, inputs)

    return weights


def _per_image_weights(user_weights: torch.Tensor, x: PredictionTensor) -> torch.Tensor:
    n = x.shape[0]
    user_weights = user_weights.to(device=x.device, dtype=x.dtype)
    if user_weights.numel() == 1:
        return user_weights.reshape(())
    if user_weights.numel() != n:
        raise ValueError(
            f"regression losses take one instance weight per image ({n}), "
            f"got {user_weights.numel()}"
        )
    return user_weights.reshape(n)


def _broadcast_instance_weights(
    user_weights: torch.Tensor, mask: torch.Tensor, layout: Layout
) -> torch.Tensor:
    n = mask.shape[0]
    user_weights = user_weights.to(device=mask.device, dtype=mask.dtype)
    if user_weights.dim() == 0:
        return user_weights
    if user_weights.dim() == 1 and user_weights.numel() == n:
        user_weights = user_weights.reshape(n, 1, 1, 1)
    elif layout == "NCHW" and user_weights.dim() < 4:
        if user_weights.dim() == 3:
            # [N, H, W], as accepted for labels
            user_weights = user_weights.unsqueeze(1)
        else:
            user_weights = user_weights.reshape(
                (1,) * (4 - user_weights.dim()) + tuple(user_weights.shape)
            )
    else:
        user_weights = to_canonical(user_weights, layout)
    try:
        shape = torch.broadcast_shapes(user_weights.shape, mask.shape)
    except RuntimeError as err:
        raise ValueError(
            f"instance_weights of shape {tuple(user_weights.shape)} cannot be "
            f"broadcast to labels of shape {tuple(mask.shape)}"
        ) from err
    if shape != mask.shape:
        raise ValueError(
            f"instance_weights of shape {tuple(user_weights.shape)} cannot be "
            f"broadcast to labels of shape {tuple(mask.shape)}"
        )
    return user_weights


def _class_weight_field(class_weights: torch.Tensor, inputs: LossInputs) -> torch.Tensor:
    x, c = inputs.predictions, inputs.labels
    depth = x.shape[1]
    if class_weights.numel() != depth:
        raise ValueError(
            f"class_weights must have one entry per category ({depth}), "
            f"got {class_weights.numel()}"
        )
    class_weights = class_weights.to(device=x.device, dtype=x.dtype)
    if inputs.family is LossFamily.CATEGORICAL:
        return class_weights[(c - 1).clamp(min=0)]
    return class_weights.view(1, depth, 1, 1)
