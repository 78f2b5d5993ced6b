"""Type aliases for tensor types used throughout the package."""

import torch

# Canonical working order is [N, C, H, W]; see nnloss.labels for layout handling
PredictionTensor = torch.Tensor  # [N, D, H, W] - per-location scores for D categories
LabelTensor = torch.Tensor  # [N, 1, H, W] categorical or [N, D, H, W] attributes
WeightTensor = torch.Tensor  # broadcastable to the label tensor, or [N] per image
LossTensor = torch.Tensor  # 0-d scalar loss
