"""Data structures holding validated operator inputs."""

from dataclasses import dataclass

import torch

from nnloss.compile_util import skip_if_compiling
from nnloss.config import LossFamily
from nnloss.types.type_aliases import LabelTensor, PredictionTensor


@dataclass(frozen=True, slots=True)
class FieldSize:
    """Size of a prediction field (height, width, depth, batch)."""

    height: int
    width: int
    depth: int
    batch: int

    @property
    def num_locations(self) -> int:
        return self.height * self.width

    @property
    def volume(self) -> int:
        """Number of scalar predictions per image."""
        return self.height * self.width * self.depth


@dataclass(frozen=True, slots=True)
class LossInputs:
    """Predictions and labels in canonical [N, C, H, W] order."""

    predictions: PredictionTensor  # Shape: [N, D, H, W]
    labels: LabelTensor  # Shape: [N, 1, H, W] or [N, D, H, W]
    family: LossFamily

    @skip_if_compiling
    def __post_init__(self) -> None:
        """Validate that labels match the prediction field."""
        if self.predictions.dim() != 4:
            raise ValueError("predictions must be a 4-D tensor")
        if self.labels.dim() != 4:
            raise ValueError("labels must be a 4-D tensor")
        if self.labels.shape[0] != self.predictions.shape[0]:
            raise ValueError("labels and predictions must have the same batch size")
        if self.labels.shape[2:] != self.predictions.shape[2:]:
            raise ValueError(
                "labels and predictions must have the same height and width"
            )
        if self.family is LossFamily.CATEGORICAL:
            if self.labels.shape[1] != 1:
                raise ValueError(
                    "categorical losses need one label per prediction vector"
                )
            depth = self.predictions.shape[1]
            if ((self.labels < 0) | (self.labels > depth)).any():
                raise ValueError(f"categorical labels must be in [0, {depth}]")
        elif self.labels.shape[1] != self.predictions.shape[1]:
            raise ValueError(
                f"{self.family.value} losses need one label per prediction scalar"
            )
        elif self.family is LossFamily.BINARY:
            if not torch.isin(self.labels, self.labels.new_tensor([-1, 0, 1])).all():
                raise ValueError("binary labels must be +1, -1 or 0")

    @property
    def size(self) -> FieldSize:
        n, d, h, w = self.predictions.shape
        return FieldSize(height=h, width=w, depth=d, batch=n)

    @property
    def label_volume(self) -> int:
        """Number of labels per image."""
        return self.labels.shape[1] * self.size.num_locations
