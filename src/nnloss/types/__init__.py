"""Type definitions for the nnloss package.

This module contains the data structures and tensor aliases shared by the
label preparation code and the loss kernels.
"""

from nnloss.types.data_structures import FieldSize, LossInputs
from nnloss.types.type_aliases import (
    LabelTensor,
    LossTensor,
    PredictionTensor,
    WeightTensor,
)

__all__ = [
    "FieldSize",
    "LossInputs",
    "LabelTensor",
    "LossTensor",
    "PredictionTensor",
    "WeightTensor",
]
