"""CNN categorical, attribute and regression losses with closed-form gradients."""

from nnloss.config import LossConfig, LossFamily, LossType, UnknownLossError
from nnloss.integrations import NNLossFunction, NNLossModule
from nnloss.operator import LossOperator, nnloss
from nnloss.types import FieldSize, LossInputs

__all__ = [
    "FieldSize",
    "LossConfig",
    "LossFamily",
    "LossInputs",
    "LossOperator",
    "LossType",
    "NNLossFunction",
    "NNLossModule",
    "UnknownLossError",
    "nnloss",
]
