"""Closed-form loss kernels and their derivatives."""

from nnloss.config import LossType
from nnloss.losses.base import LossKernel
from nnloss.losses.binary import (
    BinaryClassificationError,
    BinaryLogLoss,
    HingeLoss,
    LogisticLoss,
)
from nnloss.losses.categorical import (
    ClassificationError,
    LogLoss,
    MulticlassHingeLoss,
    MulticlassStructuredHingeLoss,
    SoftmaxLogLoss,
)
from nnloss.losses.regression import (
    AbsoluteRelativeErrorLoss,
    DotProductLoss,
    RelativeErrorLoss,
    RootMeanSquaredErrorLoss,
    SquaredErrorLoss,
    TukeyBiweightLoss,
)

_KERNELS: dict[LossType, LossKernel] = {
    LossType.CLASSERROR: ClassificationError(),
    LossType.LOG: LogLoss(),
    LossType.SOFTMAXLOG: SoftmaxLogLoss(),
    LossType.MHINGE: MulticlassHingeLoss(),
    LossType.MSHINGE: MulticlassStructuredHingeLoss(),
    LossType.BINARYERROR: BinaryClassificationError(),
    LossType.BINARYLOG: BinaryLogLoss(),
    LossType.LOGISTIC: LogisticLoss(),
    LossType.HINGE: HingeLoss(),
    LossType.REGLOSS: SquaredErrorLoss(),
    LossType.RELATIVE: RelativeErrorLoss(),
    LossType.ABSREL: AbsoluteRelativeErrorLoss(),
    LossType.RMSE: RootMeanSquaredErrorLoss(),
    LossType.TUKEY: TukeyBiweightLoss(),
    LossType.DOTPROD: DotProductLoss(),
}


def get_kernel(loss: LossType | str) -> LossKernel:
    """Return the kernel implementing ``loss``.

    Raises:
        UnknownLossError: If ``loss`` names no supported loss
    """
    return _KERNELS[LossType.from_name(loss)]


__all__ = [
    "AbsoluteRelativeErrorLoss",
    "BinaryClassificationError",
    "BinaryLogLoss",
    "ClassificationError",
    "DotProductLoss",
    "HingeLoss",
    "LogLoss",
    "LogisticLoss",
    "LossKernel",
    "MulticlassHingeLoss",
    "MulticlassStructuredHingeLoss",
    "RelativeErrorLoss",
    "RootMeanSquaredErrorLoss",
    "SoftmaxLogLoss",
    "SquaredErrorLoss",
    "TukeyBiweightLoss",
    "get_kernel",
]
