"""Configuration classes for the loss operator."""

from enum import Enum
from typing import Any, Literal

import torch
from pydantic import BaseModel, ConfigDict, field_validator


class UnknownLossError(ValueError):
    """Raised when a loss name does not match any supported loss."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown loss '{name}'.")
        self.name = name


class LossFamily(str, Enum):
    """How labels relate to the prediction field."""

    CATEGORICAL = "categorical"  # one label per prediction vector
    BINARY = "binary"  # one +1/-1 attribute per prediction scalar
    REGRESSION = "regression"  # dense target, one loss per image


class LossType(str, Enum):
    """Supported losses."""

    CLASSERROR = "classerror"
    LOG = "log"
    SOFTMAXLOG = "softmaxlog"
    MHINGE = "mhinge"
    MSHINGE = "mshinge"
    BINARYERROR = "binaryerror"
    BINARYLOG = "binarylog"
    LOGISTIC = "logistic"
    HINGE = "hinge"
    REGLOSS = "regloss"
    RELATIVE = "relative"
    ABSREL = "absrel"
    RMSE = "rmse"
    TUKEY = "tukey"
    DOTPROD = "dotprod"

    @classmethod
    def from_name(cls, name: "str | LossType") -> "LossType":
        """Look up a loss by name, ignoring case.

        Args:
            name: Loss name such as ``"softmaxlog"`` or a ``LossType``

        Returns:
            The matching ``LossType``

        Raises:
            UnknownLossError: If no loss has that name
        """
        if isinstance(name, LossType):
            return name
        if not isinstance(name, str):
            raise UnknownLossError(repr(name))
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnknownLossError(name) from None

    @property
    def family(self) -> LossFamily:
        return _FAMILIES[self]


_ALIASES = {"logisticlog": "logistic"}

_FAMILIES = {
    LossType.CLASSERROR: LossFamily.CATEGORICAL,
    LossType.LOG: LossFamily.CATEGORICAL,
    LossType.SOFTMAXLOG: LossFamily.CATEGORICAL,
    LossType.MHINGE: LossFamily.CATEGORICAL,
    LossType.MSHINGE: LossFamily.CATEGORICAL,
    LossType.BINARYERROR: LossFamily.BINARY,
    LossType.BINARYLOG: LossFamily.BINARY,
    LossType.LOGISTIC: LossFamily.BINARY,
    LossType.HINGE: LossFamily.BINARY,
    LossType.REGLOSS: LossFamily.REGRESSION,
    LossType.RELATIVE: LossFamily.REGRESSION,
    LossType.ABSREL: LossFamily.REGRESSION,
    LossType.RMSE: LossFamily.REGRESSION,
    LossType.TUKEY: LossFamily.REGRESSION,
    LossType.DOTPROD: LossFamily.REGRESSION,
}

Layout = Literal["HWDN", "NCHW"]


class LossConfig(BaseModel):
    """Configuration for the loss operator."""

    model_config = ConfigDict(
        frozen=True, extra="forbid", arbitrary_types_allowed=True
    )

    loss: LossType = LossType.SOFTMAXLOG

    # Multiplies the label-derived weights; broadcast to the label shape
    instance_weights: torch.Tensor | None = None
    # One weight per category (categorical) or per channel (binary)
    class_weights: torch.Tensor | None = None

    threshold: float = 0.0  # Decision threshold for binaryerror

    layout: Layout = "HWDN"

    @field_validator("loss", mode="before")
    @classmethod
    def _parse_loss(cls, value: Any) -> LossType:
        return LossType.from_name(value)

    @field_validator("layout", mode="before")
    @classmethod
    def _normalize_layout(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("instance_weights", mode="before")
    @classmethod
    def _as_weight_tensor(cls, value: Any) -> torch.Tensor | None:
        if value is None:
            return None
        return _as_float_tensor(value, "instance_weights")

    @field_validator("class_weights", mode="before")
    @classmethod
    def _as_class_weight_vector(cls, value: Any) -> torch.Tensor | None:
        if value is None:
            return None
        weights = _as_float_tensor(value, "class_weights")
        if weights.dim() != 1:
            raise ValueError("class_weights must be a 1-D sequence")
        return weights

    @property
    def family(self) -> LossFamily:
        return self.loss.family


def _as_float_tensor(value: Any, field: str) -> torch.Tensor:
    try:
        weights = torch.as_tensor(value)
    except (TypeError, RuntimeError) as err:
        raise ValueError(f"{field} must be numeric: {err}") from err
    if weights.dtype == torch.bool or weights.is_complex():
        raise ValueError(f"{field} must be real numbers")
    if not weights.is_floating_point():
        weights = weights.float()
    return weights
