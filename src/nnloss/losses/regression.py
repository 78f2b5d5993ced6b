"""Dense regression losses.

Targets have the same [N, D, H, W] shape as the predictions. Each image
produces a single loss, so per-instance losses and weights have shape [N].
"""

import torch

from nnloss.config import LossConfig

# Tukey biweight tuning constant (95% efficiency under Gaussian noise)
TUKEY_C = 4.6851
# Consistency factor turning the median absolute deviation into a std estimate
MAD_TO_STD = 1.4826
MIN_SCALE = 1e-6


def _residuals(x: torch.Tensor, c: torch.Tensor) -> torch.Tensor:
    return (x - c).flatten(1)


def _per_image(scale: torch.Tensor) -> torch.Tensor:
    return scale.reshape(-1, 1)


class SquaredErrorLoss:
    """Half mean squared error, sum(r^2) / (2M)."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        r = _residuals(x, c)
        return 0.5 * r.pow(2).mean(dim=1)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        r = _residuals(x, c)
        return (_per_image(scale) * r / r.shape[1]).reshape_as(x)


class RelativeErrorLoss:
    """Mean absolute relative difference, sum(|r| / |c|) / M."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        r = _residuals(x, c)
        return (r.abs() / c.flatten(1).abs()).mean(dim=1)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        r = _residuals(x, c)
        grad = torch.sign(r) / (c.flatten(1).abs() * r.shape[1])
        return (_per_image(scale) * grad).reshape_as(x)


class AbsoluteRelativeErrorLoss:
    """Absolute relative error over valid targets only.

    A target is valid when it is positive and finite, as with depth maps
    that mark missing measurements with zero or inf. Images without a valid
    target contribute zero.
    """

    @staticmethod
    def _valid(c: torch.Tensor) -> torch.Tensor:
        c = c.flatten(1)
        return (c > 0) & torch.isfinite(c)

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        valid = self._valid(c)
        target = torch.where(valid, c.flatten(1), torch.ones_like(x.flatten(1)))
        ratio = torch.where(valid, _residuals(x, c).abs() / target, 0.0)
        count = valid.sum(dim=1).clamp(min=1).to(x.dtype)
        return ratio.sum(dim=1) / count

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        valid = self._valid(c)
        target = torch.where(valid, c.flatten(1), torch.ones_like(x.flatten(1)))
        count = valid.sum(dim=1, keepdim=True).clamp(min=1).to(x.dtype)
        grad = torch.where(valid, torch.sign(_residuals(x, c)) / target, 0.0)
        return (_per_image(scale) * grad / count).reshape_as(x)


class RootMeanSquaredErrorLoss:
    """sqrt(sum(r^2) / M) per image."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return _residuals(x, c).pow(2).mean(dim=1).sqrt()

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        r = _residuals(x, c)
        rmse = r.pow(2).mean(dim=1, keepdim=True).sqrt()
        # The subgradient at a perfect prediction is taken to be zero
        denom = torch.where(rmse > 0, rmse * r.shape[1], torch.ones_like(rmse))
        grad = torch.where(rmse > 0, r / denom, 0.0)
        return (_per_image(scale) * grad).reshape_as(x)


def robust_scale(r: torch.Tensor) -> torch.Tensor:
    """Per-image residual scale from the median absolute deviation.

    Args:
        r: Residuals of shape [N, M]

    Returns:
        Detached scale of shape [N, 1]; images whose scale is below
        ``MIN_SCALE`` use 1 so their residuals are taken unscaled.
    """
    r = r.detach()
    median = r.median(dim=1, keepdim=True).values
    mad = (r - median).abs().median(dim=1, keepdim=True).values
    scale = MAD_TO_STD * mad
    return torch.where(scale < MIN_SCALE, torch.ones_like(scale), scale)


class TukeyBiweightLoss:
    """Tukey's biweight on MAD-scaled residuals.

    rho(u) = C^2 / 6 * (1 - (1 - (u / C)^2)^3) for |u| <= C, and C^2 / 6
    beyond, so outliers stop contributing gradient. The scale is treated as
    a constant when differentiating.
    """

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        r = _residuals(x, c)
        u = r / robust_scale(r)
        saturated = TUKEY_C**2 / 6
        rho = saturated * (1 - (1 - (u / TUKEY_C) ** 2) ** 3)
        rho = torch.where(u.abs() <= TUKEY_C, rho, saturated)
        return rho.mean(dim=1)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        r = _residuals(x, c)
        s = robust_scale(r)
        u = r / s
        psi = torch.where(u.abs() <= TUKEY_C, u * (1 - (u / TUKEY_C) ** 2) ** 2, 0.0)
        grad = psi / (s * r.shape[1])
        return (_per_image(scale) * grad).reshape_as(x)


class DotProductLoss:
    """sum(x * c) per image."""

    def forward(
        self, x: torch.Tensor, c: torch.Tensor, config: LossConfig
    ) -> torch.Tensor:
        return (x * c).flatten(1).sum(dim=1)

    def backward(
        self,
        x: torch.Tensor,
        c: torch.Tensor,
        scale: torch.Tensor,
        config: LossConfig,
    ) -> torch.Tensor:
        return _per_image(scale).reshape(-1, 1, 1, 1) * c
