"""Integrations with the PyTorch autograd engine."""

from nnloss.integrations.autograd import NNLossFunction, NNLossModule

__all__ = [
    "NNLossFunction",
    "NNLossModule",
]
