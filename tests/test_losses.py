"""Forward values of every loss on small hand-computed examples."""

import math

import pytest
import torch

from nnloss import nnloss
from nnloss.losses.regression import TUKEY_C


def scores(*values: float) -> torch.Tensor:
    """A single prediction vector as a [1, 1, D, 1] field."""
    return torch.tensor(values, dtype=torch.float64).reshape(1, 1, -1, 1)


class TestCategoricalLosses:
    """Losses over mutually exclusive categories."""

    def test_classerror(self) -> None:
        x = torch.tensor([[1.0, 3.0, 2.0], [5.0, 1.0, 0.0]]).T.reshape(1, 1, 3, 2)
        c = torch.tensor([2, 3])
        # First image is correct, second predicts class 1 instead of 3
        assert nnloss(x, c, loss="classerror").item() == pytest.approx(1.0)

    def test_log(self) -> None:
        x = scores(0.25, 0.75)
        loss = nnloss(x, torch.tensor([2]), loss="log")
        assert loss.item() == pytest.approx(-math.log(0.75))

    def test_softmaxlog_uniform_scores(self) -> None:
        loss = nnloss(scores(0.0, 0.0), torch.tensor([1]), loss="softmaxlog")
        assert loss.item() == pytest.approx(math.log(2.0))

    def test_softmaxlog_is_stable_for_large_scores(self) -> None:
        loss = nnloss(scores(1000.0, 0.0), torch.tensor([2]), loss="softmaxlog")
        assert torch.isfinite(loss)
        assert loss.item() == pytest.approx(1000.0)

    @pytest.mark.parametrize("label,expected", [(1, 0.7), (2, 0.0)])
    def test_mhinge(self, label: int, expected: float) -> None:
        loss = nnloss(scores(0.3, 2.0), torch.tensor([label]), loss="mhinge")
        assert loss.item() == pytest.approx(expected)

    @pytest.mark.parametrize("label,expected", [(1, 0.8), (2, 1.5), (3, 1.2)])
    def test_mshinge(self, label: int, expected: float) -> None:
        x = scores(1.0, 0.5, 0.8)
        loss = nnloss(x, torch.tensor([label]), loss="mshinge")
        assert loss.item() == pytest.approx(expected)

    def test_mshinge_single_category(self) -> None:
        """With one category there is no competitor and the loss vanishes."""
        loss = nnloss(scores(-3.0), torch.tensor([1]), loss="mshinge")
        assert loss.item() == 0.0

    def test_losses_are_averaged_over_locations_and_summed_over_images(
        self,
    ) -> None:
        x = torch.zeros(2, 2, 2, 3)
        c = torch.ones(2, 2, 1, 3, dtype=torch.long)
        loss = nnloss(x, c, loss="softmaxlog")
        assert loss.item() == pytest.approx(3 * math.log(2.0))


class TestBinaryLosses:
    """Losses over +1/-1 attributes."""

    def test_binaryerror(self) -> None:
        x = scores(0.7, -0.2, 0.1)
        c = torch.tensor([1.0, 1.0, -1.0]).reshape(1, 1, 3, 1)
        assert nnloss(x, c, loss="binaryerror").item() == pytest.approx(2 / 3)

    def test_binaryerror_threshold(self) -> None:
        x = scores(0.7, -0.2, 0.1)
        c = torch.tensor([1.0, 1.0, -1.0]).reshape(1, 1, 3, 1)
        loss = nnloss(x, c, loss="binaryerror", threshold=0.5)
        assert loss.item() == pytest.approx(1 / 3)

    @pytest.mark.parametrize("label,expected", [(1.0, 0.8), (-1.0, 0.2)])
    def test_binarylog(self, label: float, expected: float) -> None:
        loss = nnloss(scores(0.8), torch.tensor([label]), loss="binarylog")
        assert loss.item() == pytest.approx(-math.log(expected))

    @pytest.mark.parametrize(
        "x,label,expected",
        [
            (0.0, 1.0, math.log(2.0)),
            (2.0, 1.0, math.log1p(math.exp(-2.0))),
            (2.0, -1.0, math.log1p(math.exp(2.0))),
            (-800.0, 1.0, 800.0),
        ],
    )
    def test_logistic(self, x: float, label: float, expected: float) -> None:
        loss = nnloss(scores(x), torch.tensor([label]), loss="logistic")
        assert loss.item() == pytest.approx(expected)

    @pytest.mark.parametrize("label,expected", [(1.0, 0.5), (-1.0, 1.5)])
    def test_hinge(self, label: float, expected: float) -> None:
        loss = nnloss(scores(0.5), torch.tensor([label]), loss="hinge")
        assert loss.item() == pytest.approx(expected)


class TestRegressionLosses:
    """Dense regression losses, one value per image."""

    def test_regloss(self) -> None:
        x, c = scores(1.0, 2.0), scores(0.0, 0.0)
        assert nnloss(x, c, loss="regloss").item() == pytest.approx(1.25)

    def test_relative(self) -> None:
        x, c = scores(2.0, 3.0), scores(1.0, 2.0)
        assert nnloss(x, c, loss="relative").item() == pytest.approx(0.75)

    def test_absrel_skips_invalid_targets(self) -> None:
        x = scores(2.0, 3.0, 5.0)
        c = scores(1.0, 0.0, math.inf)
        assert nnloss(x, c, loss="absrel").item() == pytest.approx(1.0)

    def test_absrel_without_valid_targets(self) -> None:
        x, c = scores(2.0, 3.0), scores(0.0, -1.0)
        assert nnloss(x, c, loss="absrel").item() == 0.0

    def test_rmse(self) -> None:
        x, c = scores(3.0, 4.0), scores(0.0, 0.0)
        assert nnloss(x, c, loss="rmse").item() == pytest.approx(math.sqrt(12.5))

    def test_tukey_perfect_prediction(self) -> None:
        x = scores(1.0, 2.0, 3.0)
        assert nnloss(x, x.clone(), loss="tukey").item() == 0.0

    def test_tukey_saturates_on_outliers(self) -> None:
        x = scores(0.0, 0.0, 0.0, 100.0)
        c = torch.zeros_like(x)
        # MAD is zero so residuals are used unscaled; only the outlier counts
        expected = TUKEY_C**2 / 6 / 4
        assert nnloss(x, c, loss="tukey").item() == pytest.approx(expected)

    def test_dotprod(self) -> None:
        x, c = scores(1.0, 2.0), scores(3.0, 4.0)
        assert nnloss(x, c, loss="dotprod").item() == pytest.approx(11.0)

    def test_images_are_summed(self) -> None:
        x = torch.tensor([[3.0, 4.0], [0.0, 1.0]]).T.reshape(1, 1, 2, 2)
        c = torch.zeros_like(x)
        expected = math.sqrt(12.5) + math.sqrt(0.5)
        assert nnloss(x, c, loss="rmse").item() == pytest.approx(expected)

    def test_per_image_instance_weights(self) -> None:
        x = torch.tensor([[1.0, 2.0], [3.0, 4.0]]).T.reshape(1, 1, 2, 2)
        c = torch.ones_like(x)
        loss = nnloss(x, c, loss="dotprod", instance_weights=[2.0, 0.5])
        assert loss.item() == pytest.approx(2.0 * 3.0 + 0.5 * 7.0)
