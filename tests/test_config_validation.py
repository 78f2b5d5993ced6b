import pytest
import torch
from pydantic import ValidationError

from nnloss import LossConfig, LossFamily, LossType, UnknownLossError


class TestConfigValidation:
    """Test configuration validation."""

    def test_default_config(self) -> None:
        """Test the default loss, weights and layout."""
        config = LossConfig()
        assert config.loss is LossType.SOFTMAXLOG
        assert config.instance_weights is None
        assert config.class_weights is None
        assert config.threshold == 0.0
        assert config.layout == "HWDN"

    def test_loss_name_is_case_insensitive(self) -> None:
        """Test loss names are matched ignoring case."""
        assert LossConfig(loss="SoftMaxLog").loss is LossType.SOFTMAXLOG
        assert LossConfig(loss=LossType.TUKEY).loss is LossType.TUKEY

    def test_logisticlog_alias(self) -> None:
        """Test the documented logisticlog name selects the logistic loss."""
        assert LossConfig(loss="logisticlog").loss is LossType.LOGISTIC

    def test_unknown_loss(self) -> None:
        """Test an unknown loss name raises ValidationError."""
        with pytest.raises(ValidationError, match="Unknown loss 'cosine'"):
            LossConfig(loss="cosine")

    def test_unknown_loss_from_name(self) -> None:
        """Test the lookup raises UnknownLossError outside pydantic."""
        with pytest.raises(UnknownLossError) as excinfo:
            LossType.from_name("cosine")
        assert excinfo.value.name == "cosine"
        assert isinstance(excinfo.value, ValueError)

    def test_invalid_layout(self) -> None:
        """Test invalid layout raises ValidationError."""
        with pytest.raises(ValidationError):
            LossConfig(layout="NHWC")

    def test_layout_is_normalized(self) -> None:
        """Test the layout is upper-cased."""
        assert LossConfig(layout="nchw").layout == "NCHW"

    def test_class_weights_must_be_vector(self) -> None:
        """Test 2-D class weights raise ValidationError."""
        with pytest.raises(ValidationError):
            LossConfig(class_weights=[[1.0, 2.0]])

    def test_weights_are_converted_to_tensors(self) -> None:
        """Test sequences and integer tensors become float tensors."""
        config = LossConfig(
            instance_weights=torch.tensor([1, 2]), class_weights=[1.0, 0.5, 2.0]
        )
        assert isinstance(config.instance_weights, torch.Tensor)
        assert config.instance_weights.is_floating_point()
        assert isinstance(config.class_weights, torch.Tensor)
        assert config.class_weights.shape == (3,)

    @pytest.mark.parametrize("field", ["instance_weights", "class_weights"])
    def test_non_numeric_weights(self, field: str) -> None:
        """Test non-numeric weights raise ValidationError."""
        with pytest.raises(ValidationError, match="must be numeric"):
            LossConfig(**{field: "abc"})

    def test_config_is_frozen(self) -> None:
        """Test configuration cannot be modified."""
        config = LossConfig()
        with pytest.raises(ValidationError):
            config.threshold = 0.5  # type: ignore[misc]

    def test_forbid_extra_fields(self) -> None:
        """Test that unknown arguments raise ValidationError."""
        with pytest.raises(ValidationError):
            LossConfig(unknown_field=123)  # type: ignore

    @pytest.mark.parametrize(
        "loss,family",
        [
            ("classerror", LossFamily.CATEGORICAL),
            ("mshinge", LossFamily.CATEGORICAL),
            ("binaryerror", LossFamily.BINARY),
            ("hinge", LossFamily.BINARY),
            ("regloss", LossFamily.REGRESSION),
            ("dotprod", LossFamily.REGRESSION),
        ],
    )
    def test_loss_family(self, loss: str, family: LossFamily) -> None:
        """Test every loss belongs to its label family."""
        assert LossConfig(loss=loss).family is family
