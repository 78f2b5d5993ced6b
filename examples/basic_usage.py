"""Example usage of the CNN loss operator."""

import torch

from nnloss import LossConfig, LossOperator, NNLossModule, nnloss


def create_dummy_data():
    """Create a small segmentation-style prediction field."""
    # 8 x 8 field, 5 categories, batch of 4, in the default [H, W, D, N] layout
    scores = torch.randn(8, 8, 5, 4)
    labels = torch.randint(1, 6, (8, 8, 1, 4))

    # Mark a border as "ignore"
    labels[0, :] = 0
    labels[:, 0] = 0

    return scores, labels


def main():
    """Demonstrate the forward and backward passes."""
    print("CNN Loss Example")
    print("=" * 40)

    scores, labels = create_dummy_data()
    print(f"Prediction field shape: {tuple(scores.shape)}")
    print(f"Ignored locations: {int((labels == 0).sum())}")

    for loss in ("classerror", "softmaxlog", "mshinge"):
        value = nnloss(scores, labels, loss=loss)
        print(f"{loss:>12}: {value.item():.4f}")

    # Backward pass, projected onto dL/dY = 1
    operator = LossOperator(LossConfig(loss="softmaxlog"))
    grad = operator(scores, labels, 1.0)
    print(f"\nGradient shape: {tuple(grad.shape)}")
    print(f"Gradient norm: {grad.norm().item():.4f}")

    # Attribute prediction with a per-image label
    attributes = torch.randint(0, 2, (1, 1, 3, 4)).float() * 2 - 1
    logits = torch.randn(1, 1, 3, 4)
    print(f"\nlogistic loss: {nnloss(logits, attributes, loss='logistic').item():.4f}")

    # As a layer in a PyTorch model
    model = torch.nn.Conv2d(3, 5, kernel_size=3, padding=1)
    criterion = NNLossModule(loss="softmaxlog", layout="NCHW")
    images = torch.rand(4, 3, 8, 8)
    targets = labels.permute(3, 2, 0, 1)

    loss = criterion(model(images), targets)
    loss.backward()
    print(f"\nTraining loss: {loss.item():.4f}")
    print(f"Weight gradient norm: {model.weight.grad.norm().item():.4f}")


if __name__ == "__main__":
    main()
