#!/usr/bin/env python3
"""
nnvis Demo: Training a Network You Can Watch
============================================

This demo shows the complete workflow:
1. Build a network from layer configs
2. Train it on XOR with a progress callback
3. Train a deeper network on the moons dataset in a background thread,
   polling it the way a render loop would
4. Plot the loss curve and decision boundary
5. Save the trained network and load it back

Run: python examples/demo.py
"""

import os
import sys
import tempfile
import time
from typing import List

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

# Add parent directory to path
sys.path.insert(0, '.')

from nnvis import (
    ActivationType,
    InitializationType,
    LayerConfig,
    LossType,
    Network,
    NetworkConfig,
    TrainingConfig,
    configure_logging,
)
from nnvis.datasets import make_moons, train_validation_split, xor


def plot_loss_curve(losses: List[float], val_losses: List[float], path: str) -> None:
    """
    Plot the training (and validation) loss over epochs.

    Args:
        losses: Training loss per epoch.
        val_losses: Validation loss per epoch; may be empty.
        path: Output image file.
    """
    plt.figure(figsize=(10, 6))
    plt.plot(losses, 'b-', linewidth=2, label='train')
    if val_losses:
        plt.plot(val_losses, 'r--', linewidth=2, label='validation')
    plt.xlabel('Epoch')
    plt.ylabel('Loss')
    plt.title('Training Loss Curve')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    print(f"Saved loss curve to: {path}")


def plot_decision_boundary(network: Network, X: np.ndarray, y: np.ndarray, path: str) -> None:
    """Shade the network's output over a grid around the data."""
    h = 0.05
    x_min, x_max = X[:, 0].min() - 0.5, X[:, 0].max() + 0.5
    y_min, y_max = X[:, 1].min() - 0.5, X[:, 1].max() + 0.5
    xx, yy = np.meshgrid(np.arange(x_min, x_max, h), np.arange(y_min, y_max, h))

    grid = np.column_stack([xx.ravel(), yy.ravel()])
    Z = np.array([network.predict(p)[0] for p in grid]).reshape(xx.shape)

    plt.figure(figsize=(10, 8))
    plt.contourf(xx, yy, Z, levels=50, cmap='RdBu', alpha=0.8)
    plt.colorbar(label='Network output')
    plt.contour(xx, yy, Z, levels=[0.5], colors='black', linewidths=2)
    plt.scatter(X[:, 0], X[:, 1], c=y.ravel(), cmap='RdBu', edgecolors='black', s=40)
    plt.xlabel('x1')
    plt.ylabel('x2')
    plt.title('Decision Boundary')
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    print(f"Saved decision boundary plot to: {path}")


def demo_xor() -> Network:
    """Train a 2-4-1 network on XOR."""
    print("=" * 60)
    print("DEMO 1: XOR")
    print("=" * 60)

    config = NetworkConfig(
        name='XOR',
        layers=[
            LayerConfig(2, ActivationType.NONE, name='input'),
            LayerConfig(4, ActivationType.TANH, name='hidden'),
            LayerConfig(1, ActivationType.SIGMOID, name='output'),
        ],
        loss=LossType.MSE,
        training=TrainingConfig(learning_rate=0.5, seed=7),
    )
    network = Network.from_config(config)
    print(f"Built {network}")

    def report(epoch: int, loss: float, accuracy: float) -> None:
        if (epoch + 1) % 500 == 0:
            print(f"Epoch {epoch + 1:4d} | Loss: {loss:.4f} | Accuracy: {accuracy:.0%}")

    X, y = xor()
    network.train(X, y, epochs=2000, batch_size=4, progress_callback=report)

    for inputs, target in zip(X, y):
        print(f"  {inputs} -> {network.predict(inputs)[0]:.3f} (target {target[0]:.0f})")
    print()
    return network


def demo_moons() -> Network:
    """Train on moons in the background while the main thread polls progress."""
    print("=" * 60)
    print("DEMO 2: Moons, trained in a background thread")
    print("=" * 60)

    X, y = make_moons(n_samples=200, noise=0.15)
    train_X, train_y, val_X, val_y = train_validation_split(
        X, y, 0.2, rng=np.random.default_rng(0)
    )

    config = NetworkConfig(
        name='Moons',
        layers=[
            LayerConfig(2, ActivationType.NONE, name='input'),
            LayerConfig(16, ActivationType.RELU, weight_init=InitializationType.HE, name='hidden1'),
            LayerConfig(16, ActivationType.RELU, weight_init=InitializationType.HE, name='hidden2'),
            LayerConfig(1, ActivationType.SIGMOID, name='output'),
        ],
        loss=LossType.BINARY_CROSS_ENTROPY,
        training=TrainingConfig(learning_rate=0.05, seed=42),
    )
    network = Network.from_config(config)

    thread = network.train_async(
        train_X, train_y, 200, 16,
        validation_inputs=val_X, validation_targets=val_y
    )
    # what a render loop would do each frame
    while thread.is_alive():
        hidden = network.get_activations(1)
        print(f"  progress {network.training_progress:5.1%} | "
              f"mean hidden activation {hidden.mean():.3f}")
        time.sleep(0.5)
    thread.join()

    history = network.history
    print(f"Final train accuracy: {history.train_accuracy[-1]:.2%}")
    print(f"Final validation accuracy: {history.val_accuracy[-1]:.2%}")
    print()

    plot_loss_curve(history.train_loss, history.val_loss, './loss_curve.png')
    plot_decision_boundary(network, X, y, './decision_boundary.png')
    print()
    return network


def demo_persistence(network: Network) -> None:
    """Save a trained network and check the copy predicts the same."""
    print("=" * 60)
    print("DEMO 3: Save and load")
    print("=" * 60)

    path = os.path.join(tempfile.mkdtemp(), 'moons.json')
    network.save_to_file(path)

    restored = Network.from_file(path)
    sample = [0.5, 0.25]
    print(f"Original: {network.predict(sample)[0]:.6f}")
    print(f"Restored: {restored.predict(sample)[0]:.6f}")
    print()


def main():
    """Run all demos."""
    configure_logging('WARNING')

    demo_xor()
    moons = demo_moons()
    demo_persistence(moons)

    print("=" * 60)
    print("ALL DEMOS COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
