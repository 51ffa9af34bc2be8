"""
Datasets
========

Toy problems and small preprocessing helpers for feeding a Network.

Inputs are 2-D arrays of shape (samples, features); targets are 2-D arrays
of shape (samples, outputs), so rows can be passed straight to
Network.train() / Network.predict().
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def xor() -> Tuple[np.ndarray, np.ndarray]:
    """The four XOR patterns with one target column."""
    inputs = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    targets = np.array([[0.0], [1.0], [1.0], [0.0]])
    return inputs, targets


def make_moons(
    n_samples: int = 100,
    noise: float = 0.1,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate the 'moons' dataset for binary classification.

    Two interleaved half-circles that are not linearly separable.

    Args:
        n_samples: Total number of samples (rounded down to an even number).
        noise: Standard deviation of Gaussian noise.
        seed: Random seed for reproducibility.

    Returns:
        X: Features array of shape (n_samples, 2)
        y: Targets array of shape (n_samples, 1) with values 0 or 1
    """
    rng = np.random.default_rng(seed)
    n_each = n_samples // 2

    theta = np.linspace(0, np.pi, n_each)
    upper = np.column_stack([np.cos(theta), np.sin(theta)])
    lower = np.column_stack([1 - np.cos(theta), 0.5 - np.sin(theta)])

    X = np.vstack([upper, lower])
    X += rng.normal(0.0, noise, X.shape)

    # 1 for the upper moon, 0 for the lower one
    y = np.array([1.0] * n_each + [0.0] * n_each).reshape(-1, 1)
    return X, y


def one_hot_encode(labels: Sequence[int], num_classes: int = 0) -> np.ndarray:
    """
    Encode integer class labels as one-hot rows.

    Args:
        labels: Class index per sample.
        num_classes: Number of columns; 0 infers max(label) + 1.

    Returns:
        Array of shape (len(labels), num_classes). Labels outside
        [0, num_classes) produce an all-zero row.
    """
    labels = np.asarray(labels, dtype=int).reshape(-1)
    if num_classes <= 0:
        num_classes = int(labels.max()) + 1 if labels.size else 0

    encoded = np.zeros((labels.shape[0], num_classes))
    valid = (labels >= 0) & (labels < num_classes)
    encoded[np.nonzero(valid)[0], labels[valid]] = 1.0
    return encoded


def normalize(data: np.ndarray) -> np.ndarray:
    """Min-max scale every column to [0, 1]. Constant columns become 0."""
    data = np.asarray(data, dtype=float)
    lo = data.min(axis=0)
    span = data.max(axis=0) - lo
    safe = np.where(span > 0, span, 1.0)
    return np.where(span > 0, (data - lo) / safe, 0.0)


def standardize(data: np.ndarray) -> np.ndarray:
    """Scale every column to zero mean and unit std. Constant columns become 0."""
    data = np.asarray(data, dtype=float)
    mean = data.mean(axis=0)
    std = data.std(axis=0)
    safe = np.where(std > 0, std, 1.0)
    return np.where(std > 0, (data - mean) / safe, 0.0)


def train_validation_split(
    inputs: np.ndarray,
    targets: np.ndarray,
    validation_ratio: float = 0.2,
    rng: Optional[np.random.Generator] = None
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Shuffle and split a dataset.

    Args:
        inputs: Input rows.
        targets: Target rows, one per input.
        validation_ratio: Fraction of samples held out, in [0, 1).
        rng: Generator for the shuffle. A fresh unseeded one if omitted.

    Returns:
        (train_inputs, train_targets, val_inputs, val_targets)

    Raises:
        ValueError: If the ratio is out of range or the row counts differ.
    """
    inputs = np.asarray(inputs, dtype=float)
    targets = np.asarray(targets, dtype=float)
    if not 0.0 <= validation_ratio < 1.0:
        raise ValueError(f"validation_ratio must be in [0, 1), got {validation_ratio}")
    if inputs.shape[0] != targets.shape[0]:
        raise ValueError(
            f"{inputs.shape[0]} input rows but {targets.shape[0]} target rows"
        )

    rng = rng if rng is not None else np.random.default_rng()
    order = rng.permutation(inputs.shape[0])
    n_val = int(inputs.shape[0] * validation_ratio)
    val_idx, train_idx = order[:n_val], order[n_val:]
    return inputs[train_idx], targets[train_idx], inputs[val_idx], targets[val_idx]


def load_csv(
    path: str,
    has_header: bool = True,
    delimiter: str = ',',
    target_column: int = -1
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Load a numeric CSV file.

    Args:
        path: File to read.
        has_header: Skip the first line.
        delimiter: Field separator.
        target_column: Column holding the target; the others are inputs.

    Returns:
        (inputs, targets) with shapes (samples, features) and (samples, 1).
        Both are empty when the file is missing or unreadable.
    """
    try:
        data = np.loadtxt(
            path, delimiter=delimiter, skiprows=1 if has_header else 0, ndmin=2
        )
    except OSError as e:
        logger.error(f"Failed to open data file {path}: {e}")
        return np.zeros((0, 0)), np.zeros((0, 1))
    except ValueError as e:
        logger.error(f"Failed to parse data file {path}: {e}")
        return np.zeros((0, 0)), np.zeros((0, 1))

    if data.size == 0:
        logger.warning(f"Data file {path} has no rows")
        return np.zeros((0, 0)), np.zeros((0, 1))

    target_column = target_column % data.shape[1]
    targets = data[:, target_column].reshape(-1, 1)
    inputs = np.delete(data, target_column, axis=1)
    logger.info(f"Loaded {data.shape[0]} samples from {path}")
    return inputs, targets
