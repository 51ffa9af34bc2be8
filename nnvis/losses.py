"""
Loss Functions
==============

Each loss maps (outputs, targets) to a scalar and provides the gradient of
that scalar with respect to every output. The gradient seeds the output
layer's deltas during backpropagation.

Probability-based losses clip outputs to [EPSILON, 1 - EPSILON] so log(0)
never happens. The integer values of LossType are persisted.
"""

from __future__ import annotations
import logging
from enum import IntEnum
from typing import Dict, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

EPSILON = 1e-15


class LossType(IntEnum):
    """Loss tags (persisted as ints)."""

    MSE = 0
    CROSS_ENTROPY = 1
    BINARY_CROSS_ENTROPY = 2
    HUBER = 3
    FOCAL = 4


def _as_pair(
    outputs: Sequence[float],
    targets: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    return np.asarray(outputs, dtype=float), np.asarray(targets, dtype=float)


def _clip(p: np.ndarray) -> np.ndarray:
    return np.clip(p, EPSILON, 1.0 - EPSILON)


class Loss:
    """
    Base class for loss functions.

    __call__ returns 0.0 and gradient() an empty array when the output and
    target lengths disagree; the mismatch is logged.
    """

    kind: LossType = LossType.MSE

    def __call__(self, outputs: Sequence[float], targets: Sequence[float]) -> float:
        o, t = _as_pair(outputs, targets)
        if o.shape != t.shape or o.size == 0:
            logger.error(
                f"{self.__class__.__name__}: output size {o.size} "
                f"doesn't match target size {t.size}"
            )
            return 0.0
        return float(self.value(o, t))

    def gradient(self, outputs: Sequence[float], targets: Sequence[float]) -> np.ndarray:
        o, t = _as_pair(outputs, targets)
        if o.shape != t.shape or o.size == 0:
            logger.error(
                f"{self.__class__.__name__} gradient: output size {o.size} "
                f"doesn't match target size {t.size}"
            )
            return np.zeros(0)
        return self.grad(o, t)

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        raise NotImplementedError

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class MeanSquaredError(Loss):
    """
    Mean Squared Error loss.

    MSE = (1/n) * sum((o_i - t_i)^2)
    dMSE/do_i = 2 * (o_i - t_i) / n
    """

    kind = LossType.MSE

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        return np.mean((o - t) ** 2)

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        return 2.0 * (o - t) / o.size


class CrossEntropy(Loss):
    """
    Categorical cross-entropy, summed over classes.

    CE = -sum(t_i * log(o_i))
    """

    kind = LossType.CROSS_ENTROPY

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        return -np.sum(t * np.log(_clip(o)))

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        return -t / _clip(o)


class BinaryCrossEntropy(Loss):
    """
    Binary Cross-Entropy loss.

    BCE = -(1/n) * sum(t*log(o) + (1-t)*log(1-o))
    """

    kind = LossType.BINARY_CROSS_ENTROPY

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        p = _clip(o)
        return -np.mean(t * np.log(p) + (1.0 - t) * np.log(1.0 - p))

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        p = _clip(o)
        return (p - t) / (p * (1.0 - p)) / o.size


class Huber(Loss):
    """
    Huber loss: quadratic near zero, linear beyond delta.
    """

    kind = LossType.HUBER

    def __init__(self, delta: float = 1.0) -> None:
        self.delta = delta

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        d = np.abs(o - t)
        quad = 0.5 * d * d
        lin = self.delta * d - 0.5 * self.delta * self.delta
        return np.mean(np.where(d <= self.delta, quad, lin))

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        d = o - t
        g = np.where(np.abs(d) <= self.delta, d, self.delta * np.sign(d))
        return g / o.size

    def __repr__(self) -> str:
        return f"Huber(delta={self.delta})"


class FocalLoss(Loss):
    """
    Focal loss for imbalanced binary targets.

    p_t = t*o + (1-t)*(1-o)
    FL  = -(1/n) * sum(alpha * (1 - p_t)^gamma * log(p_t))
    """

    kind = LossType.FOCAL

    def __init__(self, alpha: float = 1.0, gamma: float = 2.0) -> None:
        self.alpha = alpha
        self.gamma = gamma

    def _pt(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        p = _clip(o)
        return t * p + (1.0 - t) * (1.0 - p)

    def value(self, o: np.ndarray, t: np.ndarray) -> float:
        pt = self._pt(o, t)
        return -np.mean(self.alpha * (1.0 - pt) ** self.gamma * np.log(pt))

    def grad(self, o: np.ndarray, t: np.ndarray) -> np.ndarray:
        pt = self._pt(o, t)
        # dFL/dp_t, then chain through dp_t/do = 2t - 1
        d_pt = self.alpha * (
            self.gamma * (1.0 - pt) ** (self.gamma - 1.0) * np.log(pt)
            - (1.0 - pt) ** self.gamma / pt
        )
        return d_pt * (2.0 * t - 1.0) / o.size

    def __repr__(self) -> str:
        return f"FocalLoss(alpha={self.alpha}, gamma={self.gamma})"


_LOSSES: Dict[LossType, Loss] = {
    LossType.MSE: MeanSquaredError(),
    LossType.CROSS_ENTROPY: CrossEntropy(),
    LossType.BINARY_CROSS_ENTROPY: BinaryCrossEntropy(),
    LossType.HUBER: Huber(),
    LossType.FOCAL: FocalLoss(),
}


def get_loss(kind: Union[LossType, int]) -> Loss:
    """
    Look up the loss for a tag.

    Unknown tags fall back to mean squared error.
    """
    try:
        return _LOSSES[LossType(kind)]
    except ValueError:
        logger.warning(f"Unknown loss type {kind!r}, falling back to MSE")
        return _LOSSES[LossType.MSE]
