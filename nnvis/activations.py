"""
Activation Functions
====================

Element-wise nonlinearities and their derivatives.

Every activation is a small stateless object with the same contract:

    f(x)             -> activation value
    f.derivative(x)  -> df/dx, evaluated at the pre-activation value x

Both work on Python floats and on NumPy arrays. Softmax is the one
vector-valued member: its element-wise derivative is 1 and the real
Jacobian is applied through Softmax.backward().

The integer values of ActivationType are written to saved networks and
must never be reordered.
"""

from __future__ import annotations
import logging
from enum import IntEnum
from typing import Dict, Union

import numpy as np

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

SQRT_2_OVER_PI = 0.7978845608028654
GELU_COEFF = 0.044715
SIGMOID_CLAMP = 500.0


class ActivationType(IntEnum):
    """Activation tags (persisted as ints)."""

    NONE = 0
    RELU = 1
    SIGMOID = 2
    TANH = 3
    LEAKY_RELU = 4
    ELU = 5
    SWISH = 6
    GELU = 7
    SOFTMAX = 8


def _unwrap(x: np.ndarray) -> ArrayLike:
    """Return a Python float for 0-d results, the array otherwise."""
    return float(x) if np.ndim(x) == 0 else x


def sigmoid(x: ArrayLike) -> ArrayLike:
    """Logistic function with the input clamped to +-500 before exp."""
    z = np.clip(np.asarray(x, dtype=float), -SIGMOID_CLAMP, SIGMOID_CLAMP)
    return _unwrap(1.0 / (1.0 + np.exp(-z)))


def softmax(x: ArrayLike) -> np.ndarray:
    """
    Numerically stable softmax over a 1-D vector.

    The maximum is subtracted before exponentiating so large logits do not
    overflow; the result is unchanged because softmax is shift-invariant.
    """
    z = np.asarray(x, dtype=float)
    if z.size == 0:
        return z.copy()
    e = np.exp(z - np.max(z))
    return e / np.sum(e)


class Activation:
    """
    Base class for activation functions.

    Subclasses override forward() and derivative(). Instances are shared
    and must stay stateless.
    """

    kind: ActivationType = ActivationType.NONE

    def __call__(self, x: ArrayLike) -> ArrayLike:
        return self.forward(x)

    def forward(self, x: ArrayLike) -> ArrayLike:
        raise NotImplementedError

    def derivative(self, x: ArrayLike) -> ArrayLike:
        raise NotImplementedError

    def backward(self, x: np.ndarray, upstream: np.ndarray) -> np.ndarray:
        """
        Chain an upstream gradient through this activation.

        Args:
            x: Pre-activation vector of the layer.
            upstream: dL/d(activation) for every unit.

        Returns:
            dL/d(pre-activation) for every unit.
        """
        return np.asarray(upstream, dtype=float) * np.asarray(
            self.derivative(np.asarray(x, dtype=float)), dtype=float
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Identity(Activation):
    """f(x) = x. Used by input layers and linear outputs."""

    kind = ActivationType.NONE

    def forward(self, x: ArrayLike) -> ArrayLike:
        return _unwrap(np.asarray(x, dtype=float))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        return _unwrap(np.ones_like(np.asarray(x, dtype=float)))


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Local derivative:
        f'(x) = 1 if x > 0 else 0
    """

    kind = ActivationType.RELU

    def forward(self, x: ArrayLike) -> ArrayLike:
        return _unwrap(np.maximum(0.0, np.asarray(x, dtype=float)))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        return _unwrap((np.asarray(x, dtype=float) > 0).astype(float))


class LeakyReLU(Activation):
    """f(x) = x if x > 0 else alpha * x"""

    kind = ActivationType.LEAKY_RELU

    def __init__(self, alpha: float = 0.01) -> None:
        self.alpha = alpha

    def forward(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        return _unwrap(np.where(z > 0, z, self.alpha * z))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        return _unwrap(np.where(z > 0, 1.0, self.alpha))

    def __repr__(self) -> str:
        return f"LeakyReLU(alpha={self.alpha})"


class Sigmoid(Activation):
    """
    Sigmoid activation: f(x) = 1 / (1 + e^(-x))

    Local derivative:
        f'(x) = f(x) * (1 - f(x))
    """

    kind = ActivationType.SIGMOID

    def forward(self, x: ArrayLike) -> ArrayLike:
        return sigmoid(x)

    def derivative(self, x: ArrayLike) -> ArrayLike:
        s = np.asarray(sigmoid(x), dtype=float)
        return _unwrap(s * (1.0 - s))


class Tanh(Activation):
    """
    Hyperbolic tangent: f(x) = tanh(x)

    Local derivative:
        f'(x) = 1 - tanh(x)^2
    """

    kind = ActivationType.TANH

    def forward(self, x: ArrayLike) -> ArrayLike:
        return _unwrap(np.tanh(np.asarray(x, dtype=float)))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        t = np.tanh(np.asarray(x, dtype=float))
        return _unwrap(1.0 - t * t)


class ELU(Activation):
    """f(x) = x if x > 0 else alpha * (e^x - 1)"""

    kind = ActivationType.ELU

    def __init__(self, alpha: float = 1.0) -> None:
        self.alpha = alpha

    def forward(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        # exp only on the negative side keeps large positives from overflowing
        neg = self.alpha * np.expm1(np.minimum(z, 0.0))
        return _unwrap(np.where(z > 0, z, neg))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        return _unwrap(np.where(z > 0, 1.0, self.alpha * np.exp(np.minimum(z, 0.0))))

    def __repr__(self) -> str:
        return f"ELU(alpha={self.alpha})"


class Swish(Activation):
    """
    Swish: f(x) = x * sigmoid(x)

    Local derivative:
        f'(x) = f(x) + sigmoid(x) * (1 - f(x))
    """

    kind = ActivationType.SWISH

    def forward(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        return _unwrap(z * np.asarray(sigmoid(z)))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        s = np.asarray(sigmoid(z))
        sw = z * s
        return _unwrap(sw + s * (1.0 - sw))


class GELU(Activation):
    """
    Gaussian Error Linear Unit, tanh approximation:

        f(x) = 0.5 * x * (1 + tanh(sqrt(2/pi) * (x + 0.044715 * x^3)))
    """

    kind = ActivationType.GELU

    def forward(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        inner = SQRT_2_OVER_PI * (z + GELU_COEFF * z ** 3)
        return _unwrap(0.5 * z * (1.0 + np.tanh(inner)))

    def derivative(self, x: ArrayLike) -> ArrayLike:
        z = np.asarray(x, dtype=float)
        inner = SQRT_2_OVER_PI * (z + GELU_COEFF * z ** 3)
        t = np.tanh(inner)
        sech2 = 1.0 - t * t
        return _unwrap(
            0.5 * (1.0 + t)
            + 0.5 * z * sech2 * SQRT_2_OVER_PI * (1.0 + 3.0 * GELU_COEFF * z * z)
        )


class Softmax(Activation):
    """
    Softmax over a whole layer.

    Applied per element it degrades to identity (a single value always
    normalizes to itself), so Layer computes it once over the layer's
    pre-activation vector instead. backward() applies the full Jacobian:

        J = diag(s) - s s^T
        dL/dz_i = s_i * (g_i - sum_j g_j s_j)
    """

    kind = ActivationType.SOFTMAX

    def forward(self, x: ArrayLike) -> ArrayLike:
        if np.ndim(x) == 0:
            return float(x)
        return softmax(x)

    def derivative(self, x: ArrayLike) -> ArrayLike:
        return _unwrap(np.ones_like(np.asarray(x, dtype=float)))

    def backward(self, x: np.ndarray, upstream: np.ndarray) -> np.ndarray:
        s = softmax(x)
        g = np.asarray(upstream, dtype=float)
        return s * (g - np.dot(g, s))


_ACTIVATIONS: Dict[ActivationType, Activation] = {
    ActivationType.NONE: Identity(),
    ActivationType.RELU: ReLU(),
    ActivationType.SIGMOID: Sigmoid(),
    ActivationType.TANH: Tanh(),
    ActivationType.LEAKY_RELU: LeakyReLU(),
    ActivationType.ELU: ELU(),
    ActivationType.SWISH: Swish(),
    ActivationType.GELU: GELU(),
    ActivationType.SOFTMAX: Softmax(),
}


def get_activation(kind: Union[ActivationType, int]) -> Activation:
    """
    Look up the activation for a tag.

    Args:
        kind: ActivationType or its integer value.

    Returns:
        The shared Activation instance. Unknown tags fall back to ReLU.
    """
    try:
        return _ACTIVATIONS[ActivationType(kind)]
    except ValueError:
        logger.warning(f"Unknown activation type {kind!r}, falling back to ReLU")
        return _ACTIVATIONS[ActivationType.RELU]
