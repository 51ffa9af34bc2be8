"""
Weight Initializers
===================

Variance-scaled random schemes keyed to a layer's fan-in and fan-out.

get_initializer() binds a scheme to a generator and returns

    init(fan_in, fan_out, size=None)

which draws a single float when size is None, otherwise an array of that
shape. Passing the generator in, instead of reaching for a process-wide
one, is what makes seeded networks reproducible.
"""

from __future__ import annotations
import logging
import math
from enum import IntEnum
from typing import Callable, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

Size = Optional[Union[int, Tuple[int, ...]]]
Initializer = Callable[..., Union[float, np.ndarray]]


class InitializationType(IntEnum):
    """Weight initialization schemes."""

    RANDOM = 0
    XAVIER = 1
    HE = 2
    ZERO = 3
    ONE = 4
    LECUN = 5
    RANDOM_NORMAL = 6


def _draw(value: np.ndarray, size: Size) -> Union[float, np.ndarray]:
    return float(value) if size is None else value


def xavier(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    """
    Xavier/Glorot uniform initialization.

    Samples from U(-limit, limit) with limit = sqrt(6 / (fan_in + fan_out)).
    Keeps activation variance roughly constant for tanh/sigmoid layers.
    """
    limit = math.sqrt(6.0 / max(fan_in + fan_out, 1))
    return _draw(rng.uniform(-limit, limit, size), size)


def he(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    """
    He initialization (for ReLU activations).

    Samples from N(0, sqrt(2 / fan_in)).
    """
    std = math.sqrt(2.0 / max(fan_in, 1))
    return _draw(rng.normal(0.0, std, size), size)


def lecun(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    """LeCun normal: N(0, sqrt(1 / fan_in))."""
    std = math.sqrt(1.0 / max(fan_in, 1))
    return _draw(rng.normal(0.0, std, size), size)


def random_uniform(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    """U(-1, 1), independent of the layer shape."""
    return _draw(rng.uniform(-1.0, 1.0, size), size)


def random_normal(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    """N(0, 1), independent of the layer shape."""
    return _draw(rng.normal(0.0, 1.0, size), size)


def zeros(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    return 0.0 if size is None else np.zeros(size)


def ones(rng: np.random.Generator, fan_in: int, fan_out: int, size: Size = None):
    return 1.0 if size is None else np.ones(size)


_SCHEMES = {
    InitializationType.RANDOM: random_uniform,
    InitializationType.XAVIER: xavier,
    InitializationType.HE: he,
    InitializationType.ZERO: zeros,
    InitializationType.ONE: ones,
    InitializationType.LECUN: lecun,
    InitializationType.RANDOM_NORMAL: random_normal,
}


def get_initializer(
    kind: Union[InitializationType, int],
    rng: Optional[np.random.Generator] = None
) -> Initializer:
    """
    Bind an initialization scheme to a random generator.

    Args:
        kind: InitializationType or its integer value. Unknown values fall
            back to Xavier.
        rng: Generator to draw from. A fresh unseeded one is used if omitted.

    Returns:
        Function (fan_in, fan_out, size=None) -> weight(s).

    Example:
        >>> init = get_initializer(InitializationType.HE, np.random.default_rng(0))
        >>> w = init(4, 3, size=(3, 4))
    """
    try:
        scheme = _SCHEMES[InitializationType(kind)]
    except ValueError:
        logger.warning(f"Unknown initialization type {kind!r}, falling back to Xavier")
        scheme = xavier

    gen = rng if rng is not None else np.random.default_rng()

    def init(fan_in: int, fan_out: int, size: Size = None):
        return scheme(gen, fan_in, fan_out, size)

    return init


def initial_bias(kind: Union[InitializationType, int], rng: np.random.Generator, size: int) -> np.ndarray:
    """
    Starting biases for a freshly initialized layer.

    Variance-scaled schemes start at zero; RANDOM draws biases from the same
    U(-1, 1) as its weights; ZERO and ONE use their constant.
    """
    try:
        kind = InitializationType(kind)
    except ValueError:
        kind = InitializationType.XAVIER

    if kind == InitializationType.RANDOM:
        return rng.uniform(-1.0, 1.0, size)
    if kind == InitializationType.ONE:
        return np.ones(size)
    return np.zeros(size)
