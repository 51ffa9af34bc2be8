"""
Unit
====

A single computational node of the network.

A unit computes: activation = f(sum(w_i * x_i) + b)

It only stores state; the arithmetic that fills it in lives in Layer, which
processes all of its units at once.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from .errors import NetworkParseError


class Unit:
    """
    A single neuron and its incoming connections.

    Attributes:
        id: Stable index within the owning layer.
        activation: Output after the activation function (and dropout).
        bias: Learnable offset added to the weighted input.
        weighted_input: Sum of incoming activations times weights, bias
            excluded.
        gradient: Upstream error sum from the next layer, before the
            activation derivative is applied.
        delta: Backpropagated error signal, dL/d(pre-activation).
        trainable: Whether update steps may change this unit.
        name: Optional label for display.
        input_weights: Incoming weights, one per unit of the previous layer.
            Inside a Layer this is a row view of the layer's weight buffer.

    Example:
        >>> u = Unit(0)
        >>> u.set_input_weights([0.5, -0.25])
        >>> u.weighted_input = 1.0
        >>> u.apply_activation(lambda z: max(0.0, z))
        >>> u.activation
        1.0
    """

    def __init__(self, id: int = 0, name: str = '') -> None:
        self.id: int = id
        self.activation: float = 0.0
        self.bias: float = 0.0
        self.weighted_input: float = 0.0
        self.gradient: float = 0.0
        self.delta: float = 0.0
        self.trainable: bool = True
        self.name: str = name
        self.input_weights: np.ndarray = np.zeros(0)

    @property
    def pre_activation(self) -> float:
        """weighted_input + bias, the value activations are evaluated at."""
        return self.weighted_input + self.bias

    def apply_activation(self, func: Callable[[float], float]) -> None:
        """Set activation = func(weighted_input + bias)."""
        self.activation = float(func(self.pre_activation))

    def compute_activation_derivative(self, derivative: Callable[[float], float]) -> float:
        """Evaluate derivative at the current pre-activation. Does not mutate."""
        return float(derivative(self.pre_activation))

    def reset(self) -> None:
        """Clear transient state. Weights and bias survive."""
        self.activation = 0.0
        self.weighted_input = 0.0
        self.gradient = 0.0
        self.delta = 0.0

    # =========================================================================
    # Weights
    # =========================================================================

    @property
    def input_count(self) -> int:
        return int(self.input_weights.shape[0])

    def get_input_weight(self, index: int) -> float:
        """Weight at index, or 0.0 when index is out of range."""
        if 0 <= index < self.input_count:
            return float(self.input_weights[index])
        return 0.0

    def set_input_weight(self, index: int, weight: float) -> None:
        """Set the weight at index. Out-of-range indices are ignored."""
        if 0 <= index < self.input_count:
            self.input_weights[index] = weight

    def set_input_weights(self, weights: Sequence[float]) -> None:
        """
        Replace all incoming weights.

        Same-length updates are written in place, so a unit that lives in a
        Layer keeps sharing the layer's weight buffer.
        """
        values = np.asarray(weights, dtype=float).reshape(-1)
        if values.shape == self.input_weights.shape:
            self.input_weights[:] = values
        else:
            self.input_weights = values.copy()

    def add_input_weight(self, weight: float) -> None:
        self.input_weights = np.append(self.input_weights, float(weight))

    def clear_input_weights(self) -> None:
        self.input_weights = np.zeros(0)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Plain-Python snapshot in the persisted neuron layout."""
        return {
            'id': self.id,
            'activation': float(self.activation),
            'bias': float(self.bias),
            'weighted_input': float(self.weighted_input),
            'gradient': float(self.gradient),
            'delta': float(self.delta),
            'trainable': bool(self.trainable),
            'name': self.name,
            'input_weights': [float(w) for w in self.input_weights],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_id: Optional[int] = None) -> Unit:
        """
        Rebuild a unit from its persisted form.

        Missing keys keep their defaults.

        Raises:
            NetworkParseError: If data is not a mapping or a field has the
                wrong type.
        """
        if not isinstance(data, dict):
            raise NetworkParseError(
                f"Neuron entry must be an object, got {type(data).__name__}"
            )

        unit = cls(default_id if default_id is not None else 0)
        try:
            unit.id = int(data.get('id', unit.id))
            unit.activation = float(data.get('activation', 0.0))
            unit.bias = float(data.get('bias', 0.0))
            unit.weighted_input = float(data.get('weighted_input', 0.0))
            unit.gradient = float(data.get('gradient', 0.0))
            unit.delta = float(data.get('delta', 0.0))
            unit.trainable = bool(data.get('trainable', True))
            unit.name = str(data.get('name', ''))
            weights = np.asarray(data.get('input_weights', []), dtype=float)
        except (TypeError, ValueError) as e:
            raise NetworkParseError(f"Malformed neuron entry: {e}") from e

        if weights.ndim != 1:
            raise NetworkParseError("input_weights must be a flat list of numbers")
        unit.input_weights = weights
        return unit

    def __repr__(self) -> str:
        return f"Unit({self.id}, inputs={self.input_count}, activation={self.activation:.4f})"
