"""
Layer
=====

A fully connected layer of units that share one activation function and
one dropout rate.

The layer owns a single contiguous weight buffer of shape (units, inputs).
Each unit's input_weights is a row view into it, so per-unit accessors and
the vectorized math below always see the same numbers.

Per training step the network calls, in order:

    forward(prev_activations)       weighted inputs
    apply_activation()              activations
    apply_dropout(training)         inverted dropout
    compute_gradients(...) or set_output_deltas(...)
    update_weights(lr, prev_activations)

Size problems are logged and reported through a False return value rather
than raised, so a caller driving a render loop keeps running.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from .activations import ActivationType, get_activation, softmax
from .errors import ConfigurationError, DimensionMismatchError, NetworkParseError
from .initializers import InitializationType, get_initializer, initial_bias
from .unit import Unit

logger = logging.getLogger(__name__)


class Layer:
    """
    An ordered, fixed-size collection of Units.

    Attributes:
        units: Units in index order. The count is fixed after construction.
        name: Display name.
        trainable: When False, update_weights() leaves the layer untouched.
        rng: Generator used for weight initialization and dropout masks.
        dropout_mask: Per-unit keep flags from the last apply_dropout().

    Example:
        >>> layer = Layer(3, ActivationType.TANH, name='hidden')
        >>> layer.initialize_weights(2)
        >>> layer.forward([1.0, 0.5])
        True
        >>> layer.apply_activation()
        >>> len(layer.activations)
        3
    """

    def __init__(
        self,
        size: int,
        activation: Union[ActivationType, int] = ActivationType.RELU,
        name: str = '',
        dropout_rate: float = 0.0,
        trainable: bool = True,
        rng: Optional[np.random.Generator] = None
    ) -> None:
        """
        Initialize a layer with unconnected units.

        Args:
            size: Number of units. Must be positive.
            activation: Activation shared by every unit.
            name: Display name.
            dropout_rate: Fraction of units dropped while training, clamped
                to [0, 1].
            trainable: Whether weight updates apply.
            rng: Generator for initialization and dropout.

        Raises:
            ConfigurationError: If size is not positive.
        """
        if int(size) <= 0:
            raise ConfigurationError(f"Layer size must be positive, got {size}")

        self.units: List[Unit] = [Unit(i) for i in range(int(size))]
        self.name: str = name
        self.trainable: bool = trainable
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng()
        self.dropout_mask: np.ndarray = np.ones(len(self.units), dtype=bool)

        self._activation_type = ActivationType(activation)
        self._activation = get_activation(self._activation_type)
        self._dropout_rate = 0.0
        self.dropout_rate = dropout_rate
        self._dropout_scale = 1.0

        self._weights: np.ndarray = np.zeros((len(self.units), 0))
        self._bind_weights()

    @classmethod
    def from_config(cls, config, rng: Optional[np.random.Generator] = None) -> Layer:
        """Build a layer from a LayerConfig."""
        return cls(
            config.size,
            activation=config.activation,
            name=config.name,
            dropout_rate=config.dropout_rate,
            trainable=config.trainable,
            rng=rng
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def size(self) -> int:
        return len(self.units)

    @property
    def input_size(self) -> int:
        """Number of incoming connections per unit (0 for an input layer)."""
        w = self._weight_buffer()
        return 0 if w is None else int(w.shape[1])

    @property
    def activation_type(self) -> ActivationType:
        return self._activation_type

    def set_activation_type(self, activation: Union[ActivationType, int]) -> None:
        self._activation_type = ActivationType(activation)
        self._activation = get_activation(self._activation_type)

    @property
    def dropout_rate(self) -> float:
        return self._dropout_rate

    @dropout_rate.setter
    def dropout_rate(self, rate: float) -> None:
        self._dropout_rate = float(min(1.0, max(0.0, rate)))

    def get_unit(self, index: int) -> Unit:
        return self.units[index]

    @property
    def activations(self) -> np.ndarray:
        return np.array([u.activation for u in self.units], dtype=float)

    def set_activations(self, values: Sequence[float]) -> bool:
        """Drive the layer's outputs directly (used for the input layer)."""
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.shape[0] != self.size:
            logger.error(
                f"Layer '{self.name}': got {values.shape[0]} activations "
                f"for {self.size} units"
            )
            return False
        for unit, a in zip(self.units, values):
            unit.activation = float(a)
        return True

    @property
    def biases(self) -> np.ndarray:
        return np.array([u.bias for u in self.units], dtype=float)

    def set_biases(self, values: Sequence[float]) -> bool:
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.shape[0] != self.size:
            logger.error(
                f"Layer '{self.name}': got {values.shape[0]} biases "
                f"for {self.size} units"
            )
            return False
        for unit, b in zip(self.units, values):
            unit.bias = float(b)
        return True

    @property
    def pre_activations(self) -> np.ndarray:
        """weighted_input + bias for every unit."""
        return np.array([u.pre_activation for u in self.units], dtype=float)

    @property
    def deltas(self) -> np.ndarray:
        return np.array([u.delta for u in self.units], dtype=float)

    @property
    def weight_matrix(self) -> np.ndarray:
        """Copy of the (units, inputs) weight matrix."""
        w = self._weight_buffer()
        if w is None:
            logger.error(f"Layer '{self.name}': units disagree on their input count")
            return np.zeros((self.size, 0))
        return w.copy()

    def set_weight_matrix(self, weights: Sequence[Sequence[float]]) -> bool:
        """Replace every unit's incoming weights at once."""
        try:
            w = np.array(weights, dtype=float)
        except ValueError:
            logger.error(f"Layer '{self.name}': ragged weight matrix")
            return False
        if w.ndim != 2 or w.shape[0] != self.size:
            logger.error(
                f"Layer '{self.name}': weight matrix of shape {w.shape} "
                f"doesn't fit {self.size} units"
            )
            return False
        self._weights = w if w.base is None else w.copy()
        self._bind_weights()
        return True

    # =========================================================================
    # Weight buffer
    # =========================================================================

    def _bind_weights(self) -> None:
        for i, unit in enumerate(self.units):
            unit.input_weights = self._weights[i]

    def _weight_buffer(self) -> Optional[np.ndarray]:
        """
        Return the contiguous weight buffer, rebuilding it if a unit's weights
        were replaced with a different-length array. None when units disagree
        on their input count.
        """
        w = self._weights
        if all(u.input_weights.base is w for u in self.units):
            return w

        counts = {u.input_count for u in self.units}
        if len(counts) != 1:
            return None
        fan_in = counts.pop()
        self._weights = np.array(
            [u.input_weights for u in self.units], dtype=float
        ).reshape(self.size, fan_in).copy()
        self._bind_weights()
        return self._weights

    def initialize_weights(
        self,
        prev_size: int,
        scheme: Union[InitializationType, int] = InitializationType.XAVIER
    ) -> None:
        """
        Re-derive every unit's weights for a predecessor of prev_size units.

        Args:
            prev_size: Unit count of the previous layer (fan-in).
            scheme: Initialization scheme; also decides the starting biases.
        """
        init = get_initializer(scheme, self.rng)
        # copy so the buffer owns its memory; unit rows are views of it
        self._weights = np.array(
            init(prev_size, self.size, size=(self.size, prev_size)), dtype=float
        ).reshape(self.size, prev_size).copy()
        self._bind_weights()
        for unit, b in zip(self.units, initial_bias(scheme, self.rng, self.size)):
            unit.bias = float(b)

    # =========================================================================
    # Forward
    # =========================================================================

    def forward(self, inputs: Sequence[float]) -> bool:
        """
        Compute weighted_input = sum(input_k * weight_k) for every unit.

        Returns:
            False (and logs) if the input length differs from the unit
            weight count; unit state is left untouched in that case.
        """
        try:
            z = self._weighted_sums(inputs)
        except DimensionMismatchError as e:
            logger.error(f"Layer '{self.name}' forward: {e}")
            return False

        for unit, zi in zip(self.units, z):
            unit.weighted_input = float(zi)
        return True

    def _weighted_sums(self, inputs: Sequence[float]) -> np.ndarray:
        x = np.asarray(inputs, dtype=float).reshape(-1)
        w = self._weight_buffer()
        if w is None:
            raise DimensionMismatchError("units disagree on their input count")
        if w.shape[1] != x.shape[0]:
            raise DimensionMismatchError(
                f"got {x.shape[0]} inputs, units expect {w.shape[1]}"
            )
        return w @ x

    def apply_activation(self) -> None:
        """
        Turn pre-activations into activations.

        Softmax normalizes over the whole layer, so it is computed once from
        the (weighted_input + bias) vector; everything else is per unit.
        """
        if self._activation_type == ActivationType.SOFTMAX:
            for unit, a in zip(self.units, softmax(self.pre_activations)):
                unit.activation = float(a)
        else:
            for unit in self.units:
                unit.apply_activation(self._activation)

    def apply_dropout(self, training: bool = True) -> None:
        """
        Inverted dropout.

        While training with a positive rate, each unit is kept with
        probability keep = 1 - rate; dropped units output 0 and survivors are
        scaled by 1/keep so the expected activation is unchanged. Otherwise
        the mask is reset to all-true and activations are left alone.
        """
        if not training or self._dropout_rate <= 0.0:
            self.dropout_mask = np.ones(self.size, dtype=bool)
            self._dropout_scale = 1.0
            return

        keep = 1.0 - self._dropout_rate
        self.dropout_mask = self.rng.random(self.size) < keep
        self._dropout_scale = 1.0 / keep if keep > 0.0 else 0.0

        for unit, kept in zip(self.units, self.dropout_mask):
            unit.activation = unit.activation * self._dropout_scale if kept else 0.0

    # =========================================================================
    # Backward
    # =========================================================================

    def compute_gradients(
        self,
        next_deltas: Sequence[float],
        next_weights: Sequence[Sequence[float]]
    ) -> bool:
        """
        Backpropagate the next layer's deltas into this layer.

        delta_i = (sum_j next_deltas_j * next_weights_j[i]) * f'(z_i)

        Args:
            next_deltas: Delta of every unit in the next layer.
            next_weights: Incoming weights of every unit in the next layer,
                one row per unit, one column per unit of this layer.

        Returns:
            False (and logs) on a size mismatch.
        """
        if len(next_deltas) != len(next_weights):
            logger.error(
                f"Layer '{self.name}' gradients: {len(next_deltas)} deltas "
                f"for {len(next_weights)} weight rows"
            )
            return False

        d = np.asarray(next_deltas, dtype=float).reshape(-1)
        try:
            w = np.array(next_weights, dtype=float)
        except ValueError:
            logger.error(f"Layer '{self.name}' gradients: ragged next-layer weights")
            return False
        if d.size == 0:
            w = np.zeros((0, self.size))
        if w.ndim != 2 or w.shape[1] != self.size:
            logger.error(
                f"Layer '{self.name}' gradients: next weights of shape "
                f"{w.shape} don't connect to {self.size} units"
            )
            return False

        self._store_deltas(w.T @ d)
        return True

    def set_output_deltas(self, loss_gradient: Sequence[float]) -> bool:
        """
        Seed deltas from dL/d(activation) when this is the output layer.

        The loss gradient is chained through the activation derivative (the
        full Jacobian for softmax) and through the dropout mask.
        """
        g = np.asarray(loss_gradient, dtype=float).reshape(-1)
        if g.shape[0] != self.size:
            logger.error(
                f"Layer '{self.name}': loss gradient of length {g.shape[0]} "
                f"for {self.size} units"
            )
            return False
        self._store_deltas(g)
        return True

    def _store_deltas(self, upstream: np.ndarray) -> None:
        # activation = mask * scale * f(z), so dropout scales the upstream first
        scaled = upstream * np.where(self.dropout_mask, self._dropout_scale, 0.0)

        if self._activation_type == ActivationType.SOFTMAX:
            deltas = self._activation.backward(self.pre_activations, scaled)
        else:
            derivs = np.array([
                u.compute_activation_derivative(self._activation.derivative)
                for u in self.units
            ])
            deltas = scaled * derivs

        for unit, g, delta in zip(self.units, upstream, deltas):
            unit.gradient = float(g)
            unit.delta = float(delta)

    def update_weights(self, learning_rate: float, prev_activations: Sequence[float]) -> bool:
        """
        Plain SGD step.

            weight_k -= lr * delta * prev_activations_k
            bias     -= lr * delta

        A non-trainable layer is left alone, as is any non-trainable unit.

        Returns:
            False (and logs) if prev_activations doesn't match the fan-in.
        """
        if not self.trainable:
            return True

        prev = np.asarray(prev_activations, dtype=float).reshape(-1)
        w = self._weight_buffer()
        if w is None or w.shape[1] != prev.shape[0]:
            logger.error(
                f"Layer '{self.name}' update: {prev.shape[0]} previous "
                f"activations for fan-in {self.input_size}"
            )
            return False

        trainable = np.array([u.trainable for u in self.units], dtype=bool)
        step = learning_rate * np.where(trainable, self.deltas, 0.0)

        w -= np.outer(step, prev)
        for unit, s in zip(self.units, step):
            unit.bias = float(unit.bias - s)
        return True

    def reset(self) -> None:
        """Clear transient unit state and the dropout mask. Weights survive."""
        for unit in self.units:
            unit.reset()
        self.dropout_mask = np.ones(self.size, dtype=bool)
        self._dropout_scale = 1.0

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'size': self.size,
            'activation_type': int(self._activation_type),
            'dropout_rate': float(self._dropout_rate),
            'trainable': bool(self.trainable),
            'neurons': [u.to_dict() for u in self.units],
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        rng: Optional[np.random.Generator] = None
    ) -> Layer:
        """
        Rebuild a layer from its persisted form.

        The neuron list wins over 'size' when both are present.

        Raises:
            NetworkParseError: On any malformed field, or when the neurons
                disagree on their input count.
        """
        if not isinstance(data, dict):
            raise NetworkParseError(
                f"Layer entry must be an object, got {type(data).__name__}"
            )

        neurons = data.get('neurons')
        if neurons is not None and not isinstance(neurons, list):
            raise NetworkParseError("'neurons' must be a list")

        if neurons and 'size' in data and data['size'] != len(neurons):
            logger.warning(
                f"Layer '{data.get('name', '')}' lists {len(neurons)} neurons but "
                f"size {data['size']}; using the neuron list"
            )

        try:
            size = len(neurons) if neurons else int(data.get('size', 0))
            activation = ActivationType(int(data.get('activation_type', ActivationType.RELU)))
            layer = cls(
                size,
                activation=activation,
                name=str(data.get('name', '')),
                dropout_rate=float(data.get('dropout_rate', 0.0)),
                trainable=bool(data.get('trainable', True)),
                rng=rng
            )
        except (ConfigurationError, TypeError, ValueError) as e:
            raise NetworkParseError(f"Malformed layer entry: {e}") from e

        if neurons:
            layer.units = [Unit.from_dict(n, default_id=i) for i, n in enumerate(neurons)]
            if layer._weight_buffer() is None:
                raise NetworkParseError(
                    f"Layer '{layer.name}': neurons disagree on their input count"
                )
        return layer

    def __repr__(self) -> str:
        return (
            f"Layer({self.name!r}, {self.input_size} -> {self.size}, "
            f"{self._activation_type.name})"
        )
