"""
Network
=======

A feed-forward network: an ordered stack of Layers plus everything needed
to train it.

Architecture:
    Input -> Hidden1 -> ... -> HiddenN -> Output

The first layer has no weights; its units are driven directly by the input
vector. Every later layer is fully connected to its predecessor.

Training is plain per-sample SGD:

    for each epoch:
        shuffle -> slice into batches
        for each sample: forward -> backward (deltas) -> update weights
        record loss/accuracy, report progress, honour stop_training()

Threading model: one foreground thread reads state for rendering and calls
predict(); at most one background thread runs train(). A re-entrant lock
guards structural changes, serialization, forward passes and each training
sample, so a render-thread predict() or save runs between two samples and
never inside one. Cancellation is cooperative and checked once per epoch.
"""

from __future__ import annotations
import json
import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import LayerConfig, NetworkConfig, OptimizerType, TrainingConfig
from .datasets import train_validation_split
from .errors import (
    ConfigurationError,
    DimensionMismatchError,
    NetworkError,
    NetworkParseError,
)
from .initializers import InitializationType
from .layer import Layer
from .losses import LossType, get_loss
from .persistence import dumps_document, load_network, read_document, save_network

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, float, float], None]
Vector = Sequence[float]


@dataclass
class TrainingHistory:
    """Per-epoch metrics returned by Network.train()."""

    train_loss: List[float] = field(default_factory=list)
    train_accuracy: List[float] = field(default_factory=list)
    val_loss: List[float] = field(default_factory=list)
    val_accuracy: List[float] = field(default_factory=list)

    @property
    def epochs(self) -> int:
        return len(self.train_loss)


class Network:
    """
    Multi-layer perceptron with SGD training and JSON persistence.

    Attributes:
        name: Display name, persisted.
        layers: Layers in order; layers[0] is the input layer.
        learning_rate: SGD step size.
        training_config: Defaults for train() and fit(): epochs, batch size,
            shuffling and the validation split.
        rng: Generator shared by weight init, shuffling and dropout.
        is_training: True while train() is running.
        should_stop: Set by stop_training(); checked at epoch boundaries.
        training_progress: Fraction of requested epochs completed, in [0, 1].
        history: History of the most recent train() call.

    Example:
        >>> net = Network(seed=0)
        >>> net.add_layer(LayerConfig(2, ActivationType.NONE, name='input'))
        True
        >>> net.add_layer(LayerConfig(4, ActivationType.RELU, name='hidden'))
        True
        >>> net.add_layer(LayerConfig(1, ActivationType.SIGMOID, name='output'))
        True
        >>> net.predict([0.0, 1.0]).shape
        (1,)
    """

    def __init__(
        self,
        config: Optional[NetworkConfig] = None,
        name: str = 'Neural Network',
        seed: Optional[int] = None
    ) -> None:
        """
        Initialize a network.

        Args:
            config: Optional declarative description. Its layers are added
                (and initialized) in order; its training section supplies the
                learning rate and, when seed is None, the seed.
            name: Network name, used when no config is given.
            seed: Seed for the network's random generator.
        """
        self.name: str = name
        self.layers: List[Layer] = []
        self.learning_rate: float = 0.001
        self._loss_type = LossType.MSE
        self._loss = get_loss(self._loss_type)
        self._optimizer_type = OptimizerType.SGD
        self.training_config = TrainingConfig()

        self.is_training: bool = False
        self.should_stop: bool = False
        self.training_progress: float = 0.0
        self.history: Optional[TrainingHistory] = None

        if seed is None and config is not None:
            seed = config.training.seed
        self.rng: np.random.Generator = np.random.default_rng(seed)

        self._lock = threading.RLock()
        self._train_guard = threading.Lock()

        if config is not None:
            self._apply_config(config)

    @classmethod
    def from_config(cls, config: NetworkConfig, seed: Optional[int] = None) -> Network:
        return cls(config=config, seed=seed)

    @classmethod
    def from_file(cls, path: str) -> Optional[Network]:
        """Load a saved network, or None if the file can't be read or parsed."""
        return load_network(path)

    def _apply_config(self, config: NetworkConfig) -> None:
        self.name = config.name
        try:
            config.training.validate()
        except ConfigurationError as e:
            logger.warning(f"Ignoring training settings for network '{self.name}': {e}")
        else:
            self.training_config = config.training
            self.learning_rate = float(config.training.learning_rate)
        self.loss_type = config.loss
        self.optimizer_type = config.optimizer
        for layer_config in config.layers:
            self.add_layer(layer_config)

    # =========================================================================
    # Settings
    # =========================================================================

    @property
    def loss_type(self) -> LossType:
        return self._loss_type

    @loss_type.setter
    def loss_type(self, kind: Union[LossType, int]) -> None:
        self._loss_type = LossType(kind)
        self._loss = get_loss(self._loss_type)

    @property
    def optimizer_type(self) -> OptimizerType:
        return self._optimizer_type

    @optimizer_type.setter
    def optimizer_type(self, kind: Union[OptimizerType, int]) -> None:
        self._optimizer_type = OptimizerType(kind)
        if self._optimizer_type != OptimizerType.SGD:
            logger.warning(
                f"Optimizer {self._optimizer_type.name} is stored but updates "
                f"use plain SGD"
            )

    # =========================================================================
    # Structure
    # =========================================================================

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    @property
    def layer_sizes(self) -> List[int]:
        return [layer.size for layer in self.layers]

    def get_layer(self, index: int) -> Layer:
        return self.layers[index]

    def add_layer(
        self,
        layer: Union[Layer, LayerConfig],
        scheme: Optional[Union[InitializationType, int]] = None
    ) -> bool:
        """
        Append a layer and initialize its weights from the current last layer.

        Args:
            layer: A Layer, or a LayerConfig to build one from.
            scheme: Initialization scheme. Defaults to the config's
                weight_init, or Xavier for a ready-made Layer.

        Returns:
            False (and logs) if the configuration is unusable.
        """
        with self._lock:
            if isinstance(layer, LayerConfig):
                if scheme is None:
                    scheme = layer.weight_init
                try:
                    layer = Layer.from_config(layer, rng=self.rng)
                except ConfigurationError as e:
                    logger.error(f"Cannot add layer to network '{self.name}': {e}")
                    return False
            else:
                layer.rng = self.rng

            if self.layers:
                layer.initialize_weights(
                    self.layers[-1].size,
                    InitializationType.XAVIER if scheme is None else scheme
                )

            self.layers.append(layer)
            logger.debug(
                f"Added layer '{layer.name}' to network '{self.name}'. "
                f"Total layers: {len(self.layers)}"
            )
            return True

    def remove_layer(self, index: int) -> bool:
        """
        Remove the layer at index. Every layer from index onward is
        re-initialized so the weight-length invariant keeps holding.
        """
        with self._lock:
            if not 0 <= index < len(self.layers):
                logger.warning(
                    f"Attempted to remove layer {index} from network with "
                    f"{len(self.layers)} layers"
                )
                return False

            del self.layers[index]
            for i in range(max(index, 1), len(self.layers)):
                self.layers[i].initialize_weights(self.layers[i - 1].size)
            if index == 0 and self.layers:
                self.layers[0].initialize_weights(0)

            logger.debug(
                f"Removed layer {index} from network '{self.name}'. "
                f"Total layers: {len(self.layers)}"
            )
            return True

    def clear_layers(self) -> None:
        with self._lock:
            self.layers.clear()
            logger.debug(f"Cleared all layers from network '{self.name}'")

    def initialize_weights(
        self,
        scheme: Union[InitializationType, int] = InitializationType.XAVIER
    ) -> None:
        """Re-initialize every non-input layer with the given scheme."""
        try:
            scheme = InitializationType(scheme)
        except ValueError:
            logger.warning(f"Unknown initialization type {scheme!r}, using Xavier")
            scheme = InitializationType.XAVIER

        with self._lock:
            for prev, layer in zip(self.layers, self.layers[1:]):
                layer.initialize_weights(prev.size, scheme)
            logger.debug(
                f"Initialized weights for network '{self.name}' using "
                f"{scheme.name} initialization"
            )

    def reset(self) -> None:
        """Clear unit state and training flags. Weights survive."""
        with self._lock:
            for layer in self.layers:
                layer.reset()
            self.is_training = False
            self.should_stop = False
            self.training_progress = 0.0
            logger.debug(f"Reset network '{self.name}'")

    # =========================================================================
    # Visualizer accessors
    # =========================================================================

    def _layer_or_none(self, index: int) -> Optional[Layer]:
        if 0 <= index < len(self.layers):
            return self.layers[index]
        logger.warning(f"Layer index {index} out of range ({len(self.layers)} layers)")
        return None

    def get_activations(self, index: int) -> np.ndarray:
        layer = self._layer_or_none(index)
        return np.zeros(0) if layer is None else layer.activations

    def get_biases(self, index: int) -> np.ndarray:
        layer = self._layer_or_none(index)
        return np.zeros(0) if layer is None else layer.biases

    def get_weight_matrix(self, index: int) -> np.ndarray:
        layer = self._layer_or_none(index)
        return np.zeros((0, 0)) if layer is None else layer.weight_matrix

    # =========================================================================
    # Forward / backward
    # =========================================================================

    def forward(self, inputs: Vector, training: bool = False) -> np.ndarray:
        """
        Feed inputs through every layer.

        Args:
            inputs: One value per input unit.
            training: Apply dropout. Inference passes leave it off.

        Returns:
            Output-layer activations, or an empty array (logged) when the
            network has no layers or the input size is wrong.
        """
        with self._lock:
            try:
                return self._forward(inputs, training)
            except NetworkError as e:
                logger.error(f"Forward pass failed for network '{self.name}': {e}")
                return np.zeros(0)

    def _forward(self, inputs: Vector, training: bool) -> np.ndarray:
        if not self.layers:
            raise ConfigurationError("network has no layers")

        x = np.asarray(inputs, dtype=float).reshape(-1)
        if x.shape[0] != self.layers[0].size:
            raise DimensionMismatchError(
                f"input size {x.shape[0]} doesn't match first layer size "
                f"{self.layers[0].size}"
            )

        self.layers[0].set_activations(x)
        for prev, layer in zip(self.layers, self.layers[1:]):
            if not layer.forward(prev.activations):
                raise DimensionMismatchError(
                    f"layer '{layer.name}' rejected {prev.size} inputs"
                )
            layer.apply_activation()
            layer.apply_dropout(training)

        return self.layers[-1].activations

    def backward(self, targets: Vector, outputs: Vector) -> float:
        """
        Backpropagate one sample and apply an SGD step.

        1. loss and dL/d(output) from the selected loss function
        2. output deltas, then hidden deltas from the last hidden layer
           down to the first; every delta is computed before any weight moves
        3. snapshot all activations, then update layers front to back, each
           with its predecessor's snapshot

        Returns:
            The sample loss, or 0.0 (logged) on a size problem.
        """
        with self._lock:
            try:
                return self._backward(targets, outputs)
            except NetworkError as e:
                logger.error(f"Backward pass failed for network '{self.name}': {e}")
                return 0.0

    def _backward(self, targets: Vector, outputs: Vector) -> float:
        if len(self.layers) < 2:
            raise ConfigurationError("backward pass needs at least 2 layers")

        o = np.asarray(outputs, dtype=float).reshape(-1)
        t = np.asarray(targets, dtype=float).reshape(-1)
        output_layer = self.layers[-1]
        if o.shape[0] != output_layer.size or t.shape != o.shape:
            raise DimensionMismatchError(
                f"{t.shape[0]} targets and {o.shape[0]} outputs for an output "
                f"layer of {output_layer.size} units"
            )

        loss = self._loss(o, t)
        output_layer.set_output_deltas(self._loss.gradient(o, t))

        for i in range(len(self.layers) - 2, 0, -1):
            nxt = self.layers[i + 1]
            if not self.layers[i].compute_gradients(nxt.deltas, nxt.weight_matrix):
                raise DimensionMismatchError(f"gradient step failed at layer {i}")

        snapshots = [layer.activations for layer in self.layers]
        for i in range(1, len(self.layers)):
            self.layers[i].update_weights(self.learning_rate, snapshots[i - 1])

        return loss

    # =========================================================================
    # Training
    # =========================================================================

    def train_sample(self, inputs: Vector, targets: Vector, training: bool = True) -> float:
        """Forward + backward on one example. Returns its loss."""
        with self._lock:
            outputs = self.forward(inputs, training=training)
            if outputs.size == 0:
                return 0.0
            return self.backward(targets, outputs)

    def train_batch(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        training: bool = True
    ) -> float:
        """
        Train on every sample of a batch in order.

        Returns:
            Average sample loss, or 0.0 (logged) if the batch is empty or
            the input and target counts differ.
        """
        if len(inputs) != len(targets):
            logger.error(
                f"Input batch size {len(inputs)} doesn't match target batch "
                f"size {len(targets)}"
            )
            return 0.0
        if len(inputs) == 0:
            logger.error("Cannot train on an empty batch")
            return 0.0

        total = 0.0
        for x, y in zip(inputs, targets):
            total += self.train_sample(x, y, training=training)
        return total / len(inputs)

    def _check_training_data(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        epochs: int,
        batch_size: int
    ) -> None:
        if len(self.layers) < 2:
            raise ConfigurationError("network needs at least an input and an output layer")
        if len(inputs) == 0:
            raise ConfigurationError("no training data")
        if len(inputs) != len(targets):
            raise DimensionMismatchError(
                f"{len(inputs)} inputs but {len(targets)} targets"
            )
        if epochs <= 0:
            raise ConfigurationError(f"epochs must be positive, got {epochs}")
        if batch_size <= 0:
            raise ConfigurationError(f"batch size must be positive, got {batch_size}")

    def train(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        validation_inputs: Optional[Sequence[Vector]] = None,
        validation_targets: Optional[Sequence[Vector]] = None,
        progress_callback: Optional[ProgressCallback] = None,
        shuffle: Optional[bool] = None
    ) -> TrainingHistory:
        """
        Train for a number of epochs.

        Each epoch shuffles the data with the network's generator, slices it
        into contiguous batches, trains every sample, then records the
        average batch loss and the training accuracy (and validation metrics
        when validation data is given). training_progress becomes
        (epoch + 1) / epochs and progress_callback(epoch, loss, accuracy) is
        called on this thread. stop_training() ends the run at the next
        epoch boundary.

        epochs, batch_size and shuffle default to training_config. With
        shuffle off, every epoch visits the samples in their given order.

        Only one train() may run at a time; a concurrent call is rejected.

        Returns:
            Per-epoch history. Empty (logged) when the network or data can't
            be trained on.
        """
        if epochs is None:
            epochs = self.training_config.epochs
        if batch_size is None:
            batch_size = self.training_config.batch_size
        if shuffle is None:
            shuffle = self.training_config.shuffle

        history = TrainingHistory()

        if not self._train_guard.acquire(blocking=False):
            logger.error(f"Network '{self.name}' is already training")
            return history

        try:
            try:
                self._check_training_data(inputs, targets, epochs, batch_size)
            except NetworkError as e:
                logger.error(f"Cannot train network '{self.name}': {e}")
                return history

            validate = validation_inputs is not None and validation_targets is not None
            if validate and len(validation_inputs) != len(validation_targets):
                logger.warning(
                    f"Ignoring validation data: {len(validation_inputs)} inputs "
                    f"but {len(validation_targets)} targets"
                )
                validate = False

            self.is_training = True
            self.should_stop = False
            self.training_progress = 0.0

            logger.info(
                f"Starting training for network '{self.name}': {epochs} epochs, "
                f"batch size {batch_size}"
            )

            for epoch in range(epochs):
                if shuffle:
                    order = self.rng.permutation(len(inputs))
                else:
                    order = range(len(inputs))
                epoch_inputs = [inputs[i] for i in order]
                epoch_targets = [targets[i] for i in order]

                batches = self.create_batches(epoch_inputs, epoch_targets, batch_size)
                epoch_loss = sum(
                    self.train_batch(batch_x, batch_y) for batch_x, batch_y in batches
                ) / len(batches)

                train_accuracy = self.compute_accuracy(
                    self.predict_batch(epoch_inputs), epoch_targets
                )
                history.train_loss.append(epoch_loss)
                history.train_accuracy.append(train_accuracy)

                if validate:
                    val_loss, val_accuracy = self.evaluate(validation_inputs, validation_targets)
                    history.val_loss.append(val_loss)
                    history.val_accuracy.append(val_accuracy)

                self.training_progress = (epoch + 1) / epochs

                if progress_callback is not None:
                    progress_callback(epoch, epoch_loss, train_accuracy)

                if epoch % 10 == 0 or epoch == epochs - 1:
                    logger.info(
                        f"Epoch {epoch + 1}/{epochs}: Loss = {epoch_loss:.6f}, "
                        f"Accuracy = {train_accuracy:.4f}"
                    )

                if self.should_stop:
                    logger.info(
                        f"Training of network '{self.name}' stopped after "
                        f"epoch {epoch + 1}/{epochs}"
                    )
                    break
            else:
                logger.info(f"Training completed for network '{self.name}'")

            self.history = history
            return history
        finally:
            self.is_training = False
            self._train_guard.release()

    def fit(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        progress_callback: Optional[ProgressCallback] = None
    ) -> TrainingHistory:
        """
        Train with every setting taken from training_config.

        training_config.validation_split of the samples is held out (drawn
        with the network's generator) and evaluated after each epoch.

        Returns:
            Per-epoch history, empty (logged) when the data can't be split
            or trained on.
        """
        split = self.training_config.validation_split
        if split <= 0.0:
            return self.train(inputs, targets, progress_callback=progress_callback)

        try:
            train_x, train_y, val_x, val_y = train_validation_split(
                inputs, targets, split, rng=self.rng
            )
        except ValueError as e:
            logger.error(f"Cannot split data for network '{self.name}': {e}")
            return TrainingHistory()

        return self.train(
            train_x,
            train_y,
            validation_inputs=val_x if len(val_x) else None,
            validation_targets=val_y if len(val_y) else None,
            progress_callback=progress_callback
        )

    def train_async(self, *args: Any, **kwargs: Any) -> threading.Thread:
        """
        Run train() on a background daemon thread.

        Takes the same arguments as train(). The result lands in
        self.history; poll training_progress / is_training or join the
        returned thread.
        """
        thread = threading.Thread(
            target=self.train,
            args=args,
            kwargs=kwargs,
            name=f"train-{self.name}",
            daemon=True
        )
        thread.start()
        return thread

    def stop_training(self) -> None:
        """Ask a running train() to stop at the next epoch boundary."""
        self.should_stop = True

    @staticmethod
    def create_batches(
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        batch_size: int
    ) -> List[Tuple[List[Vector], List[Vector]]]:
        """
        Slice data into contiguous batches of batch_size (the last may be
        shorter), preserving order: ceil(N / batch_size) batches in total.
        """
        if batch_size <= 0:
            logger.error(f"Batch size must be positive, got {batch_size}")
            return []
        if len(inputs) != len(targets):
            logger.error(f"{len(inputs)} inputs but {len(targets)} targets")
            return []

        n_batches = math.ceil(len(inputs) / batch_size)
        return [
            (
                list(inputs[b * batch_size:(b + 1) * batch_size]),
                list(targets[b * batch_size:(b + 1) * batch_size]),
            )
            for b in range(n_batches)
        ]

    # =========================================================================
    # Inference
    # =========================================================================

    def predict(self, inputs: Vector) -> np.ndarray:
        """Inference forward pass: dropout off, weights untouched."""
        return self.forward(inputs, training=False)

    def predict_batch(self, inputs: Sequence[Vector]) -> List[np.ndarray]:
        return [self.predict(x) for x in inputs]

    def evaluate(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector]
    ) -> Tuple[float, float]:
        """
        Average loss and accuracy over a dataset, using predict().

        Returns:
            (loss, accuracy), or (0.0, 0.0) (logged) for empty or mismatched
            data.
        """
        if len(inputs) != len(targets):
            logger.error(
                f"Input data size {len(inputs)} doesn't match target data "
                f"size {len(targets)}"
            )
            return 0.0, 0.0
        if len(inputs) == 0:
            logger.error("Cannot evaluate on an empty dataset")
            return 0.0, 0.0

        outputs = self.predict_batch(inputs)
        total = sum(self._loss(o, t) for o, t in zip(outputs, targets))
        return total / len(outputs), self.compute_accuracy(outputs, targets)

    @staticmethod
    def compute_accuracy(
        outputs: Sequence[Vector],
        targets: Sequence[Vector]
    ) -> float:
        """
        Fraction of correct predictions.

        Single output: thresholded at 0.5 and compared with the target.
        Several outputs: argmax of output equals argmax of target.
        """
        if len(outputs) == 0 or len(outputs) != len(targets):
            return 0.0

        correct = 0
        for out, target in zip(outputs, targets):
            o = np.asarray(out, dtype=float).reshape(-1)
            t = np.asarray(target, dtype=float).reshape(-1)
            if o.size == 0 or t.size == 0:
                continue
            if o.size == 1:
                prediction = 1.0 if o[0] > 0.5 else 0.0
                if abs(prediction - t[0]) < 0.5:
                    correct += 1
            elif np.argmax(o) == np.argmax(t):
                correct += 1

        return correct / len(outputs)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot in the persisted document layout."""
        with self._lock:
            return {
                'name': self.name,
                'learning_rate': float(self.learning_rate),
                'loss_type': int(self._loss_type),
                'optimizer_type': int(self._optimizer_type),
                'layers': [layer.to_dict() for layer in self.layers],
            }

    def from_dict(self, document: Dict[str, Any]) -> bool:
        """
        Replace this network's contents with a persisted document.

        The document is parsed completely before anything is swapped in, so
        a malformed one leaves the network as it was. Missing top-level keys
        keep their current values.

        Returns:
            True on success, False (logged) on a malformed document.
        """
        try:
            parsed = self._parse_document(document)
        except NetworkParseError as e:
            logger.error(f"Failed to parse network document: {e}")
            return False

        with self._lock:
            for key, value in parsed.items():
                if key == 'layers':
                    self.layers = value
                else:
                    setattr(self, key, value)
        logger.debug(f"Loaded network '{self.name}' with {len(self.layers)} layers")
        return True

    def _parse_document(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(document, dict):
            raise NetworkParseError(
                f"Network document must be an object, got {type(document).__name__}"
            )

        parsed: Dict[str, Any] = {}
        try:
            if 'name' in document:
                parsed['name'] = str(document['name'])
            if 'learning_rate' in document:
                parsed['learning_rate'] = float(document['learning_rate'])
            if 'loss_type' in document:
                parsed['loss_type'] = LossType(int(document['loss_type']))
            if 'optimizer_type' in document:
                parsed['optimizer_type'] = OptimizerType(int(document['optimizer_type']))
        except (TypeError, ValueError) as e:
            raise NetworkParseError(f"Malformed network settings: {e}") from e

        if 'layers' in document:
            raw_layers = document['layers']
            if not isinstance(raw_layers, list):
                raise NetworkParseError("'layers' must be a list")
            layers = [Layer.from_dict(entry, rng=self.rng) for entry in raw_layers]
            for i in range(1, len(layers)):
                if layers[i].input_size != layers[i - 1].size:
                    raise NetworkParseError(
                        f"layer {i} expects {layers[i].input_size} inputs but "
                        f"layer {i - 1} has {layers[i - 1].size} units"
                    )
            parsed['layers'] = layers

        return parsed

    def to_json(self, indent: Optional[int] = 4) -> str:
        return dumps_document(self.to_dict(), indent=indent)

    def from_json(self, text: str) -> bool:
        """Load from a JSON string. False (logged) if it isn't valid JSON."""
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to parse network JSON: {e}")
            return False
        return self.from_dict(document)

    def save_to_file(self, path: str) -> bool:
        """Write the network as JSON. False (logged) on an I/O failure."""
        return save_network(self, path)

    def load_from_file(self, path: str) -> bool:
        """Replace this network with a saved one. False (logged) on failure."""
        try:
            document = read_document(path)
        except OSError as e:
            logger.error(f"Failed to open file for reading: {path}: {e}")
            return False
        except (ValueError, NetworkParseError) as e:
            logger.error(f"Failed to load network from {path}: {e}")
            return False

        if not self.from_dict(document):
            logger.error(f"Failed to load network from {path}")
            return False
        logger.info(f"Loaded network '{self.name}' from file: {path}")
        return True

    def __repr__(self) -> str:
        sizes = ' -> '.join(str(s) for s in self.layer_sizes)
        return f"Network({self.name!r}, [{sizes}])"
