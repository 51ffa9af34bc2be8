"""
Configuration
=============

Declarative description of a network: which layers it has and how it is
trained. A Network can be built from a NetworkConfig, and the config can be
round-tripped through plain dicts (e.g. loaded from a JSON or YAML file by
the application).
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from .activations import ActivationType
from .errors import ConfigurationError
from .initializers import InitializationType
from .losses import LossType


class OptimizerType(IntEnum):
    """
    Optimizer tags (persisted as ints).

    Only SGD is applied; the others are stored and saved so documents from
    other tools round-trip.
    """

    SGD = 0
    ADAM = 1
    RMSPROP = 2
    ADAGRAD = 3


@dataclass
class LayerConfig:
    """Shape and behaviour of one layer."""

    size: int
    activation: ActivationType = ActivationType.RELU
    dropout_rate: float = 0.0
    weight_init: InitializationType = InitializationType.XAVIER
    name: str = ''
    trainable: bool = True

    def __post_init__(self) -> None:
        self.activation = ActivationType(self.activation)
        self.weight_init = InitializationType(self.weight_init)


@dataclass
class TrainingConfig:
    """
    Training hyperparameters.

    seed feeds the network's random generator (initialization, shuffling,
    dropout); None draws fresh entropy.
    """

    learning_rate: float = 0.001
    batch_size: int = 32
    epochs: int = 100
    validation_split: float = 0.2
    shuffle: bool = True
    seed: Optional[int] = None

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If a field is outside its usable range.
        """
        if self.learning_rate <= 0:
            raise ConfigurationError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")
        if self.epochs < 0:
            raise ConfigurationError(f"epochs must be non-negative, got {self.epochs}")
        if not 0.0 <= self.validation_split < 1.0:
            raise ConfigurationError(
                f"validation_split must be in [0, 1), got {self.validation_split}"
            )


@dataclass
class NetworkConfig:
    """Everything needed to build a Network."""

    layers: List[LayerConfig] = field(default_factory=list)
    optimizer: OptimizerType = OptimizerType.SGD
    loss: LossType = LossType.MSE
    training: TrainingConfig = field(default_factory=TrainingConfig)
    name: str = 'Neural Network'

    def __post_init__(self) -> None:
        self.optimizer = OptimizerType(self.optimizer)
        self.loss = LossType(self.loss)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['optimizer'] = int(self.optimizer)
        data['loss'] = int(self.loss)
        for layer in data['layers']:
            layer['activation'] = int(layer['activation'])
            layer['weight_init'] = int(layer['weight_init'])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NetworkConfig:
        """
        Build a config from a plain dict.

        Enum fields accept either their integer value or their name
        (case-insensitive), e.g. "relu" or 1.

        Raises:
            ConfigurationError: On unknown keys, enum values or bad sizes.
        """
        try:
            layers = [
                LayerConfig(
                    size=int(layer['size']),
                    activation=_enum(ActivationType, layer.get('activation', ActivationType.RELU)),
                    dropout_rate=float(layer.get('dropout_rate', 0.0)),
                    weight_init=_enum(
                        InitializationType,
                        layer.get('weight_init', InitializationType.XAVIER)
                    ),
                    name=str(layer.get('name', '')),
                    trainable=bool(layer.get('trainable', True)),
                )
                for layer in data.get('layers', [])
            ]
            training = TrainingConfig(**data.get('training', {}))
            return cls(
                layers=layers,
                optimizer=_enum(OptimizerType, data.get('optimizer', OptimizerType.SGD)),
                loss=_enum(LossType, data.get('loss', LossType.MSE)),
                training=training,
                name=str(data.get('name', 'Neural Network')),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid network configuration: {e}") from e


def _enum(enum_cls, value):
    if isinstance(value, str):
        try:
            return enum_cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown {enum_cls.__name__} '{value}'") from None
    return enum_cls(value)
