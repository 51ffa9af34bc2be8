"""nnvis: a small feed-forward network engine built to be watched while it learns."""

from .activations import ActivationType, get_activation, sigmoid, softmax
from .config import LayerConfig, NetworkConfig, OptimizerType, TrainingConfig
from .errors import ConfigurationError, DimensionMismatchError, NetworkError, NetworkParseError
from .initializers import InitializationType, get_initializer
from .layer import Layer
from .logging_config import configure_logging
from .losses import LossType, get_loss
from .network import Network, TrainingHistory
from .persistence import NetworkEncoder, load_network, save_network
from .unit import Unit

__version__ = "0.1.0"

__all__ = [
    "ActivationType",
    "get_activation",
    "sigmoid",
    "softmax",
    "LossType",
    "get_loss",
    "InitializationType",
    "get_initializer",
    "Unit",
    "Layer",
    "Network",
    "TrainingHistory",
    "LayerConfig",
    "TrainingConfig",
    "NetworkConfig",
    "OptimizerType",
    "NetworkError",
    "DimensionMismatchError",
    "ConfigurationError",
    "NetworkParseError",
    "NetworkEncoder",
    "save_network",
    "load_network",
    "configure_logging",
]
