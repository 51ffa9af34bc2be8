"""
Error Types
===========

Exceptions raised inside the engine. The public Network and Layer methods
catch these, log them and degrade to an empty or zero result, so a render
loop calling into the engine never has to guard against them.
"""


class NetworkError(Exception):
    """Base class for every error raised by nnvis."""


class DimensionMismatchError(NetworkError, ValueError):
    """An input, target or batch size disagrees with the layer it feeds."""


class ConfigurationError(NetworkError, ValueError):
    """A layer or training configuration cannot be used as given."""


class NetworkParseError(NetworkError, ValueError):
    """A persisted network document is malformed."""
