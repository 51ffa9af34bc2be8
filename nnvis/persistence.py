"""
Persistence
===========

JSON documents for saved networks.

Document layout (enums are stored as their integer values):

    {
      "name": str,
      "learning_rate": float,
      "loss_type": int,
      "optimizer_type": int,
      "layers": [
        {"name", "size", "activation_type", "dropout_rate", "trainable",
         "neurons": [{"id", "activation", "bias", "weighted_input",
                      "gradient", "delta", "trainable", "name",
                      "input_weights": [float, ...]}, ...]},
        ...
      ]
    }

Files are written to a temporary sibling and renamed into place, so a reader
never sees a half-written document.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np

from .errors import NetworkParseError

if TYPE_CHECKING:
    from .network import Network

logger = logging.getLogger(__name__)


class NetworkEncoder(json.JSONEncoder):
    """JSON encoder that also accepts numpy arrays and scalars."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


def dumps_document(document: Dict[str, Any], indent: Optional[int] = 4) -> str:
    return json.dumps(document, cls=NetworkEncoder, indent=indent)


def _ensure_directory(path: str) -> None:
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_document(document: Dict[str, Any], path: str) -> None:
    """
    Serialize a document to path atomically.

    Raises:
        OSError: If the file can't be written.
        TypeError, ValueError: If the document isn't serializable.
    """
    text = dumps_document(document)
    _ensure_directory(path)

    fd, tmp_path = tempfile.mkstemp(
        dir=os.path.dirname(path) or '.', prefix='.nnvis-', suffix='.tmp'
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        # mkstemp creates 0600; saved files get the usual umask-derived mode
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def read_document(path: str) -> Dict[str, Any]:
    """
    Read a document from path.

    Raises:
        OSError: If the file can't be opened.
        json.JSONDecodeError: If it isn't valid JSON.
        NetworkParseError: If the top level isn't an object.
    """
    with open(path, 'r', encoding='utf-8') as f:
        document = json.load(f)
    if not isinstance(document, dict):
        raise NetworkParseError(
            f"Network document must be an object, got {type(document).__name__}"
        )
    return document


def save_network(network: Network, path: str) -> bool:
    """
    Save a network to a JSON file.

    Args:
        network: Network to save.
        path: Destination file; missing directories are created.

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        write_document(network.to_dict(), path)
    except OSError as e:
        logger.error(f"Failed to write network '{network.name}' to {path}: {e}")
        return False
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize network '{network.name}': {e}")
        return False

    logger.info(f"Saved network '{network.name}' to file: {path}")
    return True


def load_network(path: str) -> Optional[Network]:
    """
    Load a network from a JSON file.

    Returns:
        The network, or None if the file is missing or malformed.
    """
    from .network import Network

    network = Network()
    if not network.load_from_file(path):
        return None
    return network
