import os

from pathlib import Path
from typing import Any, Union


def expanded_path(path: Union[str, Path]) -> Path:
    """
    Expands environment variables, user tilde, and normalizes path separators
    in a given path.

    :param path: The path to expand.
    :return: The expanded and normalized path as a Path object.
    """
    if isinstance(path, Path):
        path = str(path)

    # Expand environment variables and user (~)
    return Path(os.path.expandvars(os.path.expanduser(path)))


def flatten(data: dict, prefix: str = "") -> dict[str, Any]:
    """
    Flatten nested mappings into dotted keys.

        >>> flatten({"web": {"port": 9090}, "debug": True})
        {'web.port': 9090, 'debug': True}

    :param data: The (possibly nested) mapping.
    :param prefix: Key prefix for the current nesting level.
    :return: A flat dictionary.
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten(value, full_key))
        else:
            flat[full_key] = value
    return flat
