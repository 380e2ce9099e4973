import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")


def load_file(path: Path) -> dict:
    """
    Load configuration from a YAML or JSON file.

    :param path: Path to the configuration file.
    :return: Dictionary with configuration data.
    :raises FileNotFoundError: If the file does not exist.
    :raises IsADirectoryError: If the path is a directory.
    :raises RuntimeError: If the file type is not supported or the document is not a mapping.
    """
    logger.debug("Loading configuration file: %s", path)
    assert path is not None

    if not path.exists():
        logger.error("Config file not found: %s", path.absolute())
        raise FileNotFoundError(f"Config file not found: {path.absolute()}")

    if path.is_dir():
        logger.error("Path is a directory, not a file: %s", path.absolute())
        raise IsADirectoryError(path.absolute())

    if path.suffix not in SUPPORTED_SUFFIXES:
        logger.error("Invalid file type: %s", path.name)
        raise RuntimeError("Invalid file type given: %s" % path.name)

    with open(path, "r", encoding="utf-8") as fp:
        if fp.read(1) == "":
            logger.debug("Config file is empty: %s", path)
            return {}

        fp.seek(0)

        if path.suffix == ".json":
            logger.debug("Parsing JSON file: %s", path.name)
            data = json.load(fp)
        else:
            logger.debug("Parsing YAML file: %s", path.name)
            data = yaml.safe_load(fp)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError("Configuration file must contain a mapping: %s" % path.name)
    return data
