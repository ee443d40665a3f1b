"""Logging configuration utilities for the ccuse CLI."""

import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

import yaml

SIMPLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Union[int, str] = logging.WARNING,
    config_path: Optional[Path] = None,
    verbose: bool = False,
) -> None:
    """Setup logging configuration.

    Args:
        level: Level for the default console handler
        config_path: YAML ``dictConfig`` file; used instead of the default
            handler when it exists and parses
        verbose: Force DEBUG on the ``ccuse`` logger
    """
    level = _coerce_level(level)

    if config_path is not None and Path(config_path).exists():
        try:
            with open(config_path, encoding="utf-8") as config_file:
                config = yaml.safe_load(config_file)
            logging.config.dictConfig(config)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            _setup_default_logging(level)
            logging.getLogger(__name__).warning(
                f"Error loading logging configuration from {config_path}: {e}; "
                "using default logging configuration"
            )
    else:
        _setup_default_logging(level)

    if verbose:
        logging.getLogger("ccuse").setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    name = str(getattr(level, "value", level)).upper()
    return getattr(logging, name, logging.WARNING)


def _setup_default_logging(level: int) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Logging level
    """
    formatter = logging.Formatter(
        DETAILED_FORMAT if level <= logging.DEBUG else SIMPLE_FORMAT,
        datefmt=DATE_FORMAT,
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

