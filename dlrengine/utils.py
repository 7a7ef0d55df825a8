"""
Logging and configuration helpers shared across dlrengine.
"""

import argparse
import logging
import os
from datetime import datetime
from typing import Optional

import yaml


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[str] = None,
    enable_console: bool = True,
    enabled: bool = False,
) -> logging.Logger:
    """
    Setup logging configuration for applications using this library.

    This function configures only the dlrengine logger, not the root logger,
    to avoid interfering with other libraries' logging.
    """

    engine_logger = logging.getLogger("dlrengine")

    if not enabled:
        engine_logger.disabled = True
        return engine_logger

    engine_logger.disabled = False
    engine_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers to avoid duplicates
    engine_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        engine_logger.addHandler(console_handler)

    if log_to_file:
        if log_file_path is None:
            os.makedirs("logs", exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file_path = f"logs/dlrengine_{timestamp}.log"

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(formatter)
        engine_logger.addHandler(file_handler)

    # Prevent propagation to root logger to avoid duplicate messages
    engine_logger.propagate = False

    engine_logger.info(f"dlrengine logging initialized - Level: {log_level}")
    if log_to_file:
        engine_logger.info(f"Log file: {log_file_path}")

    return engine_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a specific module within the library.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Logger instance for the specified module

    Example:
        >>> from dlrengine.utils import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Running block...")  # Only shows if user enabled DEBUG
    """
    if name is None:
        name = __name__

    return logging.getLogger(name)


def disable_logging(logger_name: Optional[str] = None) -> None:
    """
    Disable logging for this library or a specific logger.

    Args:
        logger_name: Specific logger to disable. If None, disables the entire
                    dlrengine package logging.
    """
    if logger_name is None:
        logger_name = "dlrengine"

    logging.getLogger(logger_name).disabled = True


def enable_logging(logger_name: Optional[str] = None, level: str = "INFO") -> None:
    """
    Enable logging for this library or a specific logger.

    Args:
        logger_name: Specific logger to enable. If None, enables the entire
                    dlrengine package logging.
        level: Logging level to set

    Example:
        >>> from dlrengine.utils import enable_logging
        >>> enable_logging(level="DEBUG")
    """
    if logger_name is None:
        logger_name = "dlrengine"

    logger_obj = logging.getLogger(logger_name)
    logger_obj.disabled = False
    logger_obj.setLevel(getattr(logging, level.upper()))


def merge_config(args: argparse.Namespace, config: dict) -> dict:
    """
    Merge command-line arguments with YAML config.
    Args override config values if they are not None.
    """

    merged = dict(config or {})
    for key, value in vars(args).items():
        if value is not None and key != "config":
            merged[key] = value
    return merged


def easydict_to_dict(d):
    from easydict import EasyDict

    if isinstance(d, EasyDict):
        d = {k: easydict_to_dict(v) for k, v in d.items()}
    elif isinstance(d, list):
        d = [easydict_to_dict(v) for v in d]
    return d


def save_config_to_yaml(config: dict, output_path: str):
    """Save dictionary as YAML file."""
    config = easydict_to_dict(config)

    with open(output_path, "w") as f:
        yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
