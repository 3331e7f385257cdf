"""Logging helpers for the evaluator."""

import logging
import logging.config
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Optional, Union

import yaml

_CONFIG_LOCK = RLock()
_CONFIGURED = False

_DEFAULT_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "standard",
        }
    },
    "loggers": {
        "intrear": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }
    },
}

_ALLOWED_KEYS = ("version", "disable_existing_loggers", "formatters", "handlers", "root", "loggers")


def _load_config(path: Optional[Union[str, Path]]) -> Dict[str, Any]:
    if path is None or not Path(path).exists():
        return dict(_DEFAULT_CONFIG)
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logging.getLogger("intrear").warning("failed to parse logging config %s: %s", path, exc)
        return dict(_DEFAULT_CONFIG)
    if not isinstance(data, dict):
        return dict(_DEFAULT_CONFIG)
    merged = dict(_DEFAULT_CONFIG)
    merged.update({k: v for k, v in data.items() if k in _ALLOWED_KEYS})
    return merged


def configure(path: Optional[Union[str, Path]] = None, level: Optional[str] = None,
              force: bool = False) -> None:
    """
    Configure the ``intrear`` logger hierarchy once.

    ``path`` points at an optional YAML ``dictConfig`` document; ``level``
    overrides the level of the ``intrear`` logger afterwards.
    """
    global _CONFIGURED
    with _CONFIG_LOCK:
        if not _CONFIGURED or force:
            logging.config.dictConfig(_load_config(path))
            _CONFIGURED = True
        if level:
            logging.getLogger("intrear").setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``intrear`` namespace."""
    if not isinstance(name, str) or not name:
        raise ValueError("logger name must be a non-empty string")
    if name != "intrear" and not name.startswith("intrear."):
        name = f"intrear.{name}"
    return logging.getLogger(name)


__all__ = ["configure", "get_logger"]
