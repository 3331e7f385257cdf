"""Interpreter configuration loaded from YAML files."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

__all__ = ["InterpreterConfig", "load_config", "config_from_mapping"]


@dataclass
class InterpreterConfig:
    """
    Settings shared by every frame of one execution.

    Attributes:
        fetch_timeout: Seconds before the ``fetch`` built-in gives up
        memoize_pure: Cache results of function literals marked pure
        max_errors: Diagnostics collected by ``check`` before it stops
        random_seed: Seed for the ``random`` built-in (None = nondeterministic)
        log_level: Level applied to the ``intrear`` logger
    """
    fetch_timeout: float = 10.0
    memoize_pure: bool = True
    max_errors: int = 20
    random_seed: Optional[int] = None
    log_level: str = "WARNING"


def config_from_mapping(data: Dict[str, Any]) -> InterpreterConfig:
    """Build a config from a mapping, rejecting unknown keys."""
    known = {f.name for f in fields(InterpreterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown configuration key(s): {', '.join(unknown)}")
    return InterpreterConfig(**data)


def load_config(path: Union[str, Path]) -> InterpreterConfig:
    """Return the interpreter configuration stored in the YAML file at ``path``."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"configuration file not found: {config_path}")
    raw_text = config_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse configuration: {exc}") from exc
    if data is None:
        return InterpreterConfig()
    if not isinstance(data, dict):
        raise ValueError("configuration root must be a mapping")
    return config_from_mapping(data)
