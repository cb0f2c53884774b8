"""
Runtime configuration for tensorview.

Settings are read once from the environment and may be changed at runtime
with set_config(). Nothing here is required for normal use: every function
that consumes a setting also accepts an explicit argument.
"""

import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import Optional, TextIO

import numpy as np

__all__ = ["TensorConfig", "get_config", "set_config", "default_rng", "setup_logging"]

_LOGGER_NAME = "tensorview"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {value!r}")


@dataclass(frozen=True)
class TensorConfig:
    """
    Package-wide settings.

    Attributes:
        debug_checks: Verify view offsets against the parent buffer before
            every read or write through a view
        seed: Seed for the default random generator (None for entropy)
        sparse_density: Default fill probability of CSRMatrix.random()
    """
    debug_checks: bool = True
    seed: Optional[int] = None
    sparse_density: float = 0.2

    def __post_init__(self):
        if not 0.0 <= self.sparse_density <= 1.0:
            raise ValueError(f"sparse_density must lie in [0, 1], got {self.sparse_density}")

    @classmethod
    def from_env(cls) -> 'TensorConfig':
        """Build a configuration from TENSORVIEW_* environment variables."""
        return cls(
            debug_checks=_env_bool("TENSORVIEW_DEBUG", True),
            seed=_env_int("TENSORVIEW_SEED"),
            sparse_density=_env_float("TENSORVIEW_SPARSE_DENSITY", 0.2),
        )


_config = TensorConfig.from_env()


def get_config() -> TensorConfig:
    """Return the active configuration."""
    return _config


def set_config(**changes) -> TensorConfig:
    """
    Replace fields of the active configuration.

    Args:
        **changes: Field names of TensorConfig with their new values

    Returns:
        The previous configuration, so callers can restore it
    """
    global _config
    previous = _config
    _config = replace(_config, **changes)
    return previous


def default_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Random generator seeded from the argument or, failing that, the config."""
    return np.random.default_rng(seed if seed is not None else _config.seed)


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Only the "tensorview" logger is touched; the root logger is left alone.

    Args:
        level: Logging level for the package logger
        stream: Output stream (defaults to stderr)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_tensorview_handler", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                                           datefmt="%Y-%m-%d %H:%M:%S"))
    handler._tensorview_handler = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
