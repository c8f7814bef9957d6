from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER = logging.getLogger("ripscover")

_DUPLICATE_POLICIES = {"merge", "raise"}
_DEFAULT_COVERING_CONSTANT = 2.0
_DEFAULT_DUPLICATE_POLICY = "merge"
_DEFAULT_METRIC = "euclidean"


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_float(raw: str | None, *, default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def _parse_covering_constant(raw: str | None) -> float:
    value = _parse_optional_float(raw, default=_DEFAULT_COVERING_CONSTANT)
    if not value > 1.0:
        raise ValueError(f"Covering constant must be greater than 1, got {value}.")
    return value


def _parse_duplicate_policy(value: str | None) -> str:
    if value is None:
        return _DEFAULT_DUPLICATE_POLICY
    policy = value.strip().lower()
    if policy not in _DUPLICATE_POLICIES:
        raise ValueError(
            f"Unsupported duplicate policy '{policy}'. Expected one of {_DUPLICATE_POLICIES}."
        )
    return policy


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str
    enable_diagnostics: bool
    metric: str
    covering_constant: float
    duplicate_policy: str

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        log_level = os.getenv("RIPSCOVER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        enable_diagnostics = _bool_from_env(
            os.getenv("RIPSCOVER_ENABLE_DIAGNOSTICS"), default=True
        )
        metric = (
            os.getenv("RIPSCOVER_METRIC", _DEFAULT_METRIC).strip().lower() or _DEFAULT_METRIC
        )
        covering_constant = _parse_covering_constant(os.getenv("RIPSCOVER_COVERING_CONSTANT"))
        duplicate_policy = _parse_duplicate_policy(os.getenv("RIPSCOVER_DUPLICATE_POLICY"))
        return cls(
            log_level=log_level,
            enable_diagnostics=enable_diagnostics,
            metric=metric,
            covering_constant=covering_constant,
            duplicate_policy=duplicate_policy,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("ripscover")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "log_level": config.log_level,
        "enable_diagnostics": config.enable_diagnostics,
        "metric": config.metric,
        "covering_constant": config.covering_constant,
        "duplicate_policy": config.duplicate_policy,
    }


__all__ = [
    "RuntimeConfig",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
