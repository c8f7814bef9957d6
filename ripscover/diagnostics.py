from __future__ import annotations

import logging
import resource
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

import psutil

from ripscover import config as rc_config


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


@dataclass
class OperationMetrics:
    """Mutable record attached to a single logged operation."""

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, **values: Any) -> None:
        self.metadata.update(values)


@dataclass(frozen=True)
class _ResourceSample:
    wall: float
    cpu_user: float | None
    rss: int | None


def _sample(enabled: bool) -> _ResourceSample:
    wall = time.perf_counter()
    if not enabled:
        return _ResourceSample(wall=wall, cpu_user=None, rss=None)
    usage = resource.getrusage(resource.RUSAGE_SELF)
    rss = int(psutil.Process().memory_info().rss)
    return _ResourceSample(wall=wall, cpu_user=float(usage.ru_utime), rss=rss)


@contextmanager
def log_operation(logger: logging.Logger, name: str) -> Iterator[OperationMetrics]:
    """Time an operation and emit a single ``op=<name>`` line when it completes.

    Nothing is logged when the wrapped block raises.
    """

    enabled = rc_config.runtime_config().enable_diagnostics
    metrics = OperationMetrics(name=name)
    before = _sample(enabled)
    yield metrics
    after = _sample(enabled)

    fields = [f"op={name}", f"wall_ms={(after.wall - before.wall) * 1e3:.3f}"]
    if after.cpu_user is not None and before.cpu_user is not None:
        fields.append(f"cpu_user_ms={(after.cpu_user - before.cpu_user) * 1e3:.3f}")
    else:
        fields.append("cpu_user_ms=NA")
    if after.rss is not None and before.rss is not None:
        fields.append(f"rss_delta={after.rss - before.rss}")
    else:
        fields.append("rss_delta=NA")
    for key, value in metrics.metadata.items():
        fields.append(f"{key}={_format_value(value)}")
    logger.info(" ".join(fields))


__all__ = ["OperationMetrics", "log_operation"]
