from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol, Tuple

import numpy as np

from ripscover import config as rc_config

ArrayLike = Any


class PointwiseKernel(Protocol):
    def __call__(self, lhs: Any, rhs: Any) -> float:
        ...


class PairwiseKernel(Protocol):
    def __call__(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        ...


@dataclass(frozen=True)
class Metric:
    """Named distance with a scalar kernel and a dense pairwise kernel."""

    name: str
    pointwise_kernel: PointwiseKernel
    pairwise_kernel: PairwiseKernel

    def __call__(self, lhs: Any, rhs: Any) -> float:
        return self.pointwise_kernel(lhs, rhs)

    def pairwise(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        return self.pairwise_kernel(lhs, rhs)


class MetricRegistry:
    """Minimal registry for runtime-selectable metrics."""

    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}

    def register(self, metric: Metric, *, overwrite: bool = False) -> None:
        name = metric.name.lower()
        if not overwrite and name in self._metrics:
            raise ValueError(f"Metric '{metric.name}' already registered.")
        self._metrics[name] = metric

    def get(self, name: str) -> Metric:
        key = name.lower()
        if key not in self._metrics:
            raise KeyError(f"Metric '{name}' not registered.")
        return self._metrics[key]

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._metrics.keys()))


def _ensure_2d(array: ArrayLike) -> np.ndarray:
    arr = np.asarray(array, dtype=np.float64)
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr[:, None]
    return arr


def _difference(lhs: Any, rhs: Any) -> np.ndarray:
    lhs_arr = np.asarray(lhs, dtype=np.float64)
    rhs_arr = np.asarray(rhs, dtype=np.float64)
    if lhs_arr.shape != rhs_arr.shape:
        raise ValueError("Pointwise metric operands must have identical shapes.")
    return lhs_arr - rhs_arr


def _euclidean_pointwise(lhs: Any, rhs: Any) -> float:
    diff = _difference(lhs, rhs)
    return float(np.sqrt(np.sum(diff * diff)))


def _manhattan_pointwise(lhs: Any, rhs: Any) -> float:
    return float(np.sum(np.abs(_difference(lhs, rhs))))


def _chebyshev_pointwise(lhs: Any, rhs: Any) -> float:
    diff = _difference(lhs, rhs)
    if diff.size == 0:
        return 0.0
    return float(np.max(np.abs(diff)))


def _pairwise_differences(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
    lhs_arr = _ensure_2d(lhs)
    rhs_arr = _ensure_2d(rhs)
    if lhs_arr.shape[1] != rhs_arr.shape[1]:
        raise ValueError("Pairwise metric operands must share their dimensionality.")
    return lhs_arr[:, None, :] - rhs_arr[None, :, :]


def _euclidean_pairwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
    diff = _pairwise_differences(lhs, rhs)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def _manhattan_pairwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
    return np.sum(np.abs(_pairwise_differences(lhs, rhs)), axis=-1)


def _chebyshev_pairwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
    diff = _pairwise_differences(lhs, rhs)
    if diff.shape[-1] == 0:
        return np.zeros(diff.shape[:2], dtype=np.float64)
    return np.max(np.abs(diff), axis=-1)


def _load_registry() -> MetricRegistry:
    registry = MetricRegistry()
    registry.register(
        Metric(
            name="euclidean",
            pointwise_kernel=_euclidean_pointwise,
            pairwise_kernel=_euclidean_pairwise,
        )
    )
    registry.register(
        Metric(
            name="manhattan",
            pointwise_kernel=_manhattan_pointwise,
            pairwise_kernel=_manhattan_pairwise,
        )
    )
    registry.register(
        Metric(
            name="chebyshev",
            pointwise_kernel=_chebyshev_pointwise,
            pairwise_kernel=_chebyshev_pairwise,
        )
    )
    return registry


_REGISTRY = _load_registry()

DistanceFn = Callable[[Any, Any], float]


def get_metric(name: str | None = None) -> Metric:
    """Return a registered metric, defaulting to the runtime-selected metric."""

    if name is None:
        name = rc_config.runtime_config().metric
    return _REGISTRY.get(name)


def register_metric(metric: Metric, *, overwrite: bool = False) -> None:
    _REGISTRY.register(metric, overwrite=overwrite)


def resolve_metric(metric: str | DistanceFn | None) -> DistanceFn:
    """Accept a metric name, any two-argument callable, or ``None`` for the default."""

    if metric is None or isinstance(metric, str):
        return get_metric(metric)
    if not callable(metric):
        raise TypeError(f"Metric must be a name or a callable, got {type(metric).__name__}.")
    return metric


def available_metrics() -> Tuple[str, ...]:
    return _REGISTRY.names()


__all__ = [
    "DistanceFn",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
