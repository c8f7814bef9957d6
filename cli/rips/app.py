from __future__ import annotations

import json
import os
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional

import numpy as np
import typer
from numpy.random import default_rng
from typing_extensions import Annotated

from ripscover import config as rc_config
from ripscover.algo import RipsExpander, build_rips_skeleton
from ripscover.core import CoverTree
from ripscover.logging import get_logger

LOGGER = get_logger("cli.rips")


@dataclass
class RipsCLIOptions:
    points: int = 512
    dimension: int = 3
    epsilon: float = 0.5
    max_dimension: int = 2
    seed: int = 0
    metric: str = "euclidean"
    neighbors: str = "cover_tree"
    covering_constant: float | None = None
    diagnostics: bool | None = None
    log_level: str | None = None


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Build a cover tree and a Vietoris-Rips complex over synthetic Gaussian points.",
)

_SHAPE_PANEL = "Point cloud"
_COMPLEX_PANEL = "Complex"
_RUNTIME_PANEL = "Runtime controls"


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    points: Annotated[
        int,
        typer.Option("--points", help="Number of sampled points.", rich_help_panel=_SHAPE_PANEL),
    ] = 512,
    dimension: Annotated[
        int,
        typer.Option(
            "--dimension",
            help="Ambient dimensionality of the sampled points.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 3,
    seed: Annotated[
        int,
        typer.Option("--seed", help="Random seed for point generation.", rich_help_panel=_SHAPE_PANEL),
    ] = 0,
    epsilon: Annotated[
        float,
        typer.Option(
            "--epsilon",
            help="Edge threshold of the proximity graph.",
            rich_help_panel=_COMPLEX_PANEL,
        ),
    ] = 0.5,
    max_dimension: Annotated[
        int,
        typer.Option(
            "--max-dimension",
            help="Largest simplex dimension produced by the expansion.",
            rich_help_panel=_COMPLEX_PANEL,
        ),
    ] = 2,
    neighbors: Annotated[
        Literal["cover_tree", "brute_force"],
        typer.Option(
            "--neighbors",
            case_sensitive=False,
            help="Neighbour search used to build the 1-skeleton.",
            rich_help_panel=_COMPLEX_PANEL,
        ),
    ] = "cover_tree",
    metric: Annotated[
        Literal["euclidean", "manhattan", "chebyshev"],
        typer.Option(
            "--metric",
            case_sensitive=False,
            help="Distance metric.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = "euclidean",
    covering_constant: Annotated[
        Optional[float],
        typer.Option(
            "--covering-constant",
            help="Override RIPSCOVER_COVERING_CONSTANT.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    diagnostics: Annotated[
        Optional[bool],
        typer.Option(
            "--diagnostics/--no-diagnostics",
            help="Toggle CPU/RSS sampling in operation logs.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="Override RIPSCOVER_LOG_LEVEL.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
) -> None:
    options = RipsCLIOptions(
        points=points,
        dimension=dimension,
        epsilon=epsilon,
        max_dimension=max_dimension,
        seed=seed,
        metric=metric,
        neighbors=neighbors,
        covering_constant=covering_constant,
        diagnostics=diagnostics,
        log_level=log_level,
    )
    ctx.obj = options
    if ctx.invoked_subcommand is None:
        run_rips(options)


def _apply_runtime_overrides(options: RipsCLIOptions) -> None:
    if options.covering_constant is not None:
        os.environ["RIPSCOVER_COVERING_CONSTANT"] = str(options.covering_constant)
    if options.diagnostics is not None:
        os.environ["RIPSCOVER_ENABLE_DIAGNOSTICS"] = "1" if options.diagnostics else "0"
    if options.log_level is not None:
        os.environ["RIPSCOVER_LOG_LEVEL"] = options.log_level.upper()
    os.environ["RIPSCOVER_METRIC"] = options.metric
    rc_config.reset_runtime_config_cache()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1e3


def run_rips(options: RipsCLIOptions) -> Dict[str, Any]:
    if options.points < 0 or options.dimension <= 0:
        raise typer.BadParameter("--points must be >= 0 and --dimension must be positive.")
    _apply_runtime_overrides(options)
    runtime = rc_config.runtime_config()

    rng = default_rng(options.seed)
    samples = rng.normal(loc=0.0, scale=1.0, size=(options.points, options.dimension))
    cloud = [np.asarray(row, dtype=np.float64) for row in samples]

    start = time.perf_counter()
    tree = CoverTree(options.metric)
    tree.insert_many(cloud)
    tree_ms = _elapsed_ms(start)

    start = time.perf_counter()
    skeleton = build_rips_skeleton(
        samples,
        options.epsilon,
        metric=options.metric,
        neighbors=options.neighbors,
    )
    skeleton_ms = _elapsed_ms(start)

    expander = RipsExpander()
    start = time.perf_counter()
    expanded = expander.expand(skeleton, options.max_dimension)
    expand_ms = _elapsed_ms(start)

    start = time.perf_counter()
    weighted = expander.assign_maximum_weight(expanded)
    weights_ms = _elapsed_ms(start)

    summary: Dict[str, Any] = {
        "options": asdict(options),
        "runtime": rc_config.describe_runtime(),
        "tree": {
            "nodes": len(tree),
            "level": tree.level,
            "covering_constant": runtime.covering_constant,
            "valid": tree.is_valid(),
        },
        "complex": {
            "simplices": len(weighted),
            "counts": {str(dim): count for dim, count in weighted.counts().items()},
            "closed": weighted.is_closed(),
            "monotone": weighted.is_monotone(),
        },
        "timings_ms": {
            "cover_tree": round(tree_ms, 3),
            "skeleton": round(skeleton_ms, 3),
            "expand": round(expand_ms, 3),
            "assign_weights": round(weights_ms, 3),
        },
    }
    LOGGER.info(
        "rips build complete: points=%d simplices=%d", options.points, len(weighted)
    )
    typer.echo(json.dumps(summary, indent=2))
    return summary


def main() -> None:
    app()


__all__ = ["RipsCLIOptions", "app", "main", "run_rips"]
