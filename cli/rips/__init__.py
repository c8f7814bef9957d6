from __future__ import annotations

from .app import RipsCLIOptions, main, run_rips

__all__ = ["RipsCLIOptions", "run_rips", "main"]
