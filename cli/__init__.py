"""Command-line tooling built on top of ripscover."""
