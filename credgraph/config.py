"""
Settings

Environment configuration for the command line.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .analysis.pagerank import PagerankOptions


def default_directory() -> Path:
    return Path(tempfile.gettempdir()) / "credgraph"


def _env_float(env, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Application settings from environment."""

    # Directory holding data/<owner>/<name>/ for every repository
    directory: Path = None
    max_iterations: int = PagerankOptions.max_iterations
    convergence_threshold: float = PagerankOptions.convergence_threshold
    self_loop_weight: float = PagerankOptions.self_loop_weight

    def __post_init__(self):
        if self.directory is None:
            self.directory = default_directory()
        self.directory = Path(self.directory)

    @classmethod
    def from_env(cls, env=None) -> Settings:
        """Load settings from environment variables."""
        env = os.environ if env is None else env
        return cls(
            directory=env.get("CREDGRAPH_DIRECTORY") or default_directory(),
            max_iterations=_env_int(env, "CREDGRAPH_MAX_ITERATIONS", PagerankOptions.max_iterations),
            convergence_threshold=_env_float(
                env, "CREDGRAPH_CONVERGENCE_THRESHOLD", PagerankOptions.convergence_threshold
            ),
            self_loop_weight=_env_float(env, "CREDGRAPH_SELF_LOOP_WEIGHT", PagerankOptions.self_loop_weight),
        )

    def pagerank_options(self, **overrides) -> PagerankOptions:
        return PagerankOptions(
            self_loop_weight=self.self_loop_weight,
            convergence_threshold=self.convergence_threshold,
            max_iterations=self.max_iterations,
        ).with_overrides(**overrides)
