"""
Configuration management for country-medoids.

Loads analysis settings from environment variables (typically from a .env file).
Uses python-dotenv to load .env automatically.

Usage:
    from country_medoids.config import config

    sweep_cfg = config.analysis.to_sweep_config()
    data_path = config.analysis.data_path
"""

import os
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in project root (parent of src/)
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

SUPPORTED_METRICS = ("euclidean", "manhattan")


@dataclass
class AnalysisConfig:
    """Settings for one clustering report run."""
    data_path: Optional[str] = None
    metric: str = "euclidean"
    k_min: int = 1
    k_max: int = 10
    max_iter: int = 1000
    seed: int = 0
    n_jobs: int = 1

    def __post_init__(self):
        """Validate ranges and the metric name."""
        self.metric = self.metric.lower()
        if self.metric not in SUPPORTED_METRICS:
            raise ValueError(
                f"Unsupported metric '{self.metric}'. "
                f"Expected one of: {', '.join(SUPPORTED_METRICS)}"
            )
        if self.k_min < 1:
            raise ValueError(f"k_min must be >= 1, got {self.k_min}")
        if self.k_min > self.k_max:
            raise ValueError(f"k_min ({self.k_min}) must be <= k_max ({self.k_max})")
        if self.max_iter < 0:
            raise ValueError(f"max_iter must be >= 0, got {self.max_iter}")
        if self.n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}")

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Build settings from COUNTRY_MEDOIDS_* environment variables."""
        return cls(
            data_path=os.getenv("COUNTRY_MEDOIDS_DATA_PATH") or None,
            metric=os.getenv("COUNTRY_MEDOIDS_METRIC", "euclidean"),
            k_min=_env_int("COUNTRY_MEDOIDS_K_MIN", 1),
            k_max=_env_int("COUNTRY_MEDOIDS_K_MAX", 10),
            max_iter=_env_int("COUNTRY_MEDOIDS_MAX_ITER", 1000),
            seed=_env_int("COUNTRY_MEDOIDS_SEED", 0),
            n_jobs=_env_int("COUNTRY_MEDOIDS_N_JOBS", 1),
        )

    def to_sweep_config(self, **overrides):
        """Translate into a SweepConfig, optionally overriding fields."""
        from .algorithms.sweep import SweepConfig

        params = {
            "k_min": self.k_min,
            "k_max": self.k_max,
            "metric": self.metric,
            "max_iter": self.max_iter,
            "base_seed": self.seed,
            "n_jobs": self.n_jobs,
        }
        params.update(overrides)
        return SweepConfig(**params)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'") from e


class Config:
    """
    Application configuration loaded from environment variables.

    Environment variables can be set:
    1. In a .env file in the project root
    2. In the system environment
    """

    def __init__(self):
        """Load configuration from environment."""
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self._analysis: Optional[AnalysisConfig] = None

    @property
    def analysis(self) -> AnalysisConfig:
        """Analysis settings, loaded lazily so bad values only fail on use."""
        if self._analysis is None:
            self._analysis = AnalysisConfig.from_env()
        return self._analysis

    def reload(self) -> AnalysisConfig:
        """Re-read the environment (useful after editing os.environ)."""
        self._analysis = None
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        return self.analysis


# Global config instance
config = Config()
