"""
Sweep orchestration for PAM clustering across multiple K values.

Each K is solved independently against one read-only dissimilarity matrix,
either serially or on a thread pool.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from ..exceptions import InvalidInputError
from ..utils.logging_config import get_logger
from .dissimilarity import DissimilarityMatrix, as_feature_array, build_dissimilarity_matrix
from .pam import Clustering, pam
from .quality import GapResult, SilhouetteReport, gap_statistic, silhouette_report

logger = get_logger(__name__)


@dataclass
class SweepConfig:
    """Configuration for clustering sweep."""

    k_min: int = 1
    k_max: int = 10
    metric: str = "euclidean"  # "euclidean" or "manhattan"
    max_iter: int = 1000
    base_seed: int = 0
    n_jobs: int = 1  # >1 solves K values on a thread pool
    compute_gap: bool = False
    n_references: int = 50


@dataclass
class KResult:
    """Clustering and quality metrics for one K."""

    k: int
    clustering: Clustering
    silhouette: SilhouetteReport

    @property
    def total_cost(self) -> float:
        return self.clustering.total_cost


@dataclass
class SweepResult:
    """Results from a clustering sweep."""

    dist: DissimilarityMatrix
    by_k: Dict[int, KResult] = field(default_factory=dict)
    gap: Optional[GapResult] = None

    def cost_curve(self) -> List[Tuple[int, float]]:
        """(K, total within-cluster dissimilarity) pairs for elbow reading."""
        return [(k, self.by_k[k].total_cost) for k in sorted(self.by_k)]

    def silhouette_curve(self) -> List[Tuple[int, float]]:
        """(K, average silhouette) pairs."""
        return [(k, self.by_k[k].silhouette.average) for k in sorted(self.by_k)]

    def not_converged(self) -> List[int]:
        return [k for k in sorted(self.by_k) if not self.by_k[k].clustering.converged]


def _solve_k(dist: DissimilarityMatrix, K: int, cfg: SweepConfig, cancel_event: Any) -> KResult:
    clustering = pam(
        dist,
        K,
        max_iter=cfg.max_iter,
        seed=cfg.base_seed,
        cancel_event=cancel_event,
    )
    report = silhouette_report(clustering, dist)
    logger.info(
        "K=%d: cost=%.4f avg_silhouette=%.4f swaps=%d",
        K,
        clustering.total_cost,
        report.average,
        clustering.n_iter,
    )
    return KResult(k=K, clustering=clustering, silhouette=report)


def run_sweep(
    features: Any,
    cfg: SweepConfig,
    *,
    labels: Optional[Sequence[str]] = None,
    cancel_event: Any = None,
) -> SweepResult:
    """
    Run PAM for every K in [k_min..k_max] and collect quality metrics.

    Pipeline:
    1. Build the dissimilarity matrix once for cfg.metric
    2. For each K (clipped to N - 1): run PAM, compute silhouettes
    3. Optionally compute the gap statistic over the same K range

    Args:
        features: (n, d) standardized features or a sequence of Observations
        cfg: SweepConfig with parameters
        labels: Optional observation names
        cancel_event: Optional object with ``is_set()`` shared by all PAM runs

    Returns:
        SweepResult with the matrix, results keyed by K, and optional gap data

    Raises:
        InvalidInputError: If k_min > k_max, k_min < 1, max_iter < 0, or there are
            too few observations for k_min
    """
    if cfg.k_min < 1:
        raise InvalidInputError(f"k_min must be >= 1, got {cfg.k_min}")
    if cfg.k_min > cfg.k_max:
        raise InvalidInputError(f"k_min ({cfg.k_min}) must be <= k_max ({cfg.k_max})")
    if cfg.n_jobs < 1:
        raise InvalidInputError(f"n_jobs must be >= 1, got {cfg.n_jobs}")
    if cfg.max_iter < 0:
        raise InvalidInputError(f"max_iter must be >= 0, got {cfg.max_iter}")

    X, names = as_feature_array(features)
    dist = build_dissimilarity_matrix(
        X, cfg.metric, n_clusters=cfg.k_min, labels=labels if labels is not None else names
    )
    n_samples = dist.n_observations
    k_values = list(range(cfg.k_min, min(cfg.k_max, n_samples - 1) + 1))
    if len(k_values) < cfg.k_max - cfg.k_min + 1:
        logger.info("k_max clipped to %d (N=%d)", k_values[-1], n_samples)

    if cfg.n_jobs > 1 and len(k_values) > 1:
        with ThreadPoolExecutor(max_workers=cfg.n_jobs) as executor:
            futures = {
                K: executor.submit(_solve_k, dist, K, cfg, cancel_event) for K in k_values
            }
            by_k = {K: futures[K].result() for K in k_values}
    else:
        by_k = {K: _solve_k(dist, K, cfg, cancel_event) for K in k_values}

    gap = None
    if cfg.compute_gap:
        gap = gap_statistic(
            X,
            k_values,
            metric=cfg.metric,
            n_references=cfg.n_references,
            seed=cfg.base_seed,
            max_iter=cfg.max_iter,
        )

    return SweepResult(dist=dist, by_k=by_k, gap=gap)
