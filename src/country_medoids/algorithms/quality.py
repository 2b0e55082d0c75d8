"""
Cluster quality metrics.

Silhouette widths, within-cluster dissimilarity and the gap statistic. These
are exposed as data for comparing candidate K values; choosing K is left to
the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union
import numpy as np

from ..exceptions import DegenerateInputError, InvalidInputError
from ..utils.logging_config import get_logger
from .dissimilarity import DissimilarityMatrix, as_dissimilarity, build_dissimilarity_matrix
from .pam import Clustering, pam

logger = get_logger(__name__)

LabelsIn = Union[Clustering, np.ndarray, Sequence[int]]


@dataclass(frozen=True, eq=False)
class SilhouetteReport:
    """Per-observation silhouettes with overall and per-cluster averages."""

    values: np.ndarray
    average: float
    per_cluster: Dict[int, float]
    cluster_sizes: Dict[int, int]

    def weakest_cluster(self) -> int:
        """Cluster with the lowest mean silhouette (lowest id on ties)."""
        return min(self.per_cluster, key=lambda c: (self.per_cluster[c], c))

    def negative_members(self) -> np.ndarray:
        """Observations whose silhouette is below zero (likely misassigned)."""
        return np.flatnonzero(self.values < 0)


@dataclass
class GapResult:
    """Gap statistic across a range of K values."""

    k_values: List[int]
    log_w: np.ndarray
    expected_log_w: np.ndarray
    gap: np.ndarray
    sk: np.ndarray
    n_references: int


def _labels_of(clustering: LabelsIn) -> np.ndarray:
    if isinstance(clustering, Clustering):
        return clustering.labels
    labels = np.asarray(clustering)
    if labels.ndim != 1:
        raise InvalidInputError(f"labels must be 1-D, got shape {labels.shape}")
    # Re-code arbitrary label values to 0..C-1
    _, coded = np.unique(labels, return_inverse=True)
    return coded.astype(int)


def silhouette_samples(clustering: LabelsIn, dist: DissimilarityMatrix | np.ndarray) -> np.ndarray:
    """
    Silhouette width of every observation.

    ``a(i)`` is the mean dissimilarity to the other members of its own
    cluster, ``b(i)`` the smallest mean dissimilarity to any other cluster,
    and ``s(i) = (b - a) / max(a, b)``. Members of singleton clusters get 0,
    as does every observation when there is only one cluster.

    Args:
        clustering: Clustering or a label array aligned with the matrix
        dist: Dissimilarity matrix

    Returns:
        Array of shape (n_samples,) with values in [-1, 1]
    """
    D = as_dissimilarity(dist).values
    labels = _labels_of(clustering)
    n = D.shape[0]
    if labels.shape[0] != n:
        raise InvalidInputError(f"Got {labels.shape[0]} labels for {n} observations")

    n_clusters = int(labels.max()) + 1
    sil = np.zeros(n, dtype=np.float64)
    if n_clusters == 1:
        return sil

    onehot = np.zeros((n, n_clusters), dtype=np.float64)
    onehot[np.arange(n), labels] = 1.0
    counts = onehot.sum(axis=0)  # (C,)
    sums = D @ onehot  # (n, C): summed dissimilarity of i to each cluster

    rows = np.arange(n)
    own_count = counts[labels]
    with np.errstate(divide="ignore", invalid="ignore"):
        a = np.where(own_count > 1, sums[rows, labels] / (own_count - 1), 0.0)
        means = np.where(counts > 0, sums / counts, np.inf)
    means[rows, labels] = np.inf
    b = means.min(axis=1)

    denom = np.maximum(a, b)
    valid = (own_count > 1) & (denom > 0) & np.isfinite(b)
    sil[valid] = (b[valid] - a[valid]) / denom[valid]
    return np.clip(sil, -1.0, 1.0)


def silhouette_report(clustering: LabelsIn, dist: DissimilarityMatrix | np.ndarray) -> SilhouetteReport:
    """Silhouette values plus overall and per-cluster averages."""
    labels = _labels_of(clustering)
    values = silhouette_samples(labels, dist)
    values.setflags(write=False)
    per_cluster: Dict[int, float] = {}
    sizes: Dict[int, int] = {}
    for c in np.unique(labels):
        mask = labels == c
        per_cluster[int(c)] = float(values[mask].mean())
        sizes[int(c)] = int(mask.sum())
    return SilhouetteReport(
        values=values,
        average=float(values.mean()),
        per_cluster=per_cluster,
        cluster_sizes=sizes,
    )


def silhouette_score_precomputed(labels: LabelsIn, dist: DissimilarityMatrix | np.ndarray) -> float:
    """
    Mean silhouette score using a precomputed distance matrix.

    Higher is better (range [-1, 1]).
    """
    return float(np.mean(silhouette_samples(labels, dist)))


def within_cluster_dissimilarity(clustering: Clustering, dist: DissimilarityMatrix | np.ndarray) -> float:
    """Sum of every observation's dissimilarity to its assigned medoid."""
    D = as_dissimilarity(dist).values
    if clustering.n_observations != D.shape[0]:
        raise InvalidInputError(
            f"Clustering has {clustering.n_observations} observations, matrix has {D.shape[0]}"
        )
    return float(D[np.arange(D.shape[0]), clustering.assignment].sum())


def pooled_within_dispersion(clustering: LabelsIn, dist: DissimilarityMatrix | np.ndarray) -> float:
    """
    Pooled within-cluster dispersion ``W_k = sum_r D_r / (2 n_r)``.

    ``D_r`` is the sum of all ordered pairwise dissimilarities inside cluster
    r and ``n_r`` its size. This is the quantity the gap statistic compares
    against reference data.
    """
    D = as_dissimilarity(dist).values
    labels = _labels_of(clustering)
    total = 0.0
    for c in np.unique(labels):
        idx = np.flatnonzero(labels == c)
        total += D[np.ix_(idx, idx)].sum() / (2.0 * len(idx))
    return float(total)


def _log_dispersion(dm: DissimilarityMatrix, k: int, max_iter: int) -> float:
    clustering = pam(dm, k, max_iter=max_iter)
    w = pooled_within_dispersion(clustering, dm)
    if w <= 0.0:
        # Duplicate rows can leave every cluster without spread
        logger.warning("Within-cluster dispersion is zero for K=%d; gap is undefined", k)
        return float("-inf")
    return float(np.log(w))


def gap_statistic(
    X: np.ndarray,
    k_values: Sequence[int],
    *,
    metric: str = "euclidean",
    n_references: int = 50,
    seed: int = 0,
    max_iter: int = 1000,
) -> GapResult:
    """
    Gap statistic for PAM clusterings.

    For each K, compares ``log(W_k)`` on the data with its average over
    ``n_references`` reference data sets drawn uniformly inside the
    per-feature bounding box of *X*.

    Args:
        X: Standardized data of shape (n_samples, n_features)
        k_values: Candidate cluster counts, each in [1, n_samples - 1]
        metric: Dissimilarity metric for both data and references
        n_references: Number of uniform reference data sets (B)
        seed: Random seed for the reference draws
        max_iter: SWAP iteration cap passed to PAM

    Returns:
        GapResult with ``gap = E*[log W_k] - log W_k`` and
        ``sk = sd_k * sqrt(1 + 1/B)``
        A K whose clustering has zero dispersion (duplicate rows) gets
        ``log_w = -inf`` and a NaN gap instead of aborting the whole range.
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise InvalidInputError(f"X must be 2-D, got shape {X.shape}")
    if n_references < 2:
        raise InvalidInputError(f"n_references must be >= 2, got {n_references}")
    k_values = [int(k) for k in k_values]
    if not k_values:
        raise InvalidInputError("k_values must not be empty")

    rng = np.random.default_rng(seed)
    lo = X.min(axis=0)
    hi = X.max(axis=0)

    dm = build_dissimilarity_matrix(X, metric)
    log_w = np.array([_log_dispersion(dm, k, max_iter) for k in k_values])
    ref_log_w = np.empty((n_references, len(k_values)), dtype=np.float64)
    for b in range(n_references):
        ref = rng.uniform(lo, hi, size=X.shape)
        ref_dm = build_dissimilarity_matrix(ref, metric)
        for j, k in enumerate(k_values):
            ref_log_w[b, j] = _log_dispersion(ref_dm, k, max_iter)
        logger.debug("Gap reference %d/%d done", b + 1, n_references)

    with np.errstate(invalid="ignore"):
        expected = ref_log_w.mean(axis=0)
        sd = ref_log_w.std(axis=0, ddof=1)
        gap = expected - log_w
    # K values with zero dispersion carry NaN gaps
    undefined = ~(np.isfinite(log_w) & np.isfinite(expected))
    gap[undefined] = np.nan
    return GapResult(
        k_values=k_values,
        log_w=log_w,
        expected_log_w=expected,
        gap=gap,
        sk=sd * np.sqrt(1.0 + 1.0 / n_references),
        n_references=n_references,
    )


def gap_first_se_max(result: GapResult) -> int:
    """
    Smallest K with ``Gap(K) >= Gap(K+1) - s(K+1)``.

    This is one common way to read the gap curve; callers are free to apply
    another rule. K values with a NaN gap are skipped. Falls back to the
    last defined K when no K qualifies.
    """
    gap, sk, ks = result.gap, result.sk, result.k_values
    defined = _defined_gaps(result)
    for j, nxt in zip(defined[:-1], defined[1:]):
        if gap[j] >= gap[nxt] - sk[nxt]:
            return ks[j]
    return ks[defined[-1]]


def gap_global_max(result: GapResult) -> int:
    """K with the largest defined gap (lowest K on ties)."""
    defined = _defined_gaps(result)
    best = defined[int(np.argmax(result.gap[defined]))]
    return result.k_values[int(best)]


def _defined_gaps(result: GapResult) -> np.ndarray:
    defined = np.flatnonzero(np.isfinite(result.gap) & np.isfinite(result.sk))
    if defined.size == 0:
        raise DegenerateInputError("No K has a defined gap value")
    return defined


def medoid_profiles(
    clustering: Clustering,
    X: np.ndarray,
    feature_names: Optional[Sequence[str]] = None,
) -> Dict[int, Dict[str, float]]:
    """Feature values of each cluster's medoid, keyed by cluster number."""
    X = np.asarray(X, dtype=np.float64)
    if feature_names is None:
        feature_names = [f"x{j}" for j in range(X.shape[1])]
    return {
        c: {name: float(X[m, j]) for j, name in enumerate(feature_names)}
        for c, m in enumerate(clustering.medoids)
    }
