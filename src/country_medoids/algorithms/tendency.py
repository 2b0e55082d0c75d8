"""
Clustering tendency (Hopkins statistic).
"""

from __future__ import annotations

from typing import Optional
import numpy as np

from ..exceptions import DegenerateInputError, InvalidInputError
from .dissimilarity import pairwise_distances


def hopkins_statistic(
    X: np.ndarray,
    *,
    sample_size: Optional[int] = None,
    seed: int = 0,
    metric: str = "euclidean",
) -> float:
    """
    Hopkins statistic for the clustering tendency of *X*.

    Draws ``m`` observations and ``m`` uniform points inside the per-feature
    bounding box, then returns ``H = sum(u) / (sum(u) + sum(w))`` where ``u``
    are the uniform points' distances to their nearest observation and ``w``
    the sampled observations' distances to their nearest other observation.
    H near 1 suggests clusterable structure, near 0.5 uniform randomness.

    Args:
        X: Data of shape (n_samples, n_features)
        sample_size: m, defaults to n_samples - 1
        seed: Random seed
        metric: "euclidean" or "manhattan"

    Returns:
        H in [0, 1]

    Raises:
        DegenerateInputError: If every observation is identical
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2 or X.shape[0] < 2:
        raise InvalidInputError(f"X must be 2-D with at least 2 rows, got shape {X.shape}")
    n = X.shape[0]
    m = n - 1 if sample_size is None else int(sample_size)
    if m < 1 or m >= n:
        raise InvalidInputError(f"sample_size must satisfy 1 <= m < {n}, got {m}")

    rng = np.random.default_rng(seed)
    sampled = rng.choice(n, size=m, replace=False)
    uniform = rng.uniform(X.min(axis=0), X.max(axis=0), size=(m, X.shape[1]))

    # Nearest other observation for each sampled row
    D_data = pairwise_distances(X, metric)[sampled].copy()
    D_data[np.arange(m), sampled] = np.inf
    w = D_data.min(axis=1)

    # Nearest observation for each uniform point
    D_unif = pairwise_distances(np.vstack([uniform, X]), metric)[:m, m:]
    u = D_unif.min(axis=1)

    total = u.sum() + w.sum()
    if total == 0.0:
        raise DegenerateInputError("All observations are identical; Hopkins statistic is undefined")
    return float(u.sum() / total)
