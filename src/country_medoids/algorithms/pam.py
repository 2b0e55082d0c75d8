"""
Partitioning Around Medoids (PAM).

Classic k-medoids with a greedy BUILD initialisation followed by a
best-improvement SWAP local search over a precomputed dissimilarity matrix.
Every tie resolves to the lowest observation index, so the result is a pure
function of the matrix and K.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..exceptions import DegenerateInputError, InvalidInputError, NotConverged
from ..utils.logging_config import get_logger
from .dissimilarity import DissimilarityMatrix, as_dissimilarity

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Clustering:
    """Result of one PAM run for a fixed K."""

    k: int
    medoids: Tuple[int, ...]
    assignment: np.ndarray
    labels: np.ndarray
    total_cost: float
    build_cost: float
    n_iter: int = 0
    converged: bool = True
    cancelled: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_observations(self) -> int:
        return int(self.assignment.shape[0])

    def members(self, cluster: int) -> np.ndarray:
        """Observation indices belonging to cluster number *cluster*."""
        return np.flatnonzero(self.labels == cluster)

    def cluster_sizes(self) -> List[int]:
        return np.bincount(self.labels, minlength=self.k).tolist()

    def medoid_labels(self, names: Optional[Sequence[str]] = None) -> List[str]:
        """Medoid identifiers, using *names* when given."""
        if names is None:
            return [str(m) for m in self.medoids]
        return [str(names[m]) for m in self.medoids]


def _validate_k(k: Any, n: int) -> int:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInputError(f"K must be an integer, got {k!r}")
    k = int(k)
    if k < 1 or k > n - 1:
        raise InvalidInputError(
            f"K must satisfy 1 <= K <= N - 1 = {n - 1}, got {k}"
        )
    return k


def assign_to_medoids(
    dist: DissimilarityMatrix | np.ndarray, medoids: Sequence[int]
) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    Assign every observation to its nearest medoid.

    Ties go to the medoid with the lowest observation index, and a medoid is
    always assigned to itself.

    Args:
        dist: Dissimilarity matrix
        medoids: Medoid observation indices (any order, distinct)

    Returns:
        Tuple of:
        - assignment: medoid observation index per observation
        - labels: cluster number per observation (position in sorted medoids)
        - cost: total dissimilarity of observations to their medoids
    """
    D = as_dissimilarity(dist).values
    n = D.shape[0]
    meds = np.array(sorted(int(m) for m in medoids), dtype=int)
    if len(meds) == 0 or len(np.unique(meds)) != len(meds):
        raise InvalidInputError(f"Medoids must be a non-empty set of distinct indices, got {list(medoids)}")
    if meds[0] < 0 or meds[-1] >= n:
        raise InvalidInputError(f"Medoid indices must lie in [0, {n}), got {meds.tolist()}")

    sub = D[:, meds]  # (n, k)
    labels = np.argmin(sub, axis=1)
    labels[meds] = np.arange(len(meds))
    assignment = meds[labels]
    cost = float(D[np.arange(n), assignment].sum())
    return assignment, labels.astype(int), cost


def build_medoids(dist: DissimilarityMatrix | np.ndarray, k: int) -> List[int]:
    """
    BUILD phase: greedily pick K initial medoids.

    The first medoid minimises the total dissimilarity to all observations.
    Each next medoid is the candidate whose addition gives the largest drop in
    total assignment cost, i.e. the largest sum of
    ``max(0, nearest_j - d(j, candidate))`` over the non-medoid observations.

    Returns:
        Medoid indices in selection order
    """
    D = as_dissimilarity(dist).values
    n = D.shape[0]
    k = _validate_k(k, n)

    first = int(np.argmin(D.sum(axis=1)))
    medoids = [first]
    is_medoid = np.zeros(n, dtype=bool)
    is_medoid[first] = True
    nearest = D[:, first].copy()

    for _ in range(1, k):
        gain = np.maximum(nearest[:, None] - D, 0.0)  # (j, candidate)
        gain[is_medoid, :] = 0.0
        totals = gain.sum(axis=0)
        totals[is_medoid] = -np.inf
        candidate = int(np.argmax(totals))
        medoids.append(candidate)
        is_medoid[candidate] = True
        nearest = np.minimum(nearest, D[:, candidate])
        logger.debug("BUILD picked medoid %d (gain %.6g)", candidate, totals[candidate])

    return medoids


def _swap_costs(D: np.ndarray, meds: np.ndarray) -> np.ndarray:
    """
    Total cost after every possible swap.

    Returns an (n, k) array where entry (h, p) is the total cost when medoid
    ``meds[p]`` is replaced by observation ``h``; rows of current medoids are inf.
    """
    n = D.shape[0]
    k = len(meds)
    rows = np.arange(n)
    sub = D[:, meds]  # (n, k)
    order = np.argsort(sub, axis=1, kind="stable")
    nearest_pos = order[:, 0]
    d_nearest = sub[rows, nearest_pos]
    if k > 1:
        d_second = sub[rows, order[:, 1]]
    else:
        d_second = np.full(n, np.inf)

    costs = np.empty((n, k), dtype=np.float64)
    for p in range(k):
        # Distance to the nearest remaining medoid once meds[p] is removed
        remaining = np.where(nearest_pos == p, d_second, d_nearest)
        costs[:, p] = np.minimum(remaining[:, None], D).sum(axis=0)
    costs[meds, :] = np.inf
    return costs


def pam(
    dist: DissimilarityMatrix | np.ndarray,
    k: int,
    *,
    max_iter: int = 1000,
    seed: int = 0,
    cancel_event: Any = None,
    tol: float = 1e-10,
) -> Clustering:
    """
    Run PAM (BUILD + SWAP) for a fixed number of clusters.

    Args:
        dist: Dissimilarity matrix (DissimilarityMatrix or square array)
        k: Number of clusters, 1 <= k <= N - 1
        max_iter: Maximum number of accepted swaps
        seed: Recorded in metadata only; PAM itself uses no randomness
        cancel_event: Optional object with ``is_set()`` (e.g. threading.Event),
            checked between SWAP iterations
        tol: Relative improvement a swap must achieve to be accepted

    Returns:
        Clustering. When the iteration cap is hit, ``converged`` is False and a
        NotConverged warning is issued; when cancelled, ``cancelled`` is True.
        In both cases the best clustering found so far is returned.

    Raises:
        InvalidInputError: If k is out of range or max_iter is negative
        DegenerateInputError: If all pairwise dissimilarities are zero
    """
    dm = as_dissimilarity(dist)
    D = dm.values
    n = D.shape[0]
    k = _validate_k(k, n)
    if max_iter < 0:
        raise InvalidInputError(f"max_iter must be >= 0, got {max_iter}")
    if dm.is_degenerate():
        raise DegenerateInputError(
            "All pairwise dissimilarities are zero; no meaningful clustering exists"
        )

    meds = np.array(sorted(build_medoids(dm, k)), dtype=int)
    cost = float(D[:, meds].min(axis=1).sum())
    build_cost = cost
    logger.debug("BUILD done: K=%d medoids=%s cost=%.6g", k, meds.tolist(), cost)

    n_iter = 0
    converged = False
    cancelled = False
    while True:
        if cancel_event is not None and cancel_event.is_set():
            cancelled = True
            logger.warning("PAM cancelled after %d swaps (K=%d); returning best so far", n_iter, k)
            break

        costs = _swap_costs(D, meds)
        # Row-major argmin: lowest candidate index first, then lowest medoid
        best = int(np.argmin(costs))
        h, p = divmod(best, k)
        new_cost = float(costs[h, p])
        if not new_cost < cost - tol * max(1.0, abs(cost)):
            converged = True
            break
        if n_iter >= max_iter:
            break

        logger.debug("SWAP %d: medoid %d -> %d, cost %.6g -> %.6g", n_iter + 1, meds[p], h, cost, new_cost)
        meds[p] = h
        meds.sort()
        cost = new_cost
        n_iter += 1

    if not converged and not cancelled:
        logger.warning("PAM hit max_iter=%d for K=%d without converging", max_iter, k)
        warnings.warn(
            f"PAM SWAP phase reached max_iter={max_iter} for K={k}; "
            "returning the best clustering found",
            NotConverged,
            stacklevel=2,
        )

    assignment, labels, total_cost = assign_to_medoids(dm, meds)
    assignment.setflags(write=False)
    labels.setflags(write=False)
    return Clustering(
        k=k,
        medoids=tuple(int(m) for m in meds),
        assignment=assignment,
        labels=labels,
        total_cost=total_cost,
        build_cost=build_cost,
        n_iter=n_iter,
        converged=converged,
        cancelled=cancelled,
        metadata={"seed": seed, "metric": dm.metric, "max_iter": max_iter},
    )
