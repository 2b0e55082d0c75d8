"""
Dissimilarity matrix construction.

Builds the symmetric pairwise distance table that the PAM solver and the
quality evaluator read from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple
import numpy as np

from ..exceptions import InvalidInputError

Array2D = np.ndarray

METRICS = ("euclidean", "manhattan")


@dataclass(frozen=True)
class DissimilarityMatrix:
    """Symmetric N x N matrix of non-negative dissimilarities with a zero diagonal."""

    values: np.ndarray
    metric: str
    labels: Optional[Tuple[str, ...]] = None

    @property
    def n_observations(self) -> int:
        return int(self.values.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def __getitem__(self, key):
        return self.values[key]

    def __len__(self) -> int:
        return self.n_observations

    def is_degenerate(self) -> bool:
        """True when every pairwise dissimilarity is zero."""
        return not np.any(self.values > 0.0)


def as_feature_array(features: Any) -> Tuple[Array2D, Optional[Tuple[str, ...]]]:
    """Coerce observations / nested sequences / arrays to a float (N, D) array."""
    names = None
    if isinstance(features, np.ndarray):
        rows = features
    else:
        rows = list(features)
        if not rows:
            raise InvalidInputError("At least one observation is required")
        if all(hasattr(r, "features") for r in rows):
            names = tuple(str(getattr(r, "name", i)) for i, r in enumerate(rows))
            rows = [r.features for r in rows]
        lengths = {len(r) if np.ndim(r) == 1 else -1 for r in rows}
        if len(lengths) > 1 or -1 in lengths:
            raise InvalidInputError(
                "All feature vectors must be 1-D and share the same dimensionality; "
                f"got lengths {sorted(lengths)}"
            )

    try:
        X = np.asarray(rows, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Features must be numeric: {e}") from e

    if X.ndim != 2:
        raise InvalidInputError(f"Features must form a 2-D (n, d) array; got shape {X.shape}")
    if X.shape[0] == 0:
        raise InvalidInputError("At least one observation is required")
    if X.shape[1] == 0:
        raise InvalidInputError("Observations must have at least one feature")
    if not np.all(np.isfinite(X)):
        raise InvalidInputError("Features contain NaN or infinite values")
    return X, names


def pairwise_distances(X: Array2D, metric: str = "euclidean") -> Array2D:
    """
    Compute the raw (N, N) distance array for *X* under *metric*.

    Args:
        X: Data of shape (n_samples, n_features)
        metric: "euclidean" or "manhattan"

    Returns:
        Symmetric array with an exact zero diagonal
    """
    if metric not in METRICS:
        raise InvalidInputError(
            f"metric must be one of {', '.join(METRICS)}, got '{metric}'"
        )
    diffs = X[:, None, :] - X[None, :, :]  # (n, n, d)
    if metric == "euclidean":
        D = np.sqrt(np.einsum("ijk,ijk->ij", diffs, diffs))
    else:
        D = np.abs(diffs).sum(axis=2)
    # Exact symmetry and zero diagonal regardless of rounding
    D = 0.5 * (D + D.T)
    np.fill_diagonal(D, 0.0)
    return D


def build_dissimilarity_matrix(
    features: Any,
    metric: str = "euclidean",
    *,
    n_clusters: Optional[int] = None,
    labels: Optional[Sequence[str]] = None,
) -> DissimilarityMatrix:
    """
    Build the pairwise dissimilarity matrix for a set of observations.

    Args:
        features: (n, d) array-like of standardized features, or a sequence of
            objects exposing ``features`` (and optionally ``name``)
        metric: "euclidean" (root of summed squared differences) or
            "manhattan" (summed absolute differences)
        n_clusters: Optional target K; when given, at least K + 1
            observations are required
        labels: Optional observation identifiers (e.g. country names)

    Returns:
        DissimilarityMatrix with a read-only ``values`` array

    Raises:
        InvalidInputError: On ragged or non-numeric features, unknown metric,
            or too few observations for ``n_clusters``
    """
    X, names = as_feature_array(features)
    n = X.shape[0]

    if n_clusters is not None and n < n_clusters + 1:
        raise InvalidInputError(
            f"Need at least K + 1 = {n_clusters + 1} observations to form "
            f"{n_clusters} clusters, got {n}"
        )

    if labels is not None:
        labels = tuple(str(label) for label in labels)
        if len(labels) != n:
            raise InvalidInputError(
                f"Got {len(labels)} labels for {n} observations"
            )
    else:
        labels = names

    D = pairwise_distances(X, metric)
    D.setflags(write=False)
    return DissimilarityMatrix(values=D, metric=metric, labels=labels)


def from_precomputed(
    values: Any,
    metric: str = "precomputed",
    labels: Optional[Sequence[str]] = None,
    atol: float = 1e-9,
) -> DissimilarityMatrix:
    """
    Wrap an existing square matrix after checking the dissimilarity invariants.

    Raises:
        InvalidInputError: If the matrix is not square, not symmetric, has a
            non-zero diagonal, or contains negative / non-finite entries
    """
    D = np.array(values, dtype=np.float64)
    if D.ndim != 2 or D.shape[0] != D.shape[1] or D.shape[0] == 0:
        raise InvalidInputError(f"Dissimilarity matrix must be square and non-empty; got shape {D.shape}")
    if not np.all(np.isfinite(D)):
        raise InvalidInputError("Dissimilarity matrix contains NaN or infinite values")
    if np.any(D < 0):
        raise InvalidInputError("Dissimilarities must be non-negative")
    if not np.allclose(D, D.T, atol=atol):
        raise InvalidInputError("Dissimilarity matrix must be symmetric")
    if not np.allclose(np.diag(D), 0.0, atol=atol):
        raise InvalidInputError("Dissimilarity matrix must have a zero diagonal")

    D = 0.5 * (D + D.T)
    np.fill_diagonal(D, 0.0)
    D.setflags(write=False)
    if labels is not None:
        labels = tuple(str(label) for label in labels)
        if len(labels) != D.shape[0]:
            raise InvalidInputError(f"Got {len(labels)} labels for {D.shape[0]} observations")
    return DissimilarityMatrix(values=D, metric=metric, labels=labels)


def as_dissimilarity(dist: Any) -> DissimilarityMatrix:
    """Accept either a DissimilarityMatrix or a raw square array."""
    if isinstance(dist, DissimilarityMatrix):
        return dist
    return from_precomputed(dist)
