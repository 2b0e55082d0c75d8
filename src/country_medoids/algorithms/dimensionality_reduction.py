"""
Standardization and PCA utilities.

Provides z-scoring and a PCA/SVD projection that exposes loadings, so callers
can decide which original variables to keep.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple
import numpy as np

from ..exceptions import DegenerateInputError, InvalidInputError

Array2D = np.ndarray


def standardize(X: Array2D, ddof: int = 1) -> Tuple[Array2D, np.ndarray, np.ndarray]:
    """
    Z-score every column of *X*.

    Args:
        X: Input data of shape (n_samples, n_features)
        ddof: Delta degrees of freedom for the standard deviation (1 = sample sd)

    Returns:
        Tuple of (Z, mean, scale)

    Raises:
        InvalidInputError: If X is not 2-D or has fewer than ddof + 1 rows
        DegenerateInputError: If any column has zero variance
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise InvalidInputError(f"X must be 2-D, got shape {X.shape}")
    if X.shape[0] <= ddof:
        raise InvalidInputError(f"Need more than {ddof} rows to standardize, got {X.shape[0]}")
    mean = X.mean(axis=0)
    scale = X.std(axis=0, ddof=ddof)
    constant = np.flatnonzero(scale == 0)
    if len(constant):
        raise DegenerateInputError(f"Columns {constant.tolist()} have zero variance")
    return (X - mean) / scale, mean, scale


def pca_svd_project(X: Array2D, k: int) -> Tuple[Array2D, Dict[str, Any]]:
    """
    Project data to k dimensions using PCA via SVD.

    Centers the data, computes SVD, and projects to the top k principal components.

    Args:
        X: Input data of shape (n_samples, n_features)
        k: Number of principal components to keep

    Returns:
        Tuple of:
        - Z: Projected data of shape (n_samples, k_used) where k_used = min(k, rank bound)
        - meta: Dictionary with PCA metadata:
            - pca_dim_used: Actual number of components used
            - singular_values: All singular values
            - mean: Mean vector used for centering
            - components: Loadings of shape (n_features, k_used); column j is PC j
            - explained_variance: Variance captured by each kept component
            - explained_variance_ratio: Share of total variance per kept component
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2 or X.shape[0] < 2:
        raise InvalidInputError(f"X must be 2-D with at least 2 rows, got shape {X.shape}")
    if k < 1:
        raise InvalidInputError(f"k must be >= 1, got {k}")
    mu = X.mean(axis=0, keepdims=True)
    Xc = X - mu
    U, S, Vt = np.linalg.svd(Xc, full_matrices=False)
    kk = int(min(k, U.shape[1]))

    # Fix signs so the largest-magnitude loading of each component is positive
    flip = np.sign(Vt[np.arange(Vt.shape[0]), np.argmax(np.abs(Vt), axis=1)])
    flip[flip == 0] = 1.0
    U = U * flip
    Vt = Vt * flip[:, None]

    Z = U[:, :kk] * S[:kk]
    variance = S ** 2 / (X.shape[0] - 1)
    total = variance.sum()
    ratio = variance / total if total > 0 else np.zeros_like(variance)
    meta = {
        "pca_dim_used": kk,
        "singular_values": S.tolist(),
        "mean": mu.squeeze(0).tolist(),
        "components": Vt[:kk].T,
        "explained_variance": variance[:kk].tolist(),
        "explained_variance_ratio": ratio[:kk].tolist(),
    }
    return Z, meta


def top_loadings(
    meta: Dict[str, Any],
    feature_names: Sequence[str],
    component: int = 0,
    n: int = 3,
) -> List[Tuple[str, float]]:
    """
    Features with the largest absolute loading on one principal component.

    Returns:
        List of (feature_name, loading) sorted by decreasing |loading|
    """
    loadings = np.asarray(meta["components"])
    if len(feature_names) != loadings.shape[0]:
        raise InvalidInputError(
            f"Got {len(feature_names)} feature names for {loadings.shape[0]} loadings"
        )
    if not 0 <= component < loadings.shape[1]:
        raise InvalidInputError(f"component must be in [0, {loadings.shape[1]}), got {component}")
    col = loadings[:, component]
    order = np.argsort(-np.abs(col), kind="stable")[:n]
    return [(str(feature_names[i]), float(col[i])) for i in order]
