"""
Algorithm Core Library - dissimilarities, PAM k-medoids and cluster quality.

This module provides the clustering core with minimal dependencies,
separate from the report scripts. Designed for reuse and testing.
"""

from .dissimilarity import (
    DissimilarityMatrix,
    build_dissimilarity_matrix,
    from_precomputed,
    pairwise_distances,
)
from .pam import Clustering, assign_to_medoids, build_medoids, pam
from .quality import (
    GapResult,
    SilhouetteReport,
    gap_first_se_max,
    gap_global_max,
    gap_statistic,
    medoid_profiles,
    pooled_within_dispersion,
    silhouette_report,
    silhouette_samples,
    silhouette_score_precomputed,
    within_cluster_dissimilarity,
)
from .tendency import hopkins_statistic
from .dimensionality_reduction import pca_svd_project, standardize, top_loadings
from .sweep import KResult, SweepConfig, SweepResult, run_sweep

__all__ = [
    # Dissimilarity
    "DissimilarityMatrix",
    "build_dissimilarity_matrix",
    "from_precomputed",
    "pairwise_distances",
    # PAM
    "Clustering",
    "assign_to_medoids",
    "build_medoids",
    "pam",
    # Quality
    "GapResult",
    "SilhouetteReport",
    "gap_first_se_max",
    "gap_global_max",
    "gap_statistic",
    "medoid_profiles",
    "pooled_within_dispersion",
    "silhouette_report",
    "silhouette_samples",
    "silhouette_score_precomputed",
    "within_cluster_dissimilarity",
    "hopkins_statistic",
    # Dimensionality reduction
    "pca_svd_project",
    "standardize",
    "top_loadings",
    # Sweep orchestration
    "KResult",
    "SweepConfig",
    "SweepResult",
    "run_sweep",
]
