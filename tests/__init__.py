"""
Test suite for country-medoids.

This package contains all tests organized by component:
- test_algorithms/: dissimilarities, PAM, quality metrics, PCA, sweeps
- test_data/: country table loading
"""
