"""
Country Medoids - Core Package

Clustering toolkit for small tabular country-statistics data sets.

This package provides:
- Dissimilarity matrices, PAM k-medoids and cluster quality metrics
- Standardization, PCA loadings and clustering-tendency checks
- A pandas-based loader for the country table
"""

__version__ = "0.1.0"

from .exceptions import DegenerateInputError, InvalidInputError, NotConverged

from . import algorithms
from . import data
from . import utils

__all__ = [
    "DegenerateInputError",
    "InvalidInputError",
    "NotConverged",
    "algorithms",
    "data",
    "utils",
]
