"""
Country table loading.

Reads a CSV (or an in-memory DataFrame) with one row per country and turns it
into immutable observations for the clustering core.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..algorithms.dimensionality_reduction import standardize
from ..exceptions import InvalidInputError
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Observation:
    """One country: identifier plus an ordered feature vector."""

    name: str
    features: Tuple[float, ...]


@dataclass(frozen=True, eq=False)
class CountryDataset:
    """Country names, feature names and the (n, d) value matrix."""

    names: Tuple[str, ...]
    feature_names: Tuple[str, ...]
    values: np.ndarray

    def __len__(self) -> int:
        return len(self.names)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, index=list(self.names), columns=list(self.feature_names))

    def to_observations(self) -> List[Observation]:
        return [
            Observation(name=name, features=tuple(float(v) for v in row))
            for name, row in zip(self.names, self.values)
        ]

    def select(self, columns: Sequence[str]) -> "CountryDataset":
        """Keep only *columns*, in the given order."""
        missing = [c for c in columns if c not in self.feature_names]
        if missing:
            raise InvalidInputError(f"Unknown feature columns: {missing}")
        idx = [self.feature_names.index(c) for c in columns]
        return CountryDataset(
            names=self.names,
            feature_names=tuple(columns),
            values=self.values[:, idx].copy(),
        )

    def standardized(self) -> "CountryDataset":
        """Same table with every column z-scored."""
        Z, _, _ = standardize(self.values)
        return CountryDataset(names=self.names, feature_names=self.feature_names, values=Z)


def load_country_data(
    source: Union[str, Path, pd.DataFrame],
    *,
    id_column: str = "country",
    feature_columns: Optional[Sequence[str]] = None,
    drop_columns: Iterable[str] = (),
) -> CountryDataset:
    """
    Load the country table.

    Args:
        source: CSV path or an existing DataFrame
        id_column: Column holding the country name
        feature_columns: Columns to use as features; defaults to every column
            except the id column and ``drop_columns``
        drop_columns: Columns to exclude from the default feature set

    Returns:
        CountryDataset with float64 values

    Raises:
        InvalidInputError: On a missing id column, duplicate names, unknown,
            non-numeric or incomplete feature columns
    """
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        path = Path(source)
        if not path.exists():
            raise InvalidInputError(f"Data file not found: {path}")
        df = pd.read_csv(path)
        logger.info("Loaded %d rows from %s", len(df), path)

    if id_column not in df.columns:
        raise InvalidInputError(f"Id column '{id_column}' not found in {list(df.columns)}")
    if df.empty:
        raise InvalidInputError("Data set has no rows")

    names = df[id_column].astype(str).str.strip()
    duplicated = names[names.duplicated()].unique().tolist()
    if duplicated:
        raise InvalidInputError(f"Duplicate country names: {duplicated}")

    drop = set(drop_columns)
    if feature_columns is None:
        feature_columns = [c for c in df.columns if c != id_column and c not in drop]
    else:
        feature_columns = list(feature_columns)
        unknown = [c for c in feature_columns if c not in df.columns]
        if unknown:
            raise InvalidInputError(f"Unknown feature columns: {unknown}")
    if not feature_columns:
        raise InvalidInputError("No feature columns selected")

    features = df[feature_columns]
    non_numeric = [c for c in feature_columns if not pd.api.types.is_numeric_dtype(features[c])]
    if non_numeric:
        raise InvalidInputError(f"Non-numeric feature columns: {non_numeric}")
    incomplete = features.columns[features.isna().any()].tolist()
    if incomplete:
        raise InvalidInputError(f"Missing values in columns: {incomplete}")

    return CountryDataset(
        names=tuple(names.tolist()),
        feature_names=tuple(str(c) for c in feature_columns),
        values=features.to_numpy(dtype=np.float64),
    )
