"""
Tests for country table loading.
"""

import numpy as np
import pandas as pd
import pytest

from country_medoids.data.loader import CountryDataset, Observation, load_country_data
from country_medoids.exceptions import InvalidInputError


def test_load_from_frame(country_frame):
    dataset = load_country_data(country_frame)

    assert isinstance(dataset, CountryDataset)
    assert len(dataset) == 6
    assert dataset.names[0] == "Aland"
    assert dataset.feature_names == ("child_mort", "income", "life_expec", "health")
    assert dataset.values.shape == (6, 4)
    assert dataset.values.dtype == np.float64


def test_load_from_csv(tmp_path, country_frame):
    path = tmp_path / "Country-data.csv"
    country_frame.to_csv(path, index=False)

    dataset = load_country_data(path, drop_columns=["health"])

    assert dataset.feature_names == ("child_mort", "income", "life_expec")
    np.testing.assert_allclose(dataset.values[:, 1], country_frame["income"])


def test_missing_file(tmp_path):
    with pytest.raises(InvalidInputError, match="not found"):
        load_country_data(tmp_path / "nope.csv")


def test_explicit_feature_columns(country_frame):
    dataset = load_country_data(country_frame, feature_columns=["income", "health"])
    assert dataset.feature_names == ("income", "health")

    with pytest.raises(InvalidInputError, match="Unknown"):
        load_country_data(country_frame, feature_columns=["gdpp"])


def test_missing_id_column(country_frame):
    with pytest.raises(InvalidInputError, match="Id column"):
        load_country_data(country_frame, id_column="name")


def test_duplicate_names(country_frame):
    frame = country_frame.copy()
    frame.loc[1, "country"] = "Aland"
    with pytest.raises(InvalidInputError, match="Duplicate"):
        load_country_data(frame)


def test_non_numeric_feature(country_frame):
    frame = country_frame.assign(region=["n", "s", "e", "w", "n", "s"])
    with pytest.raises(InvalidInputError, match="Non-numeric"):
        load_country_data(frame)
    # Dropping it makes the table usable
    assert load_country_data(frame, drop_columns=["region"]).values.shape == (6, 4)


def test_missing_values(country_frame):
    frame = country_frame.copy()
    frame.loc[2, "health"] = np.nan
    with pytest.raises(InvalidInputError, match="Missing values"):
        load_country_data(frame)


def test_empty_frame():
    with pytest.raises(InvalidInputError, match="no rows"):
        load_country_data(pd.DataFrame({"country": [], "income": []}))


def test_select_and_standardize(country_frame):
    dataset = load_country_data(country_frame)

    subset = dataset.select(["life_expec", "income"])
    assert subset.feature_names == ("life_expec", "income")
    np.testing.assert_allclose(subset.values[:, 0], country_frame["life_expec"])

    z = subset.standardized()
    np.testing.assert_allclose(z.values.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(z.values.std(axis=0, ddof=1), 1.0)
    assert z.names == dataset.names

    with pytest.raises(InvalidInputError):
        dataset.select(["gdpp"])


def test_to_observations_and_frame(country_frame):
    dataset = load_country_data(country_frame, feature_columns=["income"])
    observations = dataset.to_observations()

    assert observations[0] == Observation(name="Aland", features=(1610.0,))
    frame = dataset.to_frame()
    assert list(frame.index) == list(dataset.names)
    assert list(frame.columns) == ["income"]
