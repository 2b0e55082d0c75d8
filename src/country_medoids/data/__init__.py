"""Tabular input loading."""

from .loader import CountryDataset, Observation, load_country_data

__all__ = ["CountryDataset", "Observation", "load_country_data"]
