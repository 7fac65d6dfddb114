"""Shared fixtures for GeoNames dump tests."""

import pytest


def _make_line(
    geoname_id=1,
    name="Place",
    lat=0.0,
    lon=0.0,
    feature_class="P",
    feature_code="PPL",
    country="US",
    admin1="KS",
    population=0,
):
    """Build a 19-column dump line."""
    fields = [
        str(geoname_id), name, name, "", str(lat), str(lon),
        feature_class, feature_code, country, "", admin1, "", "", "",
        str(population), "", "400", "America/Chicago", "2020-01-01",
    ]
    return "\t".join(fields) + "\n"


@pytest.fixture
def make_line():
    """Factory for single dump lines."""
    return _make_line


@pytest.fixture
def sample_dump():
    """Four places in Kansas and Nebraska; one river, one tiny hamlet."""
    return (
        _make_line(1, "Salina", 38.84, -97.61, population=46994)
        + _make_line(2, "Smoky Hill River", 38.9, -97.5, feature_class="H", feature_code="STM")
        + _make_line(3, "Lincoln", 40.8, -96.7, admin1="NE", population=291082)
        + _make_line(4, "Hamlet", 39.0, -98.0, population=12)
    )
