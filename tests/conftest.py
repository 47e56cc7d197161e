import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

NOW_COLUMNS = ["LIDNUM", "SIDNUM", "ORDER", "FAMILY", "GENUS", "SPECIES", "MIN_AGE", "MAX_AGE", "LAT", "LONG"]


def make_raw(rows):
    """Raw NOW-style table (all text) from (lid, sid, order, family, genus, species, min, max, lat, lon) tuples."""
    return pd.DataFrame(
        [[None if v is None else str(v) for v in row] for row in rows],
        columns=NOW_COLUMNS,
    )


@pytest.fixture
def regions():
    return gpd.GeoDataFrame(
        {"region": ["West", "East"], "map_id": pd.array([1, 2], dtype="Int64")},
        geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10)],
        crs="EPSG:4326",
    )


@pytest.fixture
def raw_occurrences():
    return make_raw([
        (1, 10, "Carnivora", "Felidae", "Machairodus", "aphanistus", 8, 10, 5, 5),
        (1, 11, "Proboscidea", "Gomphotheriidae", "Tetralophodon", "longirostris", 10, 8, 5, 5),
        (2, 12, "Artiodactyla", "Bovidae", "Tragoportax", "indet.", 6, 7, 5, 15),
        (3, 13, "Rodentia", "Muridae", "Progonomys", "cathalai", None, None, None, None),
    ])
