import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import Point, box

from now_pipeline import io


def _write_regions(tmp_path, **columns):
    gdf = gpd.GeoDataFrame(columns, geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10)], crs="EPSG:4326")
    path = tmp_path / "regions.geojson"
    gdf.to_file(path, driver="GeoJSON")
    return path


def test_load_regions_normalizes_attributes(tmp_path):
    path = _write_regions(tmp_path, Region=["West", "East"], MapID=[1, 2], other=["x", "y"])

    gdf = io.load_regions(path)

    assert list(gdf.columns) == ["region", "map_id", "geometry"]
    assert gdf["map_id"].dtype == "Int64"
    assert gdf.crs == "EPSG:4326"


def test_load_regions_custom_fields(tmp_path):
    path = _write_regions(tmp_path, NAME=["West", "East"], ID=[1, 2])
    gdf = io.load_regions(path, label_field="NAME", id_field="ID")
    assert gdf["region"].tolist() == ["West", "East"]


def test_load_regions_missing_attribute(tmp_path):
    path = _write_regions(tmp_path, Region=["West", "East"])
    with pytest.raises(ValueError, match="MapID"):
        io.load_regions(path)


def test_missing_files_raise(tmp_path):
    with pytest.raises(FileNotFoundError):
        io.load_csv(tmp_path / "missing.csv")
    with pytest.raises(FileNotFoundError):
        io.load_vector(tmp_path / "missing.shp")
    with pytest.raises(FileNotFoundError):
        io.load_parquet(tmp_path / "missing.parquet")


def test_load_occurrences_reads_text(tmp_path):
    path = tmp_path / "now.tsv"
    path.write_text("LIDNUM\tMIN_AGE\n0012\t5,3\n", encoding="utf-8")

    df = io.load_occurrences(path, sep="\t")

    assert df.loc[0, "LIDNUM"] == "0012"
    assert df.loc[0, "MIN_AGE"] == "5,3"


def test_parquet_round_trip_keeps_geometry(tmp_path):
    gdf = gpd.GeoDataFrame({"occurrence_id": ["a"]}, geometry=[Point(1, 2)], crs="EPSG:4326")
    path = io.save_parquet(gdf, tmp_path / "out" / "occ.parquet")

    loaded = io.load_parquet(path)

    assert isinstance(loaded, gpd.GeoDataFrame)
    assert loaded.geometry.iloc[0].equals(Point(1, 2))


def test_load_parquet_plain_table(tmp_path):
    path = io.save_parquet(pd.DataFrame({"a": [1, 2]}), tmp_path / "plain.parquet")
    loaded = io.load_parquet(path)
    assert loaded["a"].tolist() == [1, 2]


def test_save_csv_creates_parent(tmp_path):
    path = io.save_csv(pd.DataFrame({"a": [1]}), tmp_path / "nested" / "t.csv")
    assert path.exists()
