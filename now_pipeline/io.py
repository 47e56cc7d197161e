"""
I/O module: Load and save occurrence tables and region geometries (CSV, Parquet, vector files).
"""

import pandas as pd
import geopandas as gpd
from pathlib import Path
import warnings

from . import config


def load_csv(filepath, **kwargs):
    """
    Load CSV file with error handling.

    Args:
        filepath: Path to CSV file
        **kwargs: Additional arguments for pd.read_csv()

    Returns:
        pd.DataFrame
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    return pd.read_csv(filepath, **kwargs)


def load_occurrences(filepath, sep=None):
    """
    Load a raw NOW export. Everything is read as text; typing happens in cleaning.

    Args:
        filepath: Path to the export
        sep: Column separator (defaults to config.CSV_SEPARATOR)

    Returns:
        pd.DataFrame
    """
    sep = config.CSV_SEPARATOR if sep is None else sep
    return load_csv(filepath, sep=sep, dtype=str, keep_default_na=True)


def load_vector(filepath, **kwargs):
    """
    Load a vector file (shapefile, GeoJSON, GeoPackage) with CRS validation.

    Args:
        filepath: Path to vector file
        **kwargs: Additional arguments for gpd.read_file()

    Returns:
        geopandas.GeoDataFrame
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Vector file not found: {filepath}")

    gdf = gpd.read_file(filepath, **kwargs)

    if gdf.crs is None:
        warnings.warn(f"⚠️  CRS missing in {filepath.name}. Assuming {config.CRS_WEB}")
        gdf = gdf.set_crs(config.CRS_WEB)

    return gdf


def load_regions(filepath, label_field=None, id_field=None):
    """
    Load the macro-region layer and normalize its attribute names.

    Args:
        filepath: Path to region polygons
        label_field: Attribute holding the region name (default config.REGION_LABEL_FIELD)
        id_field: Attribute holding the numeric map id (default config.REGION_ID_FIELD)

    Returns:
        GeoDataFrame with 'region', 'map_id' and geometry, in config.CRS_WEB
    """
    label_field = label_field or config.REGION_LABEL_FIELD
    id_field = id_field or config.REGION_ID_FIELD

    gdf = load_vector(filepath)

    missing = [c for c in (label_field, id_field) if c not in gdf.columns]
    if missing:
        raise ValueError(f"Region layer {Path(filepath).name} missing attributes {missing}; "
                         f"available: {[c for c in gdf.columns if c != 'geometry']}")

    gdf = gdf[[label_field, id_field, "geometry"]].rename(
        columns={label_field: "region", id_field: "map_id"}
    )
    gdf["map_id"] = pd.to_numeric(gdf["map_id"], errors="coerce").astype("Int64")

    if gdf.crs != config.CRS_WEB:
        gdf = gdf.to_crs(config.CRS_WEB)

    return gdf.reset_index(drop=True)


def load_parquet(filepath, **kwargs):
    """
    Load Parquet file, restoring geometry when the file is GeoParquet.

    Args:
        filepath: Path to Parquet file
        **kwargs: Additional arguments for the reader

    Returns:
        pd.DataFrame or geopandas.GeoDataFrame
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Parquet file not found: {filepath}")

    try:
        return gpd.read_parquet(filepath, **kwargs)
    except ValueError:
        # Plain parquet without geo metadata
        return pd.read_parquet(filepath, **kwargs)


def save_parquet(df, filepath, **kwargs):
    """
    Save DataFrame to Parquet.

    Args:
        df: DataFrame to save
        filepath: Output path
        **kwargs: Additional arguments for df.to_parquet()

    Returns:
        Path to saved file
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # Preserve geometry for GeoDataFrames
    if isinstance(df, gpd.GeoDataFrame):
        df.to_parquet(filepath, **kwargs)
    else:
        df.to_parquet(filepath, index=False, **kwargs)

    return filepath


def save_geojson(gdf, filepath, **kwargs):
    """
    Save GeoDataFrame to GeoJSON.

    Args:
        gdf: GeoDataFrame to save
        filepath: Output path
        **kwargs: Additional arguments for gdf.to_file()

    Returns:
        Path to saved file
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # GeoJSON is always WGS84
    if gdf.crs != config.CRS_WEB:
        gdf = gdf.to_crs(config.CRS_WEB)

    gdf.to_file(filepath, driver="GeoJSON", **kwargs)

    return filepath


def save_csv(df, filepath, **kwargs):
    """
    Save DataFrame to CSV.

    Args:
        df: DataFrame to save
        filepath: Output path
        **kwargs: Additional arguments for df.to_csv()

    Returns:
        Path to saved file
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(filepath, index=False, **kwargs)

    return filepath


def file_size_mb(filepath):
    """Get file size in MB."""
    return Path(filepath).stat().st_size / (1024 ** 2)
