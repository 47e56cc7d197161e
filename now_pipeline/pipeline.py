"""
Pipeline module: Linear composition of the cleaning, classification and spatial stages.

Each stage takes the previous table and returns a new one plus its log lines;
nothing is modified in place, so every intermediate can be inspected.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import geopandas as gpd
import pandas as pd

from . import config, io
from .cleaning import clean_occurrences, subset_columns
from .filters import filter_sampled_region_periods, filter_taxa
from .periods import assign_periods
from .rotation import identity_rotation, rotate_coordinates
from .spatial import (
    aggregate_to_grid,
    assign_polygon_labels,
    clean_regions,
    make_grid,
    occurrences_to_geodataframe,
)

logger = logging.getLogger(__name__)


def configure_logging(level=None):
    """Route pipeline logs to stderr at config.LOG_LEVEL."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)-7s %(name)s | %(message)s",
    )


def emit(log, stage):
    """Forward a stage's log lines to the module logger; ⚠️ lines become warnings."""
    for line in log:
        if line.lstrip().startswith("⚠"):
            logger.warning("[%s] %s", stage, line)
        else:
            logger.info("[%s] %s", stage, line)


@dataclass
class PipelineResult:
    """Pipeline outputs; `points` holds the identified occurrences the grid was aggregated from, before the sampling filter."""
    occurrences: gpd.GeoDataFrame
    summary: pd.DataFrame
    grid: gpd.GeoDataFrame
    regions: gpd.GeoDataFrame
    points: gpd.GeoDataFrame
    log: List[str] = field(default_factory=list)


def run_pipeline(
    occurrences_path,
    regions_path,
    *,
    rotate: Callable = identity_rotation,
    grid_kind: Optional[str] = None,
    cell_size: Optional[float] = None,
    orders=None,
    min_taxa: Optional[int] = None,
    sep: Optional[str] = None,
    output_path=None,
    summary_path=None,
    grid_path=None,
) -> PipelineResult:
    """
    Run the full occurrence pipeline once, top to bottom.

    Args:
        occurrences_path: Raw NOW export
        regions_path: Region polygons (name + numeric map id)
        rotate: Back-rotation callable (age, lat, lon) -> (lat, lon)
        grid_kind: 'square' or 'hex' (default config.GRID_KIND)
        cell_size: Grid cell size in degrees (default config.GRID_CELL_SIZE_DEG)
        orders: Orders to keep (default config.TAXON_ORDERS)
        min_taxa: Sampling threshold (default config.MIN_SPECIES_PER_REGION_PERIOD)
        sep: CSV separator (default config.CSV_SEPARATOR)
        output_path: Optional GeoParquet path for the cleaned occurrences
        summary_path: Optional CSV path for the region x period summary
        grid_path: Optional GeoJSON path for the grid aggregation

    Returns:
        PipelineResult
    """
    full_log = []

    def record(stage, log):
        emit(log, stage)
        full_log.extend(f"[{stage}] {line}" for line in log)

    # 1. Load
    df_raw = io.load_occurrences(occurrences_path, sep=sep)
    record("load", [f"✓ Loaded {len(df_raw):,} rows from {Path(occurrences_path).name}"])
    gdf_regions, log = clean_regions(io.load_regions(regions_path))
    record("regions", log)

    # 2. Subset + clean
    df_subset, log = subset_columns(df_raw)
    record("subset", log)
    df_clean, log = clean_occurrences(df_subset)
    record("clean", log)

    # 3. Stage classification
    df_periods, log = assign_periods(df_clean, age_col='mean_age')
    record("periods", log)

    # 4. Back-rotation at the stage midpoint age
    df_rotated, log = rotate_coordinates(df_periods, rotate=rotate, age_col='period_midpoint')
    record("rotation", log)

    # 5. Points + region labels
    gdf_points, log = occurrences_to_geodataframe(df_rotated)
    record("points", log)
    gdf_points, log = assign_polygon_labels(gdf_points, gdf_regions, ['region', 'map_id'])
    record("regions-join", log)

    # 6. Grid labels
    gdf_grid, log = make_grid(gdf_points, kind=grid_kind, cell_size=cell_size)
    record("grid", log)
    gdf_points, log = assign_polygon_labels(gdf_points, gdf_grid, 'grid_id')
    record("grid-join", log)

    # 7. Taxonomy
    gdf_taxa, log = filter_taxa(gdf_points, orders=orders)
    record("taxa", log)

    # 8. Grid aggregation (before the sampling filter, to map raw coverage)
    gdf_grid_agg, log = aggregate_to_grid(gdf_taxa, gdf_grid)
    record("grid-agg", log)

    # 9. Sampling sufficiency
    gdf_final, summary, log = filter_sampled_region_periods(gdf_taxa, min_taxa=min_taxa)
    record("sampling", log)

    # 10. Save
    if output_path is not None:
        path = io.save_parquet(gdf_final, output_path)
        record("save", [f"✓ Saved {len(gdf_final):,} occurrences → {path} ({io.file_size_mb(path):.2f} MB)"])
    if summary_path is not None:
        path = io.save_csv(summary, summary_path)
        record("save", [f"✓ Saved region x period summary → {path}"])
    if grid_path is not None:
        path = io.save_geojson(gdf_grid_agg, grid_path)
        record("save", [f"✓ Saved grid aggregation → {path}"])

    return PipelineResult(
        occurrences=gdf_final,
        summary=summary,
        grid=gdf_grid_agg,
        regions=gdf_regions,
        points=gdf_taxa,
        log=full_log,
    )
