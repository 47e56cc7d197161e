"""
Spatial module: Point geometries, region/grid polygons, point-in-polygon labelling and aggregation.
"""

import pandas as pd
import geopandas as gpd
import numpy as np
from shapely.geometry import Point, Polygon, box

from . import config
from .periods import PERIOD_NAMES


def occurrences_to_geodataframe(df, lat_col='paleo_latitude', lon_col='paleo_longitude'):
    """
    Convert occurrences with lat/lon to a GeoDataFrame with Point geometries.

    Rows with a missing coordinate keep a missing geometry instead of being dropped.

    Args:
        df: DataFrame with lat_col and lon_col
        lat_col: Latitude column (rotated coordinates by default)
        lon_col: Longitude column

    Returns:
        GeoDataFrame in config.CRS_WEB and log info
    """
    log = []

    if lat_col not in df.columns or lon_col not in df.columns:
        raise ValueError(f"'{lat_col}' and '{lon_col}' columns required")

    has_coords = df[lat_col].notna() & df[lon_col].notna()
    geometry = [
        Point(lon, lat) if ok else None
        for lat, lon, ok in zip(df[lat_col], df[lon_col], has_coords)
    ]

    gdf = gpd.GeoDataFrame(df.copy(), geometry=geometry, crs=config.CRS_WEB)

    log.append(f"✓ Created Point geometries from ({lat_col}, {lon_col}) for {has_coords.sum():,} / {len(gdf):,} occurrences")
    missing = (~has_coords).sum()
    if missing > 0:
        log.append(f"⚠️  {missing:,} occurrences without coordinates (geometry = missing)")

    return gdf, log


def clean_regions(gdf_regions):
    """
    Validate and repair region geometries.

    Args:
        gdf_regions: Region GeoDataFrame

    Returns:
        Cleaned GeoDataFrame and log info
    """
    log = []
    gdf_clean = gdf_regions.copy()

    # 1. Check CRS
    if gdf_clean.crs is None:
        log.append(f"⚠️  CRS missing; assuming {config.CRS_WEB}")
        gdf_clean = gdf_clean.set_crs(config.CRS_WEB)
    else:
        log.append(f"✓ CRS: {gdf_clean.crs}")

    # 2. Validate geometries
    invalid_before = (~gdf_clean.geometry.is_valid).sum()
    if invalid_before > 0:
        log.append(f"⚠️  Found {invalid_before} invalid geometries; repairing...")
        gdf_clean.geometry = gdf_clean.geometry.make_valid()
        invalid_after = (~gdf_clean.geometry.is_valid).sum()
        log.append(f"   → After repair: {invalid_after} invalid (target: 0)")
    else:
        log.append(f"✓ All geometries are valid")

    # 3. Drop empty polygons
    empty = gdf_clean.geometry.isna() | gdf_clean.geometry.is_empty
    if empty.any():
        log.append(f"⚠️  Dropped {empty.sum()} empty region geometries")
        gdf_clean = gdf_clean[~empty]

    log.append(f"✓ Region cleaning complete ({len(gdf_clean)} polygons)")

    return gdf_clean.reset_index(drop=True), log


def assign_polygon_labels(gdf_points, gdf_polygons, label_cols, predicate=None):
    """
    Label each point with the attributes of the first polygon it falls in.

    Polygons are tried in enumeration order; when a point intersects several
    (shared edges, overlapping inputs) only the first match is kept. Points
    with no geometry or no match get missing labels.

    Args:
        gdf_points: Point GeoDataFrame
        gdf_polygons: Polygon GeoDataFrame carrying label_cols
        label_cols: Column name or list of column names to copy onto points
        predicate: Spatial predicate (default config.SPATIAL_JOIN_PREDICATE)

    Returns:
        New point GeoDataFrame with label_cols added and log info
    """
    log = []
    predicate = predicate or config.SPATIAL_JOIN_PREDICATE
    if isinstance(label_cols, str):
        label_cols = [label_cols]

    missing = [c for c in label_cols if c not in gdf_polygons.columns]
    if missing:
        raise ValueError(f"Label columns {missing} not found in polygons")

    # Ensure same CRS
    polygons = gdf_polygons
    if gdf_points.crs != polygons.crs:
        log.append(f"⚠️  CRS mismatch; reprojecting polygons to {gdf_points.crs}")
        polygons = polygons.to_crs(gdf_points.crs)

    polys = polygons[label_cols + ['geometry']].reset_index(drop=True)
    polys['_poly_pos'] = np.arange(len(polys))

    points = gdf_points[['geometry']].reset_index(drop=True)
    points['_point_pos'] = np.arange(len(points))
    valid = points.geometry.notna() & ~points.geometry.is_empty

    n_multi = 0
    if valid.any() and len(polys) > 0:
        joined = gpd.sjoin(points[valid], polys, how='inner', predicate=predicate)
        joined = joined.sort_values(['_point_pos', '_poly_pos'])
        n_multi = int((joined.groupby('_point_pos').size() > 1).sum())
        first = joined.drop_duplicates('_point_pos', keep='first').set_index('_point_pos')
    else:
        first = polys.iloc[0:0].drop(columns='geometry')

    gdf_out = gdf_points.copy()
    for col in label_cols:
        values = first[col].reindex(np.arange(len(gdf_out)))
        if pd.api.types.is_integer_dtype(polys[col].dtype):
            values = values.astype('Int64')
        gdf_out[col] = values.set_axis(gdf_out.index)

    total = len(gdf_out)
    matched = gdf_out[label_cols[0]].notna().sum()
    coverage = (matched / total * 100) if total > 0 else 0

    log.append(f"✓ Spatial join on {label_cols} ({predicate}):")
    log.append(f"  - Total points: {total:,}")
    log.append(f"  - Matched to a polygon: {matched:,} ({coverage:.1f}%)")
    if n_multi > 0:
        log.append(f"⚠️  {n_multi:,} points matched several polygons; kept the first")

    return gdf_out, log


def make_square_grid(bounds, cell_size=None, crs=None):
    """
    Build square cells covering a bounding box, snapped to multiples of cell_size.

    Cells are numbered row-major from the south-west corner.

    Args:
        bounds: (minx, miny, maxx, maxy)
        cell_size: Side length in degrees (default config.GRID_CELL_SIZE_DEG)
        crs: Output CRS (default config.CRS_WEB)

    Returns:
        GeoDataFrame with 'grid_id' and geometry
    """
    cell_size = cell_size or config.GRID_CELL_SIZE_DEG
    minx, miny, maxx, maxy = bounds

    x0 = np.floor(minx / cell_size) * cell_size
    y0 = np.floor(miny / cell_size) * cell_size
    ncols = max(1, int(np.ceil((maxx - x0) / cell_size)))
    nrows = max(1, int(np.ceil((maxy - y0) / cell_size)))

    cells = []
    for row in range(nrows):
        for col in range(ncols):
            x, y = x0 + col * cell_size, y0 + row * cell_size
            cells.append(box(x, y, x + cell_size, y + cell_size))

    return gpd.GeoDataFrame({'grid_id': np.arange(len(cells))}, geometry=cells, crs=crs or config.CRS_WEB)


def _hexagon(cx, cy, size):
    angles = np.radians(np.arange(0, 360, 60))
    return Polygon(list(zip(cx + size * np.cos(angles), cy + size * np.sin(angles))))


def make_hex_grid(bounds, size=None, crs=None):
    """
    Build flat-topped hexagons of circumradius `size` covering a bounding box.

    Hexagons that do not touch the box are dropped; the rest are numbered in
    column-major order from the south-west corner.

    Args:
        bounds: (minx, miny, maxx, maxy)
        size: Hexagon circumradius in degrees (default config.GRID_CELL_SIZE_DEG)
        crs: Output CRS (default config.CRS_WEB)

    Returns:
        GeoDataFrame with 'grid_id' and geometry
    """
    size = size or config.GRID_CELL_SIZE_DEG
    minx, miny, maxx, maxy = bounds

    dx = 1.5 * size
    dy = np.sqrt(3) * size
    ncols = int(np.ceil((maxx - minx) / dx)) + 1
    nrows = int(np.ceil((maxy - miny) / dy)) + 1

    extent = box(minx, miny, maxx, maxy)
    cells = []
    for col in range(ncols):
        offset = dy / 2 if col % 2 else 0.0
        for row in range(nrows):
            hexagon = _hexagon(minx + col * dx, miny + row * dy + offset, size)
            if extent.area == 0 or hexagon.intersects(extent):
                cells.append(hexagon)

    return gpd.GeoDataFrame({'grid_id': np.arange(len(cells))}, geometry=cells, crs=crs or config.CRS_WEB)


def make_grid(gdf_points, kind=None, cell_size=None):
    """
    Generate the aggregation grid over the extent of the observed points.

    Args:
        gdf_points: Point GeoDataFrame (missing geometries are ignored)
        kind: 'square' or 'hex' (default config.GRID_KIND)
        cell_size: Cell size in degrees (default config.GRID_CELL_SIZE_DEG)

    Returns:
        Grid GeoDataFrame and log info
    """
    log = []
    kind = kind or config.GRID_KIND
    cell_size = cell_size or config.GRID_CELL_SIZE_DEG

    builders = {'square': make_square_grid, 'hex': make_hex_grid}
    if kind not in builders:
        raise ValueError(f"Unknown grid kind '{kind}'; expected one of {sorted(builders)}")

    valid = gdf_points.geometry.notna() & ~gdf_points.geometry.is_empty
    if not valid.any():
        raise ValueError("Cannot build a grid: no occurrences with coordinates")

    bounds = gdf_points[valid].total_bounds
    grid = builders[kind](bounds, cell_size, crs=gdf_points.crs)

    log.append(f"✓ Built {kind} grid: {len(grid):,} cells of {cell_size}°")
    log.append(f"  - Extent: [{bounds[0]:.2f}, {bounds[1]:.2f}, {bounds[2]:.2f}, {bounds[3]:.2f}]")

    return grid, log


def taxon_labels(df):
    """'Genus species' labels; uses an existing 'taxon' column when present."""
    if 'taxon' in df.columns:
        return df['taxon']
    return df['genus'].astype(str).str.strip() + ' ' + df['species'].astype(str).str.strip()


def aggregate_to_grid(gdf_points, gdf_grid):
    """
    Aggregate occurrences to grid cells: occurrence, taxon and locality counts.

    Args:
        gdf_points: Occurrences with a 'grid_id' column
        gdf_grid: Grid polygons with 'grid_id'

    Returns:
        Grid GeoDataFrame with counts (zeros for empty cells) and log info
    """
    log = []

    points = gdf_points[gdf_points['grid_id'].notna()].copy()
    points['taxon'] = taxon_labels(points)

    grid_agg = points.groupby('grid_id').agg(
        n_occurrences=('occurrence_id', 'count'),
        n_taxa=('taxon', 'nunique'),
        n_localities=('locality_id', 'nunique'),
    )
    grid_agg.index = grid_agg.index.astype('int64')

    gdf_out = gdf_grid.copy()
    for col in ['n_occurrences', 'n_taxa', 'n_localities']:
        gdf_out[col] = gdf_out['grid_id'].map(grid_agg[col]).fillna(0).astype('int64')

    occupied = (gdf_out['n_occurrences'] > 0).sum()
    log.append(f"✓ Aggregated {len(points):,} occurrences to {occupied:,} / {len(gdf_out):,} grid cells")
    if occupied > 0:
        log.append(f"  - Taxa per occupied cell: {gdf_out.loc[gdf_out['n_occurrences'] > 0, 'n_taxa'].min()} - {gdf_out['n_taxa'].max()}")

    return gdf_out, log


def summarize_region_periods(df):
    """
    Occurrence and taxon counts per region x period, dropping missing groups.

    Returns:
        DataFrame with region, period, n_occurrences, n_taxa, ordered by region then stage age
    """
    data = df[df['region'].notna() & df['period'].notna()].copy()
    data['taxon'] = taxon_labels(data)

    summary = data.groupby(['region', 'period'], as_index=False).agg(
        n_occurrences=('occurrence_id', 'count'),
        n_taxa=('taxon', 'nunique'),
    )

    # Oldest stage first within each region
    order = {name: i for i, name in enumerate(PERIOD_NAMES)}
    summary['_order'] = summary['period'].map(order)
    summary = summary.sort_values(['region', '_order']).drop(columns='_order')

    return summary.reset_index(drop=True)
