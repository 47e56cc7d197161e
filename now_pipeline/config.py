"""
Configuration module: paths, CRS constants, column mapping and thresholds.
"""

from pathlib import Path

# ============================================================================
# PROJECT PATHS (all relative to PROJECT_ROOT)
# ============================================================================

# Detect PROJECT_ROOT: either cwd or parent if in notebooks/scripts
def get_project_root():
    """Auto-detect project root by checking for data/ and now_pipeline/ folders."""
    cwd = Path.cwd()

    # If already in project root
    if (cwd / "now_pipeline").exists():
        return cwd

    # If in notebooks/ or scripts/
    if cwd.name in ["notebooks", "scripts"] and (cwd.parent / "now_pipeline").exists():
        return cwd.parent

    # Fallback: use parent if data exists there
    if (cwd.parent / "now_pipeline").exists() and (cwd.parent / "data").exists():
        return cwd.parent

    return cwd

PROJECT_ROOT = get_project_root()

# Core data paths
DATA_DIR = PROJECT_ROOT / "data"
ORIGINAL_DIR = DATA_DIR / "original"
PROCESSED_DIR = DATA_DIR / "processed"
FIGURES_DIR = PROJECT_ROOT / "reports" / "figures"

# Input files (raw data)
INPUT_FILES = {
    "occurrences": ORIGINAL_DIR / "now_export.csv",
    "regions": ORIGINAL_DIR / "regions" / "regions.shp",
    "paleocoordinates": ORIGINAL_DIR / "paleocoordinates.csv",  # Optional
}

# Output files (processed)
OUTPUT_FILES = {
    "occurrences_clean": PROCESSED_DIR / "now_occurrences_clean.parquet",
    "region_period_summary": PROCESSED_DIR / "region_period_summary.csv",
    "grid_cells": PROCESSED_DIR / "grid_cells.geojson",
}

FIGURE_FILES = {
    "period_counts": FIGURES_DIR / "fig_period_counts.png",
    "occurrence_map": FIGURES_DIR / "fig_occurrence_map.png",
    "region_period_heatmap": FIGURES_DIR / "fig_region_period_taxa.png",
    "grid_richness": FIGURES_DIR / "fig_grid_richness.png",
}


def ensure_dirs():
    """Create output directories if missing."""
    for directory in (PROCESSED_DIR, FIGURES_DIR):
        directory.mkdir(parents=True, exist_ok=True)

# ============================================================================
# INPUT SCHEMA
# ============================================================================

# NOW exports are tab-separated; set to "," for comma-separated copies
CSV_SEPARATOR = "\t"

# Raw NOW column -> clean column
OCCURRENCE_COLUMNS = {
    "LIDNUM": "locality_id",
    "SIDNUM": "species_id",
    "ORDER": "order",
    "FAMILY": "family",
    "GENUS": "genus",
    "SPECIES": "species",
    "MIN_AGE": "min_age",
    "MAX_AGE": "max_age",
    "LAT": "latitude",
    "LONG": "longitude",
}

# Used as occurrence_id when present; otherwise "<locality_id>-<species_id>"
OCCURRENCE_ID_FIELD = "OCCURRENCE_ID"

# Region layer attributes (renamed to 'region' / 'map_id' on load)
REGION_LABEL_FIELD = "Region"
REGION_ID_FIELD = "MapID"

# ============================================================================
# GEOSPATIAL & CRS CONSTANTS
# ============================================================================

# Geographic CRS for all inputs and outputs (WGS84)
CRS_WEB = "EPSG:4326"

# Spatial join
SPATIAL_JOIN_PREDICATE = "intersects"   # Boundary points count as inside
MIN_REGION_COVERAGE = 0.80              # Minimum share of occurrences matched to a region

# Grid aggregation
GRID_KIND = "square"        # 'square' or 'hex'
GRID_CELL_SIZE_DEG = 5.0    # Side length (square) or circumradius (hex), degrees

# Paleocoordinate lookup keys are rounded to this many decimals
PALEOCOORD_PRECISION = 2

# ============================================================================
# DATA QUALITY CONSTANTS
# ============================================================================

# Taxonomic filter: None keeps every order
TAXON_ORDERS = None

# Genus/species placeholders used for unidentified material
UNIDENTIFIED_TAXON_TOKENS = ["indet.", "indet", "sp.", "sp", "spp.", "gen.", "gen", "incertae sedis", ""]

# Sampling sufficiency: keep region x period pairs with MORE than this many taxa
MIN_SPECIES_PER_REGION_PERIOD = 5

# ============================================================================
# LOGGING & OUTPUT
# ============================================================================

VERBOSE = True
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR

FIGURE_DPI = 300

def print_config():
    """Print all configuration settings."""
    print("\n" + "=" * 80)
    print("PIPELINE CONFIGURATION")
    print("=" * 80)
    print(f"\n📁 PROJECT ROOT: {PROJECT_ROOT}")
    print(f"📂 DATA DIR: {DATA_DIR}")
    print(f"📂 PROCESSED DIR: {PROCESSED_DIR}")
    print(f"📂 FIGURES DIR: {FIGURES_DIR}")
    print(f"\n🗺️  Spatial Settings:")
    print(f"   CRS: {CRS_WEB}")
    print(f"   Join predicate: {SPATIAL_JOIN_PREDICATE}")
    print(f"   Grid: {GRID_KIND} ({GRID_CELL_SIZE_DEG}°)")
    print(f"\n🦴 Filters:")
    print(f"   Orders: {TAXON_ORDERS or 'all'}")
    print(f"   Min taxa per region x period: > {MIN_SPECIES_PER_REGION_PERIOD}")
    print(f"\n✓ Configuration loaded successfully")
    print("=" * 80 + "\n")
