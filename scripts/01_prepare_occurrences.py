"""
01_prepare_occurrences.py
- Load the raw NOW export and the region polygons
- Subset/clean, classify stages, back-rotate, join regions and grid
- Taxonomic + sampling-sufficiency filters
- Save cleaned occurrences, region x period summary and grid cells into data/processed/
"""

import sys
from pathlib import Path

# Auto-detect project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Add project root to path for imports
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from now_pipeline import config, qc
from now_pipeline.pipeline import configure_logging, run_pipeline
from now_pipeline.rotation import PaleoCoordinateTable, identity_rotation


def main():
    configure_logging()
    config.ensure_dirs()
    if config.VERBOSE:
        config.print_config()

    paleo_path = config.INPUT_FILES["paleocoordinates"]
    if paleo_path.exists():
        rotate = PaleoCoordinateTable.from_csv(paleo_path)
        print(f"✓ Using precomputed paleocoordinates: {paleo_path.name} ({len(rotate):,} points)")
    else:
        rotate = identity_rotation
        print(f"⚠️  {paleo_path.name} not found; keeping present-day coordinates")

    result = run_pipeline(
        config.INPUT_FILES["occurrences"],
        config.INPUT_FILES["regions"],
        rotate=rotate,
        output_path=config.OUTPUT_FILES["occurrences_clean"],
        summary_path=config.OUTPUT_FILES["region_period_summary"],
        grid_path=config.OUTPUT_FILES["grid_cells"],
    )

    failures = qc.print_qc_report([
        ("Unique occurrence ids", qc.check_unique_ids, {"df": result.occurrences}),
        ("Age order", qc.check_age_order, {"df": result.occurrences}),
        ("Stage labels", qc.check_period_labels, {"df": result.occurrences}),
        ("Occurrence CRS", qc.check_crs, {"gdf": result.occurrences, "expected_crs": config.CRS_WEB}),
        ("Occurrence geometries", qc.check_geometry_validity, {"gdf": result.occurrences}),
        ("Region geometries", qc.check_geometry_validity, {"gdf": result.regions}),
        ("Region coverage", qc.check_region_coverage,
         {"gdf_joined": result.points, "min_coverage": config.MIN_REGION_COVERAGE}),
        ("Grid counts", qc.check_grid_counts, {"gdf_points": result.points, "gdf_grid": result.grid}),
    ])

    print(f"\n✓ {len(result.occurrences):,} occurrences in "
          f"{int(result.summary['kept'].sum())} region x stage pairs")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
