"""
02_plot_diagnostics.py
- Read the outputs of 01_prepare_occurrences.py
- Save diagnostic figures into reports/figures/
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from now_pipeline import config, io, plots


def main():
    config.ensure_dirs()

    print("=" * 80)
    print("DIAGNOSTIC PLOTS")
    print("=" * 80)

    occurrences = io.load_parquet(config.OUTPUT_FILES["occurrences_clean"])
    summary = io.load_csv(config.OUTPUT_FILES["region_period_summary"])
    grid = io.load_vector(config.OUTPUT_FILES["grid_cells"])
    regions = io.load_regions(config.INPUT_FILES["regions"])
    print(f"  ✓ Loaded {len(occurrences):,} occurrences, {len(summary)} region x stage pairs, {len(grid)} grid cells")

    written = [
        plots.plot_period_counts(occurrences, config.FIGURE_FILES["period_counts"]),
        plots.plot_occurrence_map(occurrences, regions, config.FIGURE_FILES["occurrence_map"]),
        plots.plot_region_period_heatmap(summary, config.FIGURE_FILES["region_period_heatmap"]),
        plots.plot_grid_richness(grid, config.FIGURE_FILES["grid_richness"]),
    ]

    for path in written:
        print(f"  ✓ Saved: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
