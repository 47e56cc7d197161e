"""
Plots module: Diagnostic figures for the cleaned occurrence dataset.

Every function saves a PNG, closes its figure and returns the output path.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import seaborn as sns

from . import config
from .periods import PERIOD_NAMES


def _save(fig, out_path, dpi=None):
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=dpi or config.FIGURE_DPI, bbox_inches='tight')
    plt.close(fig)
    return out_path


def plot_period_counts(df, out_path, period_col='period'):
    """Bar chart of occurrences per stage, oldest stage on the left."""
    counts = df[period_col].value_counts().reindex(PERIOD_NAMES, fill_value=0)

    fig, ax = plt.subplots(figsize=(9, 4.5))
    ax.bar(counts.index, counts.values, color='#4C72B0', edgecolor='black', linewidth=0.5)
    ax.set_xlabel('Stage (oldest → youngest)')
    ax.set_ylabel('Occurrences')
    ax.set_title('Occurrences per stage')
    ax.tick_params(axis='x', rotation=35)
    ax.grid(axis='y', alpha=0.3)

    return _save(fig, out_path)


def plot_occurrence_map(gdf_points, gdf_regions, out_path, period_col='period'):
    """Region outlines with occurrences coloured by stage."""
    fig, ax = plt.subplots(figsize=(12, 7))

    gdf_regions.plot(ax=ax, facecolor='#F2F2F2', edgecolor='#555555', linewidth=0.6)
    if 'region' in gdf_regions.columns:
        for _, row in gdf_regions.iterrows():
            centroid = row.geometry.representative_point()
            ax.annotate(str(row['region']), (centroid.x, centroid.y), fontsize=7, ha='center', alpha=0.7)

    points = gdf_points[gdf_points.geometry.notna()]
    palette = sns.color_palette('viridis', n_colors=len(PERIOD_NAMES))
    for name, color in zip(PERIOD_NAMES, palette):
        subset = points[points[period_col] == name]
        if len(subset) > 0:
            subset.plot(ax=ax, color=color, markersize=8, alpha=0.8, label=f"{name} ({len(subset)})")

    unassigned = points[points[period_col].isna()]
    if len(unassigned) > 0:
        unassigned.plot(ax=ax, color='lightgrey', markersize=5, alpha=0.6, label=f"no stage ({len(unassigned)})")

    ax.set_xlabel('Longitude')
    ax.set_ylabel('Latitude')
    ax.set_title('Occurrences by stage (rotated coordinates)')
    ax.legend(loc='lower left', fontsize=8, frameon=True)

    return _save(fig, out_path)


def plot_region_period_heatmap(summary, out_path, value_col='n_taxa', min_taxa=None):
    """Heatmap of taxa per region x stage; cells at or below the threshold are masked (left blank)."""
    min_taxa = config.MIN_SPECIES_PER_REGION_PERIOD if min_taxa is None else min_taxa

    table = summary.pivot(index='region', columns='period', values=value_col)
    table = table.reindex(columns=[p for p in PERIOD_NAMES if p in table.columns])

    fig, ax = plt.subplots(figsize=(10, max(3, 0.45 * len(table) + 1.5)))
    if table.empty or not (table > min_taxa).any().any():
        ax.text(0.5, 0.5, f'No region x stage pair with {value_col} > {min_taxa}', ha='center', va='center')
        ax.set_axis_off()
        return _save(fig, out_path)

    sns.heatmap(
        table,
        ax=ax,
        annot=True,
        fmt='.0f',
        cmap='YlGnBu',
        mask=table.isna() | (table <= min_taxa),
        cbar_kws={'label': value_col},
        linewidths=0.5,
    )
    ax.set_facecolor('#EEEEEE')
    ax.set_xlabel('Stage')
    ax.set_ylabel('Region')
    ax.set_title(f'{value_col} per region x stage (blank: ≤ {min_taxa})')

    return _save(fig, out_path)


def plot_grid_richness(gdf_grid, out_path, value_col='n_taxa'):
    """Choropleth of taxon richness per grid cell."""
    fig, ax = plt.subplots(figsize=(12, 7))

    occupied = gdf_grid[gdf_grid['n_occurrences'] > 0]
    gdf_grid.boundary.plot(ax=ax, color='#CCCCCC', linewidth=0.3)
    if len(occupied) > 0:
        occupied.plot(ax=ax, column=value_col, cmap='magma_r', legend=True,
                      legend_kwds={'label': value_col, 'shrink': 0.7})

    ax.set_xlabel('Longitude')
    ax.set_ylabel('Latitude')
    ax.set_title(f'{value_col} per grid cell')

    return _save(fig, out_path)
