"""
Filters module: Taxonomic filtering and sampling-sufficiency filtering.
"""

import pandas as pd

from . import config
from .spatial import summarize_region_periods


def _is_unidentified(s: pd.Series, tokens) -> pd.Series:
    tokens = {str(t).strip().lower() for t in tokens}
    return s.isna() | s.astype(str).str.strip().str.lower().isin(tokens)


def filter_taxa(df, orders=None, unidentified=None):
    """
    Keep identified species, optionally restricted to a set of orders.

    Args:
        df: Occurrence table with order/genus/species columns
        orders: Orders to keep (default config.TAXON_ORDERS; None keeps all)
        unidentified: Genus/species placeholders to drop (default config.UNIDENTIFIED_TAXON_TOKENS)

    Returns:
        Filtered table with a 'taxon' column and log info
    """
    log = []
    orders = config.TAXON_ORDERS if orders is None else orders
    unidentified = config.UNIDENTIFIED_TAXON_TOKENS if unidentified is None else unidentified

    before = len(df)
    unidentified_mask = _is_unidentified(df['genus'], unidentified) | _is_unidentified(df['species'], unidentified)
    df_out = df[~unidentified_mask]
    if unidentified_mask.any():
        log.append(f"⚠️  Removed {unidentified_mask.sum():,} occurrences not identified to species")

    if orders:
        wanted = {str(o).strip().lower() for o in orders}
        in_orders = df_out['order'].astype(str).str.strip().str.lower().isin(wanted)
        removed = (~in_orders).sum()
        df_out = df_out[in_orders]
        log.append(f"✓ Restricted to orders {sorted(orders)} ({removed:,} occurrences removed)")

    df_out = df_out.copy()
    df_out['taxon'] = df_out['genus'].astype(str).str.strip() + ' ' + df_out['species'].astype(str).str.strip()

    log.append(f"✓ Taxonomic filter: {before:,} → {len(df_out):,} occurrences, {df_out['taxon'].nunique():,} taxa")

    return df_out, log


def filter_sampled_region_periods(df, min_taxa=None):
    """
    Keep occurrences whose region x period pair has more than `min_taxa` taxa.

    Rows with a missing region or period are dropped.

    Args:
        df: Occurrence table with region, period and taxonomy
        min_taxa: Threshold (default config.MIN_SPECIES_PER_REGION_PERIOD)

    Returns:
        Filtered table, pre-filter summary (with a boolean 'kept' column) and log info
    """
    log = []
    min_taxa = config.MIN_SPECIES_PER_REGION_PERIOD if min_taxa is None else min_taxa

    summary = summarize_region_periods(df)
    summary['kept'] = summary['n_taxa'] > min_taxa

    kept_pairs = summary.loc[summary['kept'], ['region', 'period']]
    keys = pd.MultiIndex.from_frame(kept_pairs)
    row_keys = pd.MultiIndex.from_frame(df[['region', 'period']].astype(object))
    df_out = df[row_keys.isin(keys)].copy()

    log.append(f"✓ Sampling filter (n_taxa > {min_taxa}):")
    log.append(f"  - Region x period pairs kept: {summary['kept'].sum():,} / {len(summary):,}")
    log.append(f"  - Occurrences: {len(df):,} → {len(df_out):,}")
    dropped_missing = (df['region'].isna() | df['period'].isna()).sum()
    if dropped_missing > 0:
        log.append(f"⚠️  {dropped_missing:,} occurrences without region or period dropped")

    return df_out, summary, log
