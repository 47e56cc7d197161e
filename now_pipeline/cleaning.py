"""
Cleaning module: Column subsetting, type coercion and age normalization for NOW occurrences.
"""

import pandas as pd
import numpy as np
import re
from . import config


AGE_COLUMNS = ["min_age", "max_age"]
COORD_COLUMNS = ["latitude", "longitude"]
TAXON_COLUMNS = ["order", "family", "genus", "species"]


def parse_numeric_series(s: pd.Series) -> pd.Series:
    """
    Parse a numeric text column, accepting both '12.5' and '12,5' decimal formats.

    Decision: a single comma with no dot is a decimal separator; otherwise commas
    are thousands separators.

    Args:
        s: pd.Series of strings or numbers

    Returns:
        pd.Series of float values (NaN for unparseable or non-finite)
    """
    def parse_single(val):
        if pd.isna(val) or val == '':
            return np.nan
        if isinstance(val, (int, float, np.integer, np.floating)):
            return float(val) if np.isfinite(val) else np.nan

        val_str = re.sub(r'[\s\xa0]', '', str(val))

        if val_str.count(',') == 1 and '.' not in val_str:
            val_str = val_str.replace(',', '.')
        else:
            val_str = val_str.replace(',', '')

        try:
            parsed = float(val_str)
        except ValueError:
            return np.nan
        return parsed if np.isfinite(parsed) else np.nan

    return s.apply(parse_single).astype('float64')


def _strip_text(s: pd.Series) -> pd.Series:
    """Strip text values; blanks and missing values become NaN."""
    stripped = s.where(s.isna(), s.astype(str).str.strip())
    return stripped.mask(stripped == '')


def subset_columns(df_raw, column_map=None, id_field=None):
    """
    Keep only the columns used downstream and rename them to clean names.

    Args:
        df_raw: Raw NOW export
        column_map: Raw -> clean column mapping (default config.OCCURRENCE_COLUMNS)
        id_field: Optional raw occurrence id column (default config.OCCURRENCE_ID_FIELD)

    Returns:
        Subset DataFrame and log info
    """
    column_map = column_map or config.OCCURRENCE_COLUMNS
    id_field = id_field or config.OCCURRENCE_ID_FIELD
    log = []

    # NOW exports mix upper-case headers with stray whitespace
    df = df_raw.copy()
    df.columns = [str(col).strip().upper() for col in df.columns]
    wanted = {raw.upper(): clean for raw, clean in column_map.items()}

    missing = [raw for raw in wanted if raw not in df.columns]
    if missing:
        raise ValueError(f"Required columns missing from occurrence table: {missing}")

    keep = list(wanted)
    has_id = id_field.upper() in df.columns
    if has_id:
        keep = [id_field.upper()] + keep

    df_subset = df[keep].rename(columns=wanted).reset_index(drop=True)
    if has_id:
        df_subset = df_subset.rename(columns={id_field.upper(): 'occurrence_id'})
        df_subset['occurrence_id'] = _strip_text(df_subset['occurrence_id'])
        log.append(f"✓ occurrence_id taken from '{id_field}'")
    else:
        lid = _strip_text(df_subset['locality_id'])
        sid = _strip_text(df_subset['species_id'])
        both = lid.notna() & sid.notna()
        ids = pd.Series(np.nan, index=df_subset.index, dtype=object)
        ids[both] = lid[both] + '-' + sid[both]
        df_subset.insert(0, 'occurrence_id', ids)
        log.append(f"✓ occurrence_id built from locality_id + species_id")

    # Rows without an id get one from their position in the export
    no_id = df_subset['occurrence_id'].isna()
    if no_id.any():
        df_subset.loc[no_id, 'occurrence_id'] = [f'row-{i}' for i in df_subset.index[no_id]]
        log.append(f"⚠️  {no_id.sum()} occurrences without an id; assigned row-<n> ids")

    log.append(f"✓ Column subset: {df_raw.shape[1]} → {df_subset.shape[1]} columns")

    return df_subset.reset_index(drop=True), log


def mean_age(min_age: pd.Series, max_age: pd.Series) -> pd.Series:
    """Arithmetic mean of the two age estimates, ignoring missing values."""
    return pd.concat([min_age, max_age], axis=1).mean(axis=1, skipna=True)


def clean_occurrences(df_subset):
    """
    Clean subset occurrences: fix numeric types, enforce age order, add mean age.

    Args:
        df_subset: Output of subset_columns()

    Returns:
        Cleaned DataFrame and log info
    """
    log = []
    df_clean = df_subset.copy()

    # 1. Ages and coordinates to float
    for col in AGE_COLUMNS + COORD_COLUMNS:
        before_null = df_clean[col].isna().sum()
        df_clean[col] = parse_numeric_series(df_clean[col])
        new_null = df_clean[col].isna().sum() - before_null
        if new_null > 0:
            log.append(f"⚠️  {col}: {new_null} unparseable values set to NaN")
    log.append(f"✓ Ages and coordinates converted to float")

    # 2. Out-of-range coordinates become missing (kept as rows)
    bad_lat = df_clean['latitude'].notna() & ~df_clean['latitude'].between(-90, 90)
    bad_lon = df_clean['longitude'].notna() & ~df_clean['longitude'].between(-180, 180)
    bad_coords = bad_lat | bad_lon
    if bad_coords.any():
        df_clean.loc[bad_coords, COORD_COLUMNS] = np.nan
        log.append(f"⚠️  {bad_coords.sum()} occurrences with out-of-range coordinates set to NaN")

    # 3. Enforce min_age <= max_age
    swapped = df_clean['min_age'] > df_clean['max_age']
    if swapped.any():
        df_clean.loc[swapped, AGE_COLUMNS] = df_clean.loc[swapped, ['max_age', 'min_age']].values
        log.append(f"⚠️  Swapped min/max age for {swapped.sum()} occurrences")

    # 4. Midpoint age
    df_clean['mean_age'] = mean_age(df_clean['min_age'], df_clean['max_age'])
    no_age = df_clean['mean_age'].isna().sum()
    if no_age > 0:
        log.append(f"⚠️  {no_age} occurrences without any age estimate")
    log.append(f"✓ mean_age computed")

    # 5. Tidy taxonomy strings
    for col in TAXON_COLUMNS:
        df_clean[col] = df_clean[col].where(df_clean[col].isna(), df_clean[col].astype(str).str.strip())
    log.append(f"✓ Taxonomy columns stripped")

    # 6. Remove complete duplicates
    dup_count = df_clean.duplicated().sum()
    if dup_count > 0:
        log.append(f"⚠️  Removed {dup_count} duplicate occurrence rows")
        df_clean = df_clean.drop_duplicates()

    # 7. Remove duplicate occurrence_ids (keep first, missing ids are never duplicates)
    dup_ids = df_clean['occurrence_id'].notna() & df_clean['occurrence_id'].duplicated(keep='first')
    duplicate_ids = dup_ids.sum()
    if duplicate_ids > 0:
        log.append(f"⚠️  Removed {duplicate_ids} duplicate occurrence_ids (kept first occurrence)")
        df_clean = df_clean[~dup_ids]

    log.append(f"✓ Occurrence cleaning complete: {df_subset.shape} → {df_clean.shape}")

    return df_clean.reset_index(drop=True), log
