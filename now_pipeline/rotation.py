"""
Rotation module: back-rotation of present-day coordinates to their position at deposition time.

The plate model itself is an external collaborator. Anything callable as
``rotate(age, lat, lon) -> (lat, lon)`` can be plugged into rotate_coordinates().
"""

from pathlib import Path

import numpy as np
import pandas as pd

from . import config


def identity_rotation(age, lat, lon):
    """Keep present-day coordinates (no plate model)."""
    return lat, lon


class PaleoCoordinateTable:
    """
    Rotation backed by precomputed paleocoordinates.

    The table holds one row per reconstructed point, for example the batch
    output of a plate-reconstruction web service, with columns
    ``age, lat, lon, paleo_lat, paleo_lon``. Lookups match on all three
    inputs rounded to ``precision`` decimals; a miss yields (NaN, NaN).
    """

    COLUMNS = ["age", "lat", "lon", "paleo_lat", "paleo_lon"]

    def __init__(self, table: pd.DataFrame, precision: int = None):
        missing = [c for c in self.COLUMNS if c not in table.columns]
        if missing:
            raise ValueError(f"Paleocoordinate table missing columns {missing}")

        self.precision = config.PALEOCOORD_PRECISION if precision is None else precision
        self._lookup = {}
        for row in table[self.COLUMNS].itertuples(index=False):
            key = self._key(row.age, row.lat, row.lon)
            if key is not None:
                self._lookup.setdefault(key, (float(row.paleo_lat), float(row.paleo_lon)))

    @classmethod
    def from_csv(cls, filepath, precision: int = None, **kwargs):
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Paleocoordinate file not found: {filepath}")
        return cls(pd.read_csv(filepath, **kwargs), precision=precision)

    def _key(self, age, lat, lon):
        if pd.isna(age) or pd.isna(lat) or pd.isna(lon):
            return None
        return (
            round(float(age), self.precision),
            round(float(lat), self.precision),
            round(float(lon), self.precision),
        )

    def __len__(self):
        return len(self._lookup)

    def __call__(self, age, lat, lon):
        key = self._key(age, lat, lon)
        if key is None:
            return np.nan, np.nan
        return self._lookup.get(key, (np.nan, np.nan))


def rotate_coordinates(df, rotate=identity_rotation, age_col='period_midpoint'):
    """
    Add 'paleo_latitude' / 'paleo_longitude' by applying a rotation to each occurrence.

    Rows with a missing age or missing coordinates get missing rotated coordinates;
    the rotation is not called for them.

    Args:
        df: Occurrence DataFrame with latitude, longitude and age_col
        rotate: Callable (age, lat, lon) -> (lat, lon)
        age_col: Age used for the reconstruction

    Returns:
        New DataFrame and log info
    """
    log = []
    for col in (age_col, 'latitude', 'longitude'):
        if col not in df.columns:
            raise ValueError(f"'{col}' column not found")

    df_out = df.copy()
    paleo_lat = np.full(len(df_out), np.nan)
    paleo_lon = np.full(len(df_out), np.nan)

    usable = (df_out[age_col].notna() & df_out['latitude'].notna() & df_out['longitude'].notna()).to_numpy()
    ages = df_out[age_col].to_numpy()
    lats = df_out['latitude'].to_numpy()
    lons = df_out['longitude'].to_numpy()

    for i in np.flatnonzero(usable):
        paleo_lat[i], paleo_lon[i] = rotate(ages[i], lats[i], lons[i])

    df_out['paleo_latitude'] = paleo_lat
    df_out['paleo_longitude'] = paleo_lon

    rotated = int(df_out['paleo_latitude'].notna().sum())
    log.append(f"✓ Back-rotation ({getattr(rotate, '__name__', type(rotate).__name__)}) at '{age_col}':")
    log.append(f"  - Rotated: {rotated:,} / {len(df_out):,}")
    skipped = int((~usable).sum())
    if skipped > 0:
        log.append(f"⚠️  {skipped:,} occurrences skipped (missing age or coordinates)")
    failed = int(usable.sum()) - rotated
    if failed > 0:
        log.append(f"⚠️  {failed:,} occurrences without a rotation result")

    return df_out, log
