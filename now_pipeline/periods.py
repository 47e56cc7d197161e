"""
Periods module: Neogene stage table, age -> stage classification and stage -> midpoint age.

Both directions scan the same ordered table. Ages are rounded to the nearest
integer (half-to-even, as numpy does) before comparison against the inclusive
integer ranges. Adjacent stages share their boundary age (5, 11, 15, 20 Ma);
the stage listed first, i.e. the older one, wins.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Period:
    """A named stage with its classification range and literature boundaries (Ma)."""
    name: str
    lower: int
    upper: int
    base_ma: float
    top_ma: float

    @property
    def midpoint(self) -> float:
        return (self.base_ma + self.top_ma) / 2

    def contains(self, age: int) -> bool:
        return self.lower <= age <= self.upper


# Oldest first: scan order decides shared boundary ages
PERIODS = (
    Period("Aquitanian", 20, 23, 23.0, 20.4),
    Period("Burdigalian", 15, 20, 20.4, 16.0),
    Period("Langhian", 14, 15, 15.0, 14.0),
    Period("Serravallian", 11, 13, 13.8, 11.6),
    Period("Tortonian", 8, 11, 11.6, 7.2),
    Period("Messinian", 5, 7, 7.2, 5.3),
    Period("Zanclean", 4, 5, 5.3, 3.6),
    Period("Piacenzian", 2, 3, 3.6, 2.6),
)

PERIOD_NAMES = [p.name for p in PERIODS]

_BY_NAME = {p.name: p for p in PERIODS}


def _as_float(value):
    try:
        if pd.isna(value):
            return None
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if np.isfinite(value) else None


def period_of(age):
    """
    Classify an age (Ma) into a stage name.

    Args:
        age: Numeric age, may be missing

    Returns:
        Stage name, or None when the age is missing, non-finite or falls in no range
    """
    age = _as_float(age)
    if age is None:
        return None

    rounded = int(np.round(age))
    for period in PERIODS:
        if period.contains(rounded):
            return period.name
    return None


def midpoint_of(name):
    """
    Representative age (Ma) of a stage: the mean of its literature boundaries.

    Returns NaN for missing or unrecognized names.
    """
    if not isinstance(name, str):
        return np.nan
    period = _BY_NAME.get(name)
    return period.midpoint if period is not None else np.nan


def get_period(name):
    """Look up a Period by name; raises KeyError for unknown stages."""
    return _BY_NAME[name]


def assign_periods(df, age_col='mean_age'):
    """
    Add 'period' and 'period_midpoint' columns to an occurrence table.

    Args:
        df: DataFrame with an age column
        age_col: Column holding the age used for classification

    Returns:
        New DataFrame and log info
    """
    log = []
    if age_col not in df.columns:
        raise ValueError(f"'{age_col}' column not found")

    df_out = df.copy()
    df_out['period'] = df_out[age_col].map(period_of).astype(object)
    df_out['period'] = df_out['period'].where(df_out['period'].notna(), None)
    df_out['period_midpoint'] = df_out['period'].map(midpoint_of).astype('float64')

    counts = df_out['period'].value_counts()
    unmatched = df_out['period'].isna().sum()

    log.append(f"✓ Periods assigned from '{age_col}':")
    for name in PERIOD_NAMES:
        if name in counts.index:
            log.append(f"  - {name}: {counts[name]:,}")
    if unmatched > 0:
        log.append(f"⚠️  {unmatched:,} occurrences outside every stage range (period = missing)")

    return df_out, log
