"""
Quality Control (QC) module: Assertions and data quality checks.
"""

from .periods import PERIOD_NAMES


def check_unique_ids(df, id_col='occurrence_id'):
    """Assert IDs are unique (no duplicates)."""
    assert df[id_col].duplicated().sum() == 0, f"Duplicate {id_col} values found!"
    assert df[id_col].isnull().sum() == 0, f"Null {id_col} values found!"
    return f"✓ {id_col} is unique (n={len(df)})"

def check_age_order(df, min_col='min_age', max_col='max_age'):
    """Assert min age <= max age wherever both are present."""
    both = df[min_col].notna() & df[max_col].notna()
    reversed_ages = (df.loc[both, min_col] > df.loc[both, max_col]).sum()
    assert reversed_ages == 0, f"{reversed_ages} occurrences with {min_col} > {max_col}"
    return f"✓ {min_col} <= {max_col} for {both.sum()} dated occurrences"

def check_period_labels(df, period_col='period'):
    """Assert period labels come from the stage table."""
    labels = set(df[period_col].dropna().unique())
    unknown = labels - set(PERIOD_NAMES)
    assert not unknown, f"Unknown period labels: {sorted(unknown)}"
    return f"✓ {len(labels)} period labels, all known ({df[period_col].isna().sum()} missing)"

def check_geometry_validity(gdf):
    """Assert all non-missing geometries are valid."""
    present = gdf.geometry.notna()
    assert (~gdf.geometry[present].is_valid).sum() == 0, "Found invalid geometries!"
    return f"✓ All {present.sum()} geometries are valid"

def check_crs(gdf, expected_crs='EPSG:4326'):
    """Assert CRS matches expected."""
    assert gdf.crs == expected_crs, f"CRS mismatch: {gdf.crs} != {expected_crs}"
    return f"✓ CRS is {expected_crs}"

def check_region_coverage(gdf_joined, min_coverage=0.80, label_col='region'):
    """Assert share of occurrences with a region meets minimum threshold."""
    total = len(gdf_joined)
    matched = gdf_joined[label_col].notna().sum()
    coverage = matched / total if total > 0 else 0

    assert coverage >= min_coverage, f"Region coverage {coverage:.1%} < {min_coverage:.1%}"
    return f"✓ Region coverage: {coverage:.1%}"

def check_grid_counts(gdf_points, gdf_grid):
    """Verify that aggregated n_occurrences matches individual occurrence count."""
    total_with_cell = gdf_points['grid_id'].notna().sum()
    sum_n = gdf_grid['n_occurrences'].sum()

    assert total_with_cell == sum_n, (
        f"Occurrence count mismatch: {total_with_cell} individual != {sum_n} aggregated"
    )
    return f"✓ Grid counts match: {sum_n:,} total"

def print_qc_report(checks):
    """
    Print formatted QC report.

    Args:
        checks: List of (name, check_func, kwargs) tuples

    Returns:
        Number of failed checks
    """
    print("\n" + "=" * 80)
    print("QUALITY CONTROL REPORT")
    print("=" * 80)

    failures = 0
    for name, check_func, kwargs in checks:
        try:
            result = check_func(**kwargs)
            print(f"\n{name}")
            print(f"  {result}")
        except AssertionError as e:
            failures += 1
            print(f"\n❌ {name}")
            print(f"  ERROR: {e}")
        except (KeyError, ValueError, TypeError) as e:
            failures += 1
            print(f"\n⚠️  {name}")
            print(f"  WARNING: {e}")

    print("\n" + "=" * 80)
    return failures
