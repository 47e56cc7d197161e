import math

import numpy as np
import pandas as pd
import pytest

from now_pipeline.periods import (
    PERIOD_NAMES,
    PERIODS,
    assign_periods,
    get_period,
    midpoint_of,
    period_of,
)


@pytest.mark.parametrize(
    "age, expected",
    [
        (22, "Aquitanian"),
        (6, "Messinian"),
        (18.3, "Burdigalian"),
        (12.6, "Serravallian"),
        (9, "Tortonian"),
        (4.2, "Zanclean"),
        (2.8, "Piacenzian"),
    ],
)
def test_period_of_known_ages(age, expected):
    assert period_of(age) == expected


@pytest.mark.parametrize("age", [1, 0, 0.4, 23.6, 30, -2])
def test_period_of_outside_all_ranges_is_missing(age):
    assert period_of(age) is None


@pytest.mark.parametrize("age", [None, np.nan, pd.NA, "not an age"])
def test_period_of_missing_input(age):
    assert period_of(age) is None


@pytest.mark.parametrize(
    "age, expected",
    [(5, "Messinian"), (11, "Serravallian"), (15, "Burdigalian"), (20, "Aquitanian")],
)
def test_shared_boundaries_resolve_to_older_stage(age, expected):
    assert period_of(age) == expected


def test_age_is_rounded_before_comparison():
    assert period_of(23.4) == "Aquitanian"
    assert period_of(1.6) == "Piacenzian"
    assert period_of(1.4) is None


def test_period_of_returns_stage_containing_rounded_age():
    for age in np.arange(-1.0, 30.0, 0.25):
        name = period_of(age)
        rounded = int(np.round(age))
        if name is None:
            assert not any(p.contains(rounded) for p in PERIODS)
        else:
            assert get_period(name).contains(rounded)


def test_langhian_midpoint():
    assert midpoint_of("Langhian") == pytest.approx(14.5)


def test_midpoints_are_literature_means():
    assert midpoint_of("Aquitanian") == pytest.approx(21.7)
    assert midpoint_of("Messinian") == pytest.approx(6.25)
    assert midpoint_of("Piacenzian") == pytest.approx(3.1)


@pytest.mark.parametrize("name", ["Gelasian", "", None, np.nan, 12])
def test_midpoint_of_unknown_is_nan(name):
    assert math.isnan(midpoint_of(name))


@pytest.mark.parametrize("age", [22, 18, 14, 12.5, 9, 6, 4, 3])
def test_midpoint_reclassifies_to_same_stage(age):
    name = period_of(age)
    assert period_of(midpoint_of(name)) == name


def test_table_is_ordered_oldest_first():
    assert PERIOD_NAMES[0] == "Aquitanian"
    assert PERIOD_NAMES[-1] == "Piacenzian"
    uppers = [p.upper for p in PERIODS]
    assert uppers == sorted(uppers, reverse=True)
    assert len(PERIODS) == 8


def test_assign_periods_adds_label_and_midpoint():
    df = pd.DataFrame({"mean_age": [22, 6, 1, np.nan]})

    out, log = assign_periods(df)

    assert out["period"].tolist()[:2] == ["Aquitanian", "Messinian"]
    assert out["period"].isna().tolist() == [False, False, True, True]
    assert out.loc[0, "period_midpoint"] == pytest.approx(21.7)
    assert out["period_midpoint"].isna().tolist() == [False, False, True, True]
    assert "period" not in df.columns
    assert any("outside every stage range" in line for line in log)


def test_assign_periods_requires_age_column():
    with pytest.raises(ValueError):
        assign_periods(pd.DataFrame({"age": [1]}))


@pytest.mark.parametrize("age", [np.inf, -np.inf, float("inf")])
def test_period_of_non_finite_is_missing(age):
    assert period_of(age) is None


def test_assign_periods_survives_infinite_ages():
    df = pd.DataFrame({"mean_age": [np.inf, 9.0, -np.inf]})

    out, _ = assign_periods(df)

    assert out["period"].isna().tolist() == [True, False, True]
    assert out.loc[1, "period"] == "Tortonian"
