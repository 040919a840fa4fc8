from __future__ import annotations

import numpy as np
import pytest

from glider_fusion.engine import RenamePlan, has_prefix, merge, merge_record_sets
from glider_fusion.errors import InconsistentData, InvalidOption, MissingTimestamp
from glider_fusion.records import RecordSet
from tests.helpers import NAN, build_record_set, column_values


@pytest.fixture
def role_a() -> RecordSet:
    return build_record_set(
        {"ts_a": [1.0, 2.0, 3.0], "x": [10.0, 20.0, 30.0]},
        source="a.dba",
        units={"x": "m"},
    )


@pytest.fixture
def role_b() -> RecordSet:
    return build_record_set(
        {"ts_b": [2.0, 4.0], "x": [21.0, 41.0]},
        source="b.tba",
        units={"x": "dbar"},
    )


def test_shared_variable_of_role_b_is_renamed(role_a: RecordSet, role_b: RecordSet) -> None:
    result = merge(role_a, role_b, "ts_a", "ts_b")

    assert result.variables == ("ts_a", "x", "ts_b", "sci_dup_x")
    assert column_values(result, "ts_a") == [1.0, 2.0, 3.0, 4.0]
    assert column_values(result, "x") == [10.0, 20.0, 30.0, None]
    assert column_values(result, "sci_dup_x") == [None, 21.0, None, 41.0]
    assert column_values(result, "ts_b") == [None, 2.0, None, 4.0]
    assert result.unit("x") == "m"
    assert result.unit("sci_dup_x") == "dbar"
    assert result.sources == ("a.dba", "b.tba")


def test_predicate_match_renames_role_a() -> None:
    nav = build_record_set({"m_present_time": [1.0], "sci_water_temp": [9.0]})
    sci = build_record_set({"sci_m_present_time": [1.0], "sci_water_temp": [9.5]})

    result = merge(nav, sci, "m_present_time", "sci_m_present_time")

    assert result.variables == (
        "m_present_time",
        "gld_dup_sci_water_temp",
        "sci_m_present_time",
        "sci_water_temp",
    )
    assert column_values(result, "sci_water_temp") == [9.5]


def test_timestamp_is_looked_up_after_renaming() -> None:
    nav = build_record_set({"sci_time": [1.0], "depth": [1.0]})
    sci = build_record_set({"sci_time": [2.0], "temp": [1.0]})

    with pytest.raises(MissingTimestamp) as excinfo:
        merge(nav, sci, "sci_time", "sci_time")

    assert excinfo.value.variable == "sci_time"


def test_rename_plan_with_custom_predicate_and_tags() -> None:
    plan = RenamePlan.build(
        ["time", "depth", "PLD_temp"],
        ["PLD_temp", "depth", "other"],
        predicate=has_prefix("PLD_"),
        tag_a="a_",
        tag_b="b_",
    )

    assert plan
    assert plan.duplicates == ("PLD_temp", "depth")
    assert dict(plan.a) == {"PLD_temp": "a_PLD_temp"}
    assert dict(plan.b) == {"depth": "b_depth"}
    assert plan.apply_b(("depth", "other")) == ("b_depth", "other")
    assert not RenamePlan.build(["a"], ["b"])


def test_merge_with_empty_role_is_identity(role_a: RecordSet, role_b: RecordSet) -> None:
    empty = RecordSet.empty()

    assert merge_record_sets(role_a, empty, "ts_a", "ts_b") == (role_a, "ts_a")
    assert merge_record_sets(empty, role_b, "ts_a", "ts_b") == (role_b, "ts_b")
    assert merge_record_sets(empty, empty, "ts_a", "ts_b") == (empty, None)
    assert merge(role_a, empty, "ts_a", "ts_b") == role_a


def test_time_filter_uses_role_b_timestamp_when_role_a_is_empty(role_b: RecordSet) -> None:
    result = merge(RecordSet.empty(), role_b, "ts_a", "ts_b", period=(3.0, 5.0))

    assert column_values(result, "ts_b") == [4.0]


def test_both_roles_empty_skip_time_filter() -> None:
    result = merge(RecordSet.empty(), RecordSet.empty(), "ts_a", "ts_b", period=(0, 1), format="mapping")

    assert result == {}


def test_merge_output_is_sorted_and_unique(role_a: RecordSet, role_b: RecordSet) -> None:
    result = merge(role_a, role_b, "ts_a", "ts_b")

    stamps = result.column("ts_a")
    assert bool(np.all(np.diff(stamps) > 0))


def test_merge_filters_after_merging(role_a: RecordSet, role_b: RecordSet) -> None:
    result = merge(
        role_a,
        role_b,
        options={"timestamp_a": "ts_a", "timestamp_b": "ts_b", "period": [2, 4], "format": "mapping"},
        variables=["sci_dup_x"],
    )

    assert list(result) == ["sci_dup_x"]
    assert column_values(build_record_set(result), "sci_dup_x") == [21.0, None, 41.0]


def test_merge_requires_timestamps(role_a: RecordSet, role_b: RecordSet) -> None:
    with pytest.raises(InvalidOption) as excinfo:
        merge(role_a, role_b, "ts_a")

    assert excinfo.value.option == "timestamp_b"


def test_unknown_policy_is_rejected(role_a: RecordSet, role_b: RecordSet) -> None:
    with pytest.raises(InvalidOption):
        merge_record_sets(role_a, role_b, "ts_a", "ts_b", policy="overwrite")


def test_combine_policy_shares_columns() -> None:
    gli = build_record_set(
        {"Timestamp": [1.0, 2.0, 3.0], "NAV_DEPTH": [1.0, 2.0, NAN], "Lat": [43.0, 43.1, 43.2]},
        source="a.gli",
    )
    pld = build_record_set(
        {"PLD_REALTIMECLOCK": [2.0, 3.0, 4.0], "NAV_DEPTH": [2.0, 3.0, 4.0], "TEMP": [14.0, 14.1, 14.2]},
        source="a.pld1",
    )

    result = merge(gli, pld, "Timestamp", "PLD_REALTIMECLOCK", policy="combine")

    assert result.variables == ("Lat", "NAV_DEPTH", "PLD_REALTIMECLOCK", "TEMP", "Timestamp")
    assert column_values(result, "Timestamp") == [1.0, 2.0, 3.0, 4.0]
    assert column_values(result, "NAV_DEPTH") == [1.0, 2.0, 3.0, 4.0]
    assert column_values(result, "Lat") == [43.0, 43.1, 43.2, None]
    assert column_values(result, "TEMP") == [None, 14.0, 14.1, 14.2]


def test_combine_policy_detects_conflicts() -> None:
    gli = build_record_set({"Timestamp": [1.0], "NAV_DEPTH": [1.0]})
    pld = build_record_set({"PLD_REALTIMECLOCK": [1.0], "NAV_DEPTH": [1.5]})

    with pytest.raises(InconsistentData) as excinfo:
        merge_record_sets(gli, pld, "Timestamp", "PLD_REALTIMECLOCK", policy="combine")

    assert excinfo.value.variable == "NAV_DEPTH"
    assert excinfo.value.timestamp == 1.0
