from __future__ import annotations

from datetime import datetime, timezone

import pytest

from glider_fusion.engine import ALL, EngineOptions, MergeOptions
from glider_fusion.errors import InvalidFormat, InvalidOption


def test_defaults_are_passthrough() -> None:
    options = EngineOptions()

    assert options.format == "array"
    assert options.variables == ALL
    assert options.period == ALL
    assert options.is_passthrough


@pytest.mark.parametrize(
    ("given", "expected"),
    [
        pytest.param("array", "array", id="array"),
        pytest.param("Mapping", "mapping", id="case-insensitive"),
        pytest.param("struct", "mapping", id="struct-alias"),
        pytest.param("matrix", "array", id="matrix-alias"),
    ],
)
def test_format_aliases(given: str, expected: str) -> None:
    assert EngineOptions(format=given).format == expected


@pytest.mark.parametrize("value", ["table", 3, None])
def test_unknown_format_is_rejected(value) -> None:
    with pytest.raises(InvalidFormat) as excinfo:
        EngineOptions(format=value)
    assert excinfo.value.format == value


@pytest.mark.parametrize(
    ("given", "expected"),
    [
        pytest.param("all", ALL, id="all"),
        pytest.param(None, ALL, id="none"),
        pytest.param("m_depth", ("m_depth",), id="single-name"),
        pytest.param(["m_depth", "m_lat"], ("m_depth", "m_lat"), id="list"),
        pytest.param([], (), id="empty-list"),
    ],
)
def test_variable_filters(given, expected) -> None:
    assert EngineOptions(variables=given).variables == expected


@pytest.mark.parametrize("value", [3, ["ok", 4], {"m_depth": True}])
def test_invalid_variable_filters(value) -> None:
    with pytest.raises(InvalidOption):
        EngineOptions(variables=value)


def test_period_accepts_datetimes_as_utc() -> None:
    start = datetime(2017, 7, 10, 9, 30)
    end = datetime(2017, 7, 10, 10, 0, tzinfo=timezone.utc)

    options = EngineOptions(period=[start, end])

    assert options.period == (1499679000.0, 1499680800.0)
    assert options.filters_period


@pytest.mark.parametrize(
    "value",
    [
        pytest.param([1.0], id="one-bound"),
        pytest.param([2.0, 1.0], id="reversed"),
        pytest.param(["a", "b"], id="text-bounds"),
        pytest.param([0.0, float("inf")], id="infinite"),
        pytest.param("yesterday", id="text"),
        pytest.param([True, 2.0], id="boolean"),
    ],
)
def test_invalid_periods(value) -> None:
    with pytest.raises(InvalidOption) as excinfo:
        EngineOptions(period=value)
    assert excinfo.value.option == "period"


def test_from_mapping_resolves_aliases_and_rejects_unknown_keys() -> None:
    options = EngineOptions.from_mapping({"Sensors": ["m_depth"], "FORMAT": "struct"})

    assert options.variables == ("m_depth",)
    assert options.format == "mapping"

    with pytest.raises(InvalidOption) as excinfo:
        EngineOptions.from_mapping({"colour": "blue"})
    assert excinfo.value.option == "colour"


def test_resolve_merges_overrides() -> None:
    base = EngineOptions(variables=["m_depth"])

    resolved = EngineOptions.resolve(base, {"format": "mapping"})

    assert resolved.variables == ("m_depth",)
    assert resolved.format == "mapping"
    assert EngineOptions.resolve(base) is base


def test_merge_options_aliases_and_policy() -> None:
    options = MergeOptions.from_mapping(
        {"timenav": "m_present_time", "timeb": "sci_m_present_time", "policy": "Combine"},
        aliases={"timenav": "timestamp_a"},
    )

    assert options.timestamp_a == "m_present_time"
    assert options.timestamp_b == "sci_m_present_time"
    assert options.policy == "combine"
    assert MergeOptions().policy is None


def test_merge_options_reject_bad_values() -> None:
    with pytest.raises(InvalidOption) as excinfo:
        MergeOptions(policy="overwrite")
    assert excinfo.value.option == "policy"

    with pytest.raises(InvalidOption) as excinfo:
        MergeOptions(timestamp_a="")
    assert excinfo.value.option == "timestamp_a"


def test_engine_options_reject_merge_only_keys() -> None:
    with pytest.raises(InvalidOption):
        EngineOptions.from_mapping({"timestamp_a": "time"})
