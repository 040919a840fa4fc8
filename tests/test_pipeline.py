from __future__ import annotations

import logging
from pathlib import Path

import pytest

from glider_fusion.errors import InconsistentData, InvalidOption
from glider_fusion.families import get_family
from glider_fusion.pipeline import discover_files, load_deployment
from tests.helpers import column_values, write_dba, write_seaglider_logs

T0 = 1564653600.0
DIVE_START = 1499679000.0


def test_discover_files_groups_by_role(slocum_dir: Path) -> None:
    (slocum_dir / "notes.txt").write_text("", encoding="utf-8")
    (slocum_dir / "nested.dba").mkdir()

    files = discover_files(slocum_dir, get_family("slocum"))

    assert [path.name for path in files["nav"]] == [
        "unit_470-2017-212-0-0.dba",
        "unit_470-2017-212-0-1.sba",
    ]
    assert [path.name for path in files["sci"]] == ["unit_470-2017-212-0-0.tba"]


def test_discover_files_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        discover_files(tmp_path / "missing", get_family("slocum"))


def test_load_slocum_deployment(slocum_dir: Path) -> None:
    result = load_deployment(slocum_dir, "slocum")

    record_set = result.record_set
    assert result.ok
    assert result.timestamp == "m_present_time"
    assert record_set.variables == (
        "m_depth",
        "m_present_time",
        "gld_dup_sci_water_temp",
        "sci_m_present_time",
        "sci_water_temp",
    )
    assert column_values(record_set, "m_present_time") == [10.0, 15.0, 20.0, 30.0]
    assert column_values(record_set, "m_depth") == [1.0, None, 2.0, 3.0]
    assert column_values(record_set, "sci_water_temp") == [None, 12.0, 12.4, None]
    assert column_values(record_set, "gld_dup_sci_water_temp") == [None, None, 12.5, None]
    assert result.loaded["nav"] == ("unit_470-2017-212-0-0.dba", "unit_470-2017-212-0-1.sba")
    assert record_set.unit("m_depth") == "m"


def test_full_resolution_files_keep_their_role(slocum_dir: Path) -> None:
    write_dba(
        slocum_dir / "unit_470-2017-212-0-2.eba",
        {"sci_m_present_time": [25.0], "sci_water_temp": [12.6]},
    )
    write_dba(
        slocum_dir / "unit_470-2017-212-0-2.mba",
        {"m_present_time": [40.0], "m_depth": [4.0]},
    )

    result = load_deployment(slocum_dir, "slocum")

    record_set = result.record_set
    assert result.ok
    assert result.loaded["nav"] == (
        "unit_470-2017-212-0-0.dba",
        "unit_470-2017-212-0-1.sba",
        "unit_470-2017-212-0-2.mba",
    )
    assert result.loaded["sci"] == ("unit_470-2017-212-0-0.tba", "unit_470-2017-212-0-2.eba")
    assert column_values(record_set, "m_present_time") == [10.0, 15.0, 20.0, 25.0, 30.0, 40.0]
    assert column_values(record_set, "m_depth") == [1.0, None, 2.0, None, 3.0, 4.0]
    assert column_values(record_set, "sci_water_temp") == [None, 12.0, 12.4, 12.6, None, None]


def test_load_with_filters_and_aliases(slocum_dir: Path) -> None:
    result = load_deployment(
        slocum_dir,
        "slocum",
        {"sensors": ["m_depth"], "period": [12, 25]},
        format="mapping",
    )

    assert list(result.output) == ["m_depth"]
    assert result.output["m_depth"].tolist()[1] == 2.0
    assert result.record_set.rows == 2


def test_decode_failure_is_reported_and_skipped(
    slocum_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (slocum_dir / "broken.dba").write_text("dbd_label DBD\n", encoding="utf-8")
    caplog.set_level(logging.INFO, logger="glider_fusion")

    result = load_deployment(slocum_dir, "slocum")

    assert not result.ok
    assert [failure.path.name for failure in result.failures] == ["broken.dba"]
    assert result.failures[0].role == "nav"
    assert result.record_set.rows == 4
    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert [getattr(record, "event", None) for record in warnings] == ["pipeline.decode_failed"]
    assert "pipeline.done" in [getattr(record, "event", None) for record in caplog.records]


def test_engine_errors_abort_the_load(slocum_dir: Path) -> None:
    write_dba(
        slocum_dir / "unit_470-2017-212-0-2.dba",
        {"m_present_time": [20.0], "m_depth": [2.2]},
    )

    with pytest.raises(InconsistentData):
        load_deployment(slocum_dir, "slocum")


def test_option_of_another_family_is_rejected(slocum_dir: Path) -> None:
    with pytest.raises(InvalidOption):
        load_deployment(slocum_dir, "slocum", timestamp_gli="Timestamp")


def test_load_seaexplorer_deployment(seaexplorer_dir: Path) -> None:
    result = load_deployment(seaexplorer_dir, "seaexplorer")

    record_set = result.record_set
    assert result.timestamp == "Timestamp"
    assert "NAV_RESOURCE" not in record_set.variables
    assert column_values(record_set, "Timestamp") == [T0, T0 + 5.0, T0 + 10.0]
    assert column_values(record_set, "NAV_DEPTH") == [1.5, 2.0, 2.5]
    assert column_values(record_set, "LEGATO_TEMPERATURE") == [None, 14.2, 14.1]
    assert column_values(record_set, "NavState") == [100.0, None, 110.0]


def test_load_seaexplorer_with_rename_policy(seaexplorer_dir: Path) -> None:
    result = load_deployment(seaexplorer_dir, "seaexplorer", policy="rename")

    assert "sci_dup_NAV_DEPTH" in result.record_set.variables


def test_load_seaglider_deployment(seaglider_dir: Path) -> None:
    result = load_deployment(seaglider_dir, "seaglider")

    assert result.timestamp == "elaps_t"
    assert result.start_secs == DIVE_START
    assert column_values(result.record_set, "elaps_t") == [0.0, 5.0, 1800.0, 1805.0]
    assert result.loaded["eng"] == ("p5270001.eng", "p5270002.eng")


def test_empty_deployment(tmp_path: Path) -> None:
    result = load_deployment(tmp_path, "slocum", period=[0, 1])

    assert result.timestamp is None
    assert result.record_set.rows == 0
    assert result.ok


def test_load_seaglider_with_logs(seaglider_dir: Path) -> None:
    write_seaglider_logs(seaglider_dir)

    result = load_deployment(seaglider_dir, "seaglider")

    record_set = result.record_set
    assert result.ok
    assert result.timestamp == "elaps_t"
    assert result.start_secs == DIVE_START
    assert result.loaded["log"] == ("p5270001.log", "p5270002.log")
    assert record_set.variables == ("GC_depth", "GC_phase", "GC_pitch_ctl", "depth", "elaps_t")
    assert column_values(record_set, "elaps_t") == [0.0, 2.0, 5.0, 7.0, 1800.0, 1803.0, 1805.0]
    assert column_values(record_set, "depth") == [0.4, None, 7.0, None, 0.5, None, 8.0]
    assert column_values(record_set, "GC_depth") == [None, 0.3, 7.2, None, None, 0.9, None]
    assert column_values(record_set, "GC_phase") == [None, 1.0, 2.0, None, 1.0, 1.0, 2.0]
    assert record_set.sources == ("p5270001.log", "p5270002.log", "p5270001.eng", "p5270002.eng")


def test_load_seaglider_logs_with_filters(seaglider_dir: Path) -> None:
    write_seaglider_logs(seaglider_dir)

    result = load_deployment(
        seaglider_dir,
        "seaglider",
        variables=["elaps_t", "GC_phase"],
        period=[DIVE_START + 900, DIVE_START + 3600],
    )

    assert result.record_set.variables == ("GC_phase", "elaps_t")
    assert result.start_secs == DIVE_START + 1800
    assert column_values(result.record_set, "elaps_t") == [0.0, 3.0, 5.0]
    assert column_values(result.record_set, "GC_phase") == [1.0, 1.0, 2.0]


@pytest.mark.parametrize(
    "options",
    [
        pytest.param({"timestamp_eng": "elaps_t"}, id="role-name"),
        pytest.param({"timeeng": "elaps_t"}, id="short-alias"),
        pytest.param({"timestamp_log": "st_secs"}, id="log-role"),
    ],
)
def test_seaglider_accepts_role_timestamps(seaglider_dir: Path, options) -> None:
    result = load_deployment(seaglider_dir, "seaglider", options)

    assert result.timestamp == "elaps_t"
    assert column_values(result.record_set, "elaps_t") == [0.0, 5.0, 1800.0, 1805.0]


def test_seaglider_rejects_merge_policy(seaglider_dir: Path) -> None:
    with pytest.raises(InvalidOption) as excinfo:
        load_deployment(seaglider_dir, "seaglider", policy="combine")

    assert excinfo.value.option == "policy"
