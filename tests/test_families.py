from __future__ import annotations

from pathlib import Path

import pytest

from glider_fusion.engine import PrefixPredicate
from glider_fusion.errors import InvalidOption
from glider_fusion.families import FAMILIES, available_families, get_family, resolve_family


def test_registered_families() -> None:
    assert available_families() == ("seaexplorer", "seaglider", "slocum")
    assert get_family(" Slocum ") is FAMILIES["slocum"]


def test_unknown_family() -> None:
    with pytest.raises(InvalidOption) as excinfo:
        get_family("spray")

    assert excinfo.value.option == "family"
    assert "slocum" in str(excinfo.value)


@pytest.mark.parametrize(
    ("family", "filename", "role"),
    [
        pytest.param("slocum", "unit_470-2017-212-0-0.dba", "nav", id="slocum-dba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.sba", "nav", id="slocum-sba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.mba", "nav", id="slocum-mba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.tba", "sci", id="slocum-tba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.nba", "sci", id="slocum-nba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.eba", "sci", id="slocum-eba"),
        pytest.param("slocum", "unit_470-2017-212-0-0.txt", None, id="slocum-other"),
        pytest.param("seaexplorer", "sea035.12.gli.sub.1", "gli", id="sx-gli"),
        pytest.param("seaexplorer", "sea035.12.pld1.sub.1", "pld", id="sx-pld"),
        pytest.param("seaexplorer", "sea035.12.dat.raw.4", "pld", id="sx-dat"),
        pytest.param("seaglider", "p5270001.eng", "eng", id="sg-eng"),
        pytest.param("seaglider", "p5270001.log", "log", id="sg-log"),
        pytest.param("seaglider", "p5270001.nc", None, id="sg-other"),
    ],
)
def test_role_of_filename(family: str, filename: str, role: str | None) -> None:
    assert get_family(family).role_of(filename) == role


def test_family_aliases_are_role_specific() -> None:
    aliases = get_family("slocum").aliases

    assert aliases["timenav"] == "timestamp_a"
    assert aliases["timestamp_sci"] == "timestamp_b"
    assert "timestamp_gli" not in aliases


def test_overrides_accept_role_names() -> None:
    family = resolve_family(
        "slocum",
        {"timestamp_nav": "m_time", "pattern_sci": r"^.*\.ebd$", "predicate_prefix": "x_"},
    )

    assert family.timestamp("nav") == "m_time"
    assert family.role_of("a.ebd") == "sci"
    assert family.predicate == PrefixPredicate("x_")
    assert FAMILIES["slocum"].timestamp_a == "m_present_time"
    assert resolve_family("slocum", None) is FAMILIES["slocum"]


@pytest.mark.parametrize(
    "overrides",
    [
        pytest.param({"policy": "combine"}, id="not-overridable"),
        pytest.param({"timestamp_nav": ""}, id="empty-value"),
        pytest.param({"pattern_nav": "("}, id="bad-pattern"),
    ],
)
def test_invalid_overrides(overrides) -> None:
    with pytest.raises(InvalidOption):
        resolve_family("slocum", overrides)


def test_unknown_role() -> None:
    family = get_family("seaglider")

    with pytest.raises(InvalidOption):
        family.timestamp("sci")
    with pytest.raises(InvalidOption):
        family.decode("sci", Path("x.eng"))


def test_slocum_roles_do_not_overlap() -> None:
    family = get_family("slocum")
    nav = family.pattern("nav")
    sci = family.pattern("sci")

    for letter in "abcdefghijklmnopqrstuvwxyz":
        name = f"unit_470-2017-212-0-0.{letter}ba"
        assert not (nav.match(name) and sci.match(name)), name


def test_seaglider_stacks_dives_without_policy() -> None:
    family = get_family("seaglider")

    assert family.roles == ("eng", "log")
    assert family.timestamp("log") == "st_secs"
    assert not family.merges
    assert get_family("slocum").merges
    assert family.aliases["timestamp_eng"] == "timestamp_a"
