"""Small on-disk deployments, one directory per glider family."""

from __future__ import annotations

from pathlib import Path

from .files import write_dba, write_sgeng, write_sglog, write_sx

MISSING = None


def write_slocum_deployment(directory: Path) -> Path:
    """Two navigation and one science ``dba`` files sharing ``sci_water_temp``.

    Navigation rows are at 10, 20 and 30 seconds; science rows at 15 and 20.
    """

    directory.mkdir(parents=True, exist_ok=True)
    write_dba(
        directory / "unit_470-2017-212-0-0.dba",
        {
            "m_present_time": [10.0, 20.0],
            "m_depth": [1.0, 2.0],
            "sci_water_temp": [MISSING, 12.5],
        },
        units={"m_present_time": "timestamp", "m_depth": "m", "sci_water_temp": "degc"},
    )
    write_dba(
        directory / "unit_470-2017-212-0-1.sba",
        {"m_present_time": [30.0], "m_depth": [3.0], "sci_water_temp": [MISSING]},
        units={"m_present_time": "timestamp", "m_depth": "m", "sci_water_temp": "degc"},
    )
    write_dba(
        directory / "unit_470-2017-212-0-0.tba",
        {"sci_m_present_time": [15.0, 20.0], "sci_water_temp": [12.0, 12.4]},
        units={"sci_m_present_time": "timestamp", "sci_water_temp": "degc"},
    )
    return directory


def write_seaexplorer_deployment(directory: Path) -> Path:
    """One ``gli`` and one ``pld`` file, sharing the ``NAV_DEPTH`` variable."""

    directory.mkdir(parents=True, exist_ok=True)
    write_sx(
        directory / "sea035.12.gli.sub.1",
        ["Timestamp", "NavState", "NAV_DEPTH", "Lat"],
        [
            ["01/08/2019 10:00:00.000", "100", "1.5", "4300.5"],
            ["01/08/2019 10:00:10.000", "110", "2.5", "4300.6"],
        ],
    )
    write_sx(
        directory / "sea035.12.pld1.sub.1",
        ["PLD_REALTIMECLOCK", "NAV_DEPTH", "LEGATO_TEMPERATURE", "NAV_RESOURCE"],
        [
            ["01/08/2019 10:00:05.000", "2.0", "14.2", "Surface"],
            ["01/08/2019 10:00:10.000", "2.5", "14.1", "Descent"],
        ],
    )
    return directory


def write_seaglider_deployment(directory: Path) -> Path:
    """Two dives of one mission, written in reverse dive order."""

    directory.mkdir(parents=True, exist_ok=True)
    write_sgeng(
        directory / "p5270002.eng",
        {"elaps_t": [0.0, 5.0], "depth": [0.5, 8.0], "GC.phase": [1.0, 2.0]},
        dive=2,
        start="7 10 117 10 0 0",
    )
    write_sgeng(
        directory / "p5270001.eng",
        {"elaps_t": [0.0, 5.0], "depth": [0.4, 7.0]},
        dive=1,
        start="7 10 117 9 30 0",
    )
    return directory


def write_seaglider_logs(directory: Path) -> Path:
    """Dive logs matching :func:`write_seaglider_deployment`.

    Dive 1 reports ``GC`` lines at 2 and 5 seconds and ``STATE`` lines at 0
    and 7 seconds; dive 2 one ``GC`` line at 3 seconds and one ``STATE`` line
    at 0 seconds.
    """

    directory.mkdir(parents=True, exist_ok=True)
    write_sglog(
        directory / "p5270001.log",
        [
            "$ID,527",
            "$GCHEAD,st_secs,pitch_ctl,depth,gcphase",
            "$GC,2,-1.5,0.3,1",
            "$GC,5,-1.4,7.2,2",
            "$STATE,0,begin dive",
            "$STATE,7,end dive,CONTROL_FINISHED_OK",
            "$FINISH,7.5,1027.1",
        ],
        dive=1,
        start="7 10 117 9 30 0",
    )
    write_sglog(
        directory / "p5270002.log",
        [
            "$ID,527",
            "$GCHEAD,st_secs,pitch_ctl,depth,gcphase",
            "$GC,3,-1.2,0.9,1",
            "$STATE,0,begin dive",
            "$FINISH,8.0,1027.3",
        ],
        dive=2,
        start="7 10 117 10 0 0",
    )
    return directory
