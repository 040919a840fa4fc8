"""Example that concatenates and merges two Slocum roles, then exports CSV."""

from __future__ import annotations

from glider_fusion import RecordSet, concatenate, merge
from glider_fusion.exporters import csv_exporter

NAV_FILES = [
    RecordSet.from_columns(
        {"m_present_time": [10.0, 20.0], "m_depth": [1.0, 2.0]},
        sources=["unit_470-2017-212-0-0.dba"],
    ),
    RecordSet.from_columns(
        {"m_present_time": [30.0], "m_depth": [3.0]},
        sources=["unit_470-2017-212-0-1.dba"],
    ),
]
SCI_FILES = [
    RecordSet.from_columns(
        {"sci_m_present_time": [15.0, 20.0], "sci_water_temp": [12.0, 12.4]},
        sources=["unit_470-2017-212-0-0.tba"],
    ),
]


def main() -> None:
    nav = concatenate(NAV_FILES, "m_present_time")
    sci = concatenate(SCI_FILES, "sci_m_present_time")
    merged = merge(nav, sci, "m_present_time", "sci_m_present_time", period=[12, 30])
    print(csv_exporter(merged))


if __name__ == "__main__":
    main()
