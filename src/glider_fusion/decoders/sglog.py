"""Reader for Seaglider dive log (``log``) files.

A log file starts with ``key: value`` header lines closed by ``data:``.
Every following line reports one parameter as ``$NAME,value,...``.  The
member names of multi-valued parameters are fixed per parameter, except
for ``GC`` and the device and sensor consumption parameters whose members
are announced by the ``$GCHEAD``, ``$DEVICES`` and ``$SENSORS`` lines.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Iterable, Iterator, Mapping

import numpy as np

from ..engine.logs import DiveLog
from ..errors import DecodeError
from ..records import Column, DecodedFile, NumericColumn, TextColumn, assemble_record_set
from ._text import iter_lines, source_name
from .sgeng import parse_start

__all__ = ["LOG_HEADER_TAGS", "PARAMETER_MEMBERS", "read_sglog"]

LOG_HEADER_TAGS: tuple[str, ...] = ("version", "glider", "mission", "dive", "start")

_GPS_MEMBERS = ("ddmmyy", "hhmmss", "fixlat", "fixlon", "ttffix", "hordop", "ttafix", "magvar")
_ERROR_MEMBERS = (
    "bufoverrun", "interrupts",
    "fopen_errs", "fwrit_errs", "fclos_errs", "fopen_rets", "fwrit_rets", "fclos_rets",
    "ptch_errs", "roll_errs", "vbd_errs", "ptch_rets", "roll_rets", "vbd_rets",
    "gps_mis", "gps_pps",
)

PARAMETER_MEMBERS: Mapping[str, tuple[str, ...]] = {
    "SPEED_LIMITS": ("min_spd", "max_spd"),
    "TGT_LATLONG": ("tgt_lat", "tgt_lon"),
    "KALMAN_CONTROL": ("spd_east", "spd_nrth"),
    "KALMAN_X": ("cur_mean_east", "cur_diur_east", "cur_semi_east", "gld_wspd_east", "delta_x"),
    "KALMAN_Y": ("cur_mean_nrth", "cur_diur_nrth", "cur_semi_nrth", "gld_wspd_nrth", "delta_y"),
    "MHEAD_RNG_PITCHd_Wd": ("mag_head", "tgt_rnge", "ptch_ang", "vert_vel"),
    "FINISH": ("dpth", "dens"),
    "STATE": ("st_secs", "status", "result"),
    "SM_CCo": ("st_secs", "pmp_secs", "pmp_amps", "pmp_rets", "pmp_errs", "pmp_cnts", "pmp_ccss"),
    "ALTIM_BOTTOM_PING": ("dpth", "rnge"),
    "24V_AH": ("volts_min", "ampsh_tot"),
    "10V_AH": ("volts_min", "ampsh_tot"),
    "DATA_FILE_SIZE": ("bytes", "samples"),
    "CFSIZE": ("bytes_total", "bytes_free"),
    "ERRORS": _ERROR_MEMBERS,
    "CURRENT": ("cur_spd", "cur_dir", "cur_val"),
    "GPS1": _GPS_MEMBERS,
    "GPS2": _GPS_MEMBERS,
    "GPS": _GPS_MEMBERS,
}

_RENAMES: Mapping[str, str] = {
    "_CALLS": "CALLS",
    "_XMS_NAKs": "XMS_NAKs",
    "_XMS_TOUTs": "XMS_TOUTs",
    "_SM_DEPTHo": "SM_DEPTHo",
    "_SM_ANGLEo": "SM_ANGLEo",
    "24V_AH": "x24V_AH",
    "10V_AH": "x10V_AH",
    "GPS1": "GPSFIX",
    "GPS2": "GPSFIX",
    "GPS": "GPSFIX",
}

# Lines announcing the members of other parameters instead of carrying values.
_MEMBER_LINES: Mapping[str, tuple[str, ...]] = {
    "GCHEAD": ("GC",),
    "DEVICES": ("DEVICE_SECS", "DEVICE_MAMPS"),
    "SENSORS": ("SENSOR_SECS", "SENSOR_MAMPS"),
}

# GPS1 and GPS2 lines omit the date field.
_LEADING_BLANKS: Mapping[str, int] = {"GPS1": 1, "GPS2": 1}

_TEXT_MEMBERS = frozenset({"GPSFIX_ddmmyy", "GPSFIX_hhmmss"})


def _member_name(value: str) -> str:
    name = re.sub(r"\W", "_", value.strip())
    return f"x{name}" if name[:1].isdigit() else name


def _read_header(lines: Iterator[tuple[int, str]], source: str) -> dict[str, str]:
    header: dict[str, str] = {}
    for number, line in lines:
        if not line.strip():
            continue
        key, separator, value = line.partition(":")
        if not separator or key.startswith("$"):
            raise DecodeError("malformed header line", source=source, line=number)
        key = key.strip()
        if key == "data":
            break
        header[key] = value.strip()
    else:
        raise DecodeError("missing data: marker", source=source)

    missing = [tag for tag in LOG_HEADER_TAGS if tag not in header]
    if missing:
        raise DecodeError(f"missing header tags: {', '.join(missing)}", source=source)
    return header


def _column(name: str, cells: list[str]) -> Column:
    if name in _TEXT_MEMBERS:
        return TextColumn(name, tuple(cells))
    try:
        values = [float(cell) if cell else math.nan for cell in cells]
    except ValueError:
        return TextColumn(name, tuple(cells))
    return NumericColumn(name, np.asarray(values, dtype=np.float64))


def _assemble(
    field: str,
    members: tuple[str, ...],
    rows: list[list[str]],
    source: str,
) -> DecodedFile:
    width = max([len(members)] + [len(row) for row in rows])
    if width == 1 and not members:
        names = [field]
    else:
        names = [f"{field}_{member}" for member in members]
        names += [f"{field}_field{index:02d}" for index in range(len(members) + 1, width + 1)]
    padded = [row + [""] * (width - len(row)) for row in rows]
    columns = [_column(name, [row[index] for row in padded]) for index, name in enumerate(names)]
    return assemble_record_set(columns, sources=(source,))


def _keep(decoded: DecodedFile, field: str, wanted: set[str] | None) -> DecodedFile | None:
    if wanted is None or field in wanted:
        return decoded
    record_set = decoded.record_set
    variables = tuple(name for name in record_set.variables if name in wanted)
    text = {name: column for name, column in decoded.text.items() if name in wanted}
    if not variables and not text:
        return None
    return DecodedFile(record_set=record_set.take(variables=variables), text=text)


def read_sglog(path: Path | str, params: Iterable[str] | None = None) -> DiveLog:
    """Decode the Seaglider dive log at ``path``.

    ``params`` optionally restricts the parameters kept: a parameter name
    keeps all of its members and a member column name such as
    ``FINISH_dens`` keeps that member alone.
    """

    source_path = Path(path)
    source = source_name(source_path)
    lines = iter_lines(source_path)
    header = _read_header(lines, source)

    members: dict[str, tuple[str, ...]] = dict(PARAMETER_MEMBERS)
    fields: dict[str, list[list[str]]] = {}
    field_members: dict[str, tuple[str, ...]] = {}
    for number, line in lines:
        if not line.strip():
            continue
        if not line.startswith("$"):
            raise DecodeError(f"bad data line {line!r}", source=source, line=number)
        head, *values = line[1:].split(",")
        parameter = head.strip()
        if not parameter:
            raise DecodeError("missing parameter name", source=source, line=number)
        values = [value.strip() for value in values]
        if parameter in _MEMBER_LINES:
            names = tuple(_member_name(value) for value in values if value and value != "nil")
            for announced in _MEMBER_LINES[parameter]:
                members[announced] = names
            header[parameter] = ",".join(names)
            continue
        field = _RENAMES.get(parameter, parameter)
        values = [""] * _LEADING_BLANKS.get(parameter, 0) + values
        fields.setdefault(field, []).append(values)
        field_members.setdefault(field, members.get(parameter, ()))

    try:
        mission = int(header["mission"])
        dive = int(header["dive"])
    except ValueError as exc:
        raise DecodeError("invalid mission or dive number", source=source) from exc

    wanted: set[str] | None = None
    if params is not None:
        wanted = {params} if isinstance(params, str) else set(params)
    parameters: dict[str, DecodedFile] = {}
    for field, rows in fields.items():
        decoded = _keep(_assemble(field, field_members[field], rows, source), field, wanted)
        if decoded is not None:
            parameters[field] = decoded

    return DiveLog(
        parameters=parameters,
        mission=mission,
        dive=dive,
        start_secs=parse_start(header["start"], source=source),
        sources=(source,),
        headers=(header,),
    )
