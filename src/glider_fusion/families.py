"""Registry of supported glider instrument families.

Each family describes the roles its files belong to, the timestamp variable
of every role, the file name patterns used to discover files of each role
and how the two roles are merged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .decoders import read_dba, read_sgeng, read_sglog, read_sx
from .engine.merge import DEFAULT_TAG_A, DEFAULT_TAG_B, RolePredicate, has_prefix
from .engine.options import POLICIES
from .errors import InvalidOption

__all__ = [
    "FAMILIES",
    "Decoder",
    "InstrumentFamily",
    "available_families",
    "get_family",
    "resolve_family",
]

Decoder = Callable[[Path, str], Any]


def _decode_dba(path: Path, timestamp: str) -> Any:
    return read_dba(path)


def _decode_sx(path: Path, timestamp: str) -> Any:
    return read_sx(path, timestamp=timestamp)


def _decode_sgeng(path: Path, timestamp: str) -> Any:
    return read_sgeng(path)


def _decode_sglog(path: Path, timestamp: str) -> Any:
    return read_sglog(path)


@dataclass(frozen=True)
class InstrumentFamily:
    """Static description of one glider family."""

    name: str
    role_a: str
    timestamp_a: str
    pattern_a: str
    decoder_a: Decoder
    role_b: str | None = None
    timestamp_b: str | None = None
    pattern_b: str | None = None
    decoder_b: Decoder | None = None
    policy: str = "rename"
    predicate: RolePredicate = field(default=has_prefix("sci_"))
    tag_a: str = DEFAULT_TAG_A
    tag_b: str = DEFAULT_TAG_B
    description: str = ""

    OVERRIDABLE = ("timestamp_a", "timestamp_b", "pattern_a", "pattern_b", "tag_a", "tag_b")

    @property
    def roles(self) -> tuple[str, ...]:
        return (self.role_a,) if self.role_b is None else (self.role_a, self.role_b)

    @property
    def merges(self) -> bool:
        """``True`` when the roles are merged under a collision policy."""

        return self.role_b is not None and self.policy in POLICIES

    @property
    def aliases(self) -> Mapping[str, str]:
        """Role specific option names accepted in place of ``timestamp_a``/``timestamp_b``."""

        aliases = {f"timestamp_{self.role_a}": "timestamp_a", f"time{self.role_a}": "timestamp_a"}
        if self.role_b is not None:
            aliases[f"timestamp_{self.role_b}"] = "timestamp_b"
            aliases[f"time{self.role_b}"] = "timestamp_b"
        return MappingProxyType(aliases)

    def pattern(self, role: str) -> re.Pattern[str]:
        if role == self.role_a:
            return re.compile(self.pattern_a)
        if role == self.role_b and self.pattern_b is not None:
            return re.compile(self.pattern_b)
        raise InvalidOption("role", f"Unknown role for {self.name}: {role}.")

    def timestamp(self, role: str) -> str:
        if role == self.role_a:
            return self.timestamp_a
        if role == self.role_b and self.timestamp_b is not None:
            return self.timestamp_b
        raise InvalidOption("role", f"Unknown role for {self.name}: {role}.")

    def decode(self, role: str, path: Path) -> Any:
        """Decode ``path`` with the decoder registered for ``role``."""

        decoder = self.decoder_a if role == self.role_a else self.decoder_b
        if decoder is None or role not in self.roles:
            raise InvalidOption("role", f"Unknown role for {self.name}: {role}.")
        return decoder(path, self.timestamp(role))

    def role_of(self, filename: str) -> str | None:
        """Return the first role whose pattern matches ``filename``."""

        for role in self.roles:
            if self.pattern(role).match(filename):
                return role
        return None

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "InstrumentFamily":
        """Return a copy with timestamps, patterns or tags replaced.

        Keys may use the generic ``timestamp_a`` form or the role specific
        one (``timestamp_nav``, ``pattern_sci``...); ``predicate_prefix``
        replaces the rename predicate with a prefix test.
        """

        if not overrides:
            return self
        role_keys = {}
        for suffix, role in (("a", self.role_a), ("b", self.role_b)):
            if role is None:
                continue
            for stem in ("timestamp", "pattern", "tag"):
                role_keys[f"{stem}_{role}"] = f"{stem}_{suffix}"
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            name = str(key).strip().lower()
            if name == "predicate_prefix":
                changes["predicate"] = has_prefix(str(value))
                continue
            name = role_keys.get(name, name)
            if name not in self.OVERRIDABLE:
                raise InvalidOption(str(key), f"Invalid option for family {self.name}: {key}.")
            if not isinstance(value, str) or not value:
                raise InvalidOption(str(key), f"Invalid value for {key}: {value!r}.")
            if name.startswith("pattern_"):
                try:
                    re.compile(value)
                except re.error as exc:
                    raise InvalidOption(str(key), f"Invalid pattern for {key}: {exc}.") from exc
            changes[name] = value
        return replace(self, **changes)


FAMILIES: Mapping[str, InstrumentFamily] = MappingProxyType(
    {
        "slocum": InstrumentFamily(
            name="slocum",
            role_a="nav",
            timestamp_a="m_present_time",
            pattern_a=r"^.*\.[smd]ba$",
            decoder_a=_decode_dba,
            role_b="sci",
            timestamp_b="sci_m_present_time",
            pattern_b=r"^.*\.[tne]ba$",
            decoder_b=_decode_dba,
            policy="rename",
            predicate=has_prefix("sci_"),
            tag_a="gld_dup_",
            tag_b="sci_dup_",
            description="Teledyne Webb Slocum glider dba files (navigation and science).",
        ),
        "seaexplorer": InstrumentFamily(
            name="seaexplorer",
            role_a="gli",
            timestamp_a="Timestamp",
            pattern_a=r"^.*\.gli(\..*)?$",
            decoder_a=_decode_sx,
            role_b="pld",
            timestamp_b="PLD_REALTIMECLOCK",
            pattern_b=r"^.*\.(pld|dat)(\d*)?(\..*)?$",
            decoder_b=_decode_sx,
            policy="combine",
            description="Alseamar SeaExplorer glider (gli) and payload (pld) files.",
        ),
        "seaglider": InstrumentFamily(
            name="seaglider",
            role_a="eng",
            timestamp_a="elaps_t",
            pattern_a=r"^p\d{3}\d{4}\.eng$",
            decoder_a=_decode_sgeng,
            role_b="log",
            timestamp_b="st_secs",
            pattern_b=r"^p\d{3}\d{4}\.log$",
            decoder_b=_decode_sglog,
            policy="dives",
            description="Kongsberg Seaglider engineering (eng) and dive log (log) files.",
        ),
    }
)


def available_families() -> tuple[str, ...]:
    return tuple(sorted(FAMILIES))


def get_family(name: str) -> InstrumentFamily:
    """Return the registered family called ``name`` (case insensitive)."""

    try:
        return FAMILIES[str(name).strip().lower()]
    except KeyError:
        raise InvalidOption(
            "family",
            f"Unknown instrument family: {name}. Available: {', '.join(available_families())}.",
        ) from None


def resolve_family(name: str, overrides: Mapping[str, Any] | None = None) -> InstrumentFamily:
    """Return the family called ``name`` with configuration ``overrides`` applied."""

    return get_family(name).with_overrides(overrides)
