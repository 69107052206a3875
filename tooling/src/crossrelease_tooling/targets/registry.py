"""Target registry: ordered target triples, each tagged with the toolchain family that builds it.

Default registry is the ESP-IDF set (one RISC-V chip, three Xtensa chips); the RISC-V
target is primary, i.e. its documentation is the one deployed. A YAML file may replace
the defaults:

    targets:
      - triple: riscv32imc-esp-espidf
        primary: true
      - triple: xtensa-esp32-espidf
        family: xtensa-esp32
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from crossrelease_tooling.errors import ConfigurationError
from crossrelease_tooling.helpers import load_yaml_file


class ToolchainFamily(str, Enum):
    """Class of compiler/std build a target's instruction set requires."""

    RISCV32 = "riscv32"
    XTENSA_ESP32 = "xtensa-esp32"
    XTENSA_ESP32S2 = "xtensa-esp32s2"
    XTENSA_ESP32S3 = "xtensa-esp32s3"


@dataclass(frozen=True)
class Target:
    triple: str
    family: ToolchainFamily
    primary: bool = False


DEFAULT_TARGETS: tuple[Target, ...] = (
    Target("riscv32imc-esp-espidf", ToolchainFamily.RISCV32, primary=True),
    Target("xtensa-esp32-espidf", ToolchainFamily.XTENSA_ESP32),
    Target("xtensa-esp32s2-espidf", ToolchainFamily.XTENSA_ESP32S2),
    Target("xtensa-esp32s3-espidf", ToolchainFamily.XTENSA_ESP32S3),
)

# Triple prefix -> family, for registry entries that omit "family". Longest prefix first.
_TRIPLE_PREFIXES: tuple[tuple[str, ToolchainFamily], ...] = (
    ("xtensa-esp32s3-", ToolchainFamily.XTENSA_ESP32S3),
    ("xtensa-esp32s2-", ToolchainFamily.XTENSA_ESP32S2),
    ("xtensa-esp32-", ToolchainFamily.XTENSA_ESP32),
    ("riscv32", ToolchainFamily.RISCV32),
)


def family_for_triple(triple: str) -> ToolchainFamily:
    """Infer the toolchain family from a target triple. Raises ConfigurationError if unmapped."""
    for prefix, family in _TRIPLE_PREFIXES:
        if triple.startswith(prefix):
            return family
    msg = f"No toolchain family known for target {triple!r}; set 'family' explicitly"
    raise ConfigurationError(msg)


def _parse_family(value: Any, triple: str) -> ToolchainFamily:
    try:
        return ToolchainFamily(str(value))
    except ValueError:
        allowed = ", ".join(f.value for f in ToolchainFamily)
        msg = f"Unknown toolchain family {value!r} for target {triple!r} (expected one of: {allowed})"
        raise ConfigurationError(msg) from None


def parse_target(entry: dict[str, Any]) -> Target:
    """Build a Target from one registry entry ({triple, family?, primary?})."""
    triple = str(entry.get("triple") or "").strip()
    if not triple:
        msg = f"Target entry without 'triple': {entry!r}"
        raise ConfigurationError(msg)
    fam = entry.get("family")
    family = _parse_family(fam, triple) if fam else family_for_triple(triple)
    return Target(triple, family, primary=bool(entry.get("primary", False)))


def validate_targets(targets: Iterable[Target]) -> tuple[Target, ...]:
    """Check the registry: non-empty, unique triples, known families, exactly one primary."""
    out = tuple(targets)
    if not out:
        msg = "Target registry is empty"
        raise ConfigurationError(msg)
    seen: set[str] = set()
    for t in out:
        if not isinstance(t.family, ToolchainFamily):
            msg = f"Target {t.triple!r} has no toolchain family"
            raise ConfigurationError(msg)
        if t.triple in seen:
            msg = f"Target {t.triple!r} listed more than once"
            raise ConfigurationError(msg)
        seen.add(t.triple)
    primaries = [t.triple for t in out if t.primary]
    if len(primaries) != 1:
        msg = f"Exactly one primary target required, found {len(primaries)}: {primaries}"
        raise ConfigurationError(msg)
    return out


def primary_target(targets: Iterable[Target]) -> Target:
    """The single target whose documentation is deployed."""
    return next(t for t in validate_targets(targets) if t.primary)


def find_target(targets: Iterable[Target], triple: str) -> Target:
    for t in targets:
        if t.triple == triple:
            return t
    msg = f"Target {triple!r} is not in the registry"
    raise ConfigurationError(msg)


def targets_from_data(data: dict[str, Any]) -> tuple[Target, ...]:
    """Parse the 'targets' list of a config/registry mapping."""
    entries = data.get("targets")
    if not isinstance(entries, list):
        msg = "Registry must contain a 'targets' list"
        raise ConfigurationError(msg)
    parsed = []
    for e in entries:
        if not isinstance(e, dict):
            msg = f"Target entry must be a mapping, got {e!r}"
            raise ConfigurationError(msg)
        parsed.append(parse_target(e))
    return validate_targets(parsed)


def load_targets(path: Path) -> tuple[Target, ...]:
    """Load and validate a YAML target registry."""
    if not path.is_file():
        msg = f"Target registry not found: {path}"
        raise ConfigurationError(msg)
    try:
        data = load_yaml_file(path)
    except (OSError, ValueError) as e:
        msg = f"Could not read target registry {path}: {e}"
        raise ConfigurationError(msg) from e
    return targets_from_data(data)
