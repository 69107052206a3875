"""Toolchain selection: map a target's family to the recipe that installs its compiler.

RISC-V ESP chips build on upstream nightly plus rust-src (std is rebuilt with -Zbuild-std).
Xtensa chips need Espressif's fork, installed by espup under a per-chip toolchain name.

The selected toolchain is activated through RUSTUP_TOOLCHAIN in the pipeline's own
environment; `rustup default` is never changed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from crossrelease_tooling.config import ReleaseConfig
from crossrelease_tooling.errors import ConfigurationError, ToolchainError
from crossrelease_tooling.helpers import combined_output, merged_env, run_tool
from crossrelease_tooling.targets.registry import Target, ToolchainFamily

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolchainRecipe:
    """How to install one toolchain family. Placeholders: {channel}, {toolchain}, {workdir}.

    export_file, when set, is a shell script the installer writes with the variables
    (PATH, LIBCLANG_PATH) the toolchain needs; they become part of the installation env.
    """

    family: ToolchainFamily
    toolchain: str
    commands: tuple[tuple[str, ...], ...]
    export_file: str | None = None

    def toolchain_name(self, channel: str) -> str:
        return self.toolchain.format(channel=channel)

    def render(self, channel: str, workdir: Path) -> list[list[str]]:
        """Concrete argv lists for this channel and pipeline working directory."""
        name = self.toolchain_name(channel)
        return [
            [arg.format(channel=channel, toolchain=name, workdir=workdir) for arg in cmd]
            for cmd in self.commands
        ]

    def export_path(self, workdir: Path) -> Path | None:
        if self.export_file is None:
            return None
        return Path(self.export_file.format(workdir=workdir))


@dataclass(frozen=True)
class ToolchainInstallation:
    """An installed toolchain bound to one pipeline. Discarded with the pipeline."""

    target: Target
    recipe: ToolchainRecipe
    name: str
    env: dict[str, str] = field(default_factory=dict)


ESP_EXPORT_FILE = "{workdir}/export-esp.sh"


def _espup(chip: str) -> tuple[tuple[str, ...], ...]:
    return (
        (
            "espup",
            "install",
            "--targets",
            chip,
            "--name",
            "{toolchain}",
            "--export-file",
            ESP_EXPORT_FILE,
        ),
    )


# The default profile carries rustdoc, which every pipeline needs for cargo doc.
RECIPES: dict[ToolchainFamily, ToolchainRecipe] = {
    ToolchainFamily.RISCV32: ToolchainRecipe(
        family=ToolchainFamily.RISCV32,
        toolchain="{channel}",
        commands=(
            ("rustup", "toolchain", "install", "{channel}", "--profile", "default"),
            ("rustup", "component", "add", "rust-src", "--toolchain", "{channel}"),
        ),
    ),
    ToolchainFamily.XTENSA_ESP32: ToolchainRecipe(
        family=ToolchainFamily.XTENSA_ESP32,
        toolchain="esp-esp32",
        commands=_espup("esp32"),
        export_file=ESP_EXPORT_FILE,
    ),
    ToolchainFamily.XTENSA_ESP32S2: ToolchainRecipe(
        family=ToolchainFamily.XTENSA_ESP32S2,
        toolchain="esp-esp32s2",
        commands=_espup("esp32s2"),
        export_file=ESP_EXPORT_FILE,
    ),
    ToolchainFamily.XTENSA_ESP32S3: ToolchainRecipe(
        family=ToolchainFamily.XTENSA_ESP32S3,
        toolchain="esp-esp32s3",
        commands=_espup("esp32s3"),
        export_file=ESP_EXPORT_FILE,
    ),
}


def select_recipe(
    target: Target,
    recipes: dict[ToolchainFamily, ToolchainRecipe] | None = None,
) -> ToolchainRecipe:
    """Exactly one recipe per target. Unmapped target raises ConfigurationError (never skipped)."""
    table = RECIPES if recipes is None else recipes
    recipe = table.get(target.family) if isinstance(target.family, ToolchainFamily) else None
    if recipe is None:
        msg = f"No toolchain recipe for target {target.triple!r} (family {target.family!r})"
        raise ConfigurationError(msg)
    return recipe


_EXPORT_LINE = re.compile(r"^\s*export\s+([A-Za-z_][A-Za-z0-9_]*)=(.*)$")
_VAR_REF = re.compile(r"\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?")


def parse_export_file(path: Path, base_env: Mapping[str, str]) -> dict[str, str]:
    """Variables set by `export NAME=value` lines, with $VAR references expanded.

    References resolve against earlier exports in the file, then base_env; unknown ones
    expand to "". Other lines are ignored.
    """
    exported: dict[str, str] = {}
    for line in path.read_text().splitlines():
        m = _EXPORT_LINE.match(line)
        if not m:
            continue
        value = m.group(2).strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        exported[m.group(1)] = _VAR_REF.sub(
            lambda ref: exported.get(ref.group(1), base_env.get(ref.group(1), "")),
            value,
        )
    return exported


def install_toolchain(
    target: Target,
    config: ReleaseConfig,
    workdir: Path,
) -> ToolchainInstallation:
    """Run the target's recipe and return the installation for this pipeline only."""
    recipe = select_recipe(target)
    name = recipe.toolchain_name(config.toolchain_channel)
    print(f"🔧 Installing toolchain {name} for {target.triple}...")
    env = merged_env()
    for cmd in recipe.render(config.toolchain_channel, workdir):
        try:
            r = run_tool(cmd, cwd=workdir, env=env)
        except FileNotFoundError as e:
            msg = f"{cmd[0]} not found in PATH (needed for {target.triple})"
            raise ToolchainError(msg, cmd=cmd) from e
        if r.returncode != 0:
            out = combined_output(r)
            msg = f"Toolchain install failed for {target.triple}: {' '.join(cmd)}\n{out}"
            raise ToolchainError(msg, cmd=cmd, returncode=r.returncode, output=out)
    exports: dict[str, str] = {}
    export_path = recipe.export_path(workdir)
    if export_path is not None:
        if not export_path.is_file():
            msg = f"Toolchain install for {target.triple} wrote no export file at {export_path}"
            raise ToolchainError(msg)
        exports = parse_export_file(export_path, env)
    log.debug("toolchain %s ready for %s (exports: %s)", name, target.triple, sorted(exports))
    return ToolchainInstallation(
        target=target,
        recipe=recipe,
        name=name,
        env={**exports, "RUSTUP_TOOLCHAIN": name},
    )
