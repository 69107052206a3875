"""Toolchain selection and per-pipeline installation (rustup nightly / espup)."""

from .select import (
    RECIPES,
    ToolchainInstallation,
    ToolchainRecipe,
    install_toolchain,
    parse_export_file,
    select_recipe,
)

__all__ = [
    "RECIPES",
    "ToolchainInstallation",
    "ToolchainRecipe",
    "install_toolchain",
    "parse_export_file",
    "select_recipe",
]
