"""Target registry: supported target triples and their toolchain families."""

from .registry import (
    DEFAULT_TARGETS,
    Target,
    ToolchainFamily,
    family_for_triple,
    find_target,
    load_targets,
    primary_target,
    validate_targets,
)

__all__ = [
    "DEFAULT_TARGETS",
    "Target",
    "ToolchainFamily",
    "family_for_triple",
    "find_target",
    "load_targets",
    "primary_target",
    "validate_targets",
]
