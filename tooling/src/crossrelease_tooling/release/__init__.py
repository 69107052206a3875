"""Release: resolve the crate version from cargo metadata and create the v<version> tag."""

from .tag import (
    ReleaseTag,
    create_release_tag,
    read_package_version,
    release_tag_for,
    select_package_version,
    tag_release,
)
from .tag import run as run_tag

__all__ = [
    "ReleaseTag",
    "create_release_tag",
    "read_package_version",
    "release_tag_for",
    "run_tag",
    "select_package_version",
    "tag_release",
]
