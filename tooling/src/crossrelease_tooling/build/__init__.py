"""Per-target cargo build and publish (-Zbuild-std, ESP-IDF SDK environment)."""

from .publish import (
    BUILD_STD_FLAGS,
    BuildArtifact,
    PublishResult,
    build_env,
    compile_target,
    publish_target,
)

__all__ = [
    "BUILD_STD_FLAGS",
    "BuildArtifact",
    "PublishResult",
    "build_env",
    "compile_target",
    "publish_target",
]
