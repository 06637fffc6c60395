"""Build run configuration."""

from .build_config import BuildConfig, BuildConfigError

__all__ = ["BuildConfig", "BuildConfigError"]
