"""winbuild - MSVC toolchain orchestration.

Drives cl.exe, lib.exe, rc.exe and the Qt code generators for a build
scheduler: one ToolchainMSVC per build run and architecture, many compile()
calls, one link() per target.
"""

from .errors import (
    CompileFailedError,
    ConfigurationError,
    DependencyExtractionError,
    LinkFailedError,
    ToolchainError,
    ToolchainNotFoundError,
    ToolInvocationError,
)
from .build import (
    BuildVariant,
    CompileOptions,
    Interface,
    LinkOptions,
    RuntimeLinkage,
    TargetType,
    ToolchainMSVC,
)
from .packages import Architecture
from .config import BuildConfig

__version__ = "0.1.0"

__all__ = [
    "Architecture",
    "BuildConfig",
    "BuildVariant",
    "CompileFailedError",
    "CompileOptions",
    "ConfigurationError",
    "DependencyExtractionError",
    "Interface",
    "LinkFailedError",
    "LinkOptions",
    "RuntimeLinkage",
    "TargetType",
    "ToolchainError",
    "ToolchainMSVC",
    "ToolchainNotFoundError",
    "ToolInvocationError",
]
