"""Toolchain installation discovery for winbuild.

Only leaf modules are imported here; msvc_environment depends on the build
package and is imported from there on demand.
"""

from .platform_utils import Architecture, PlatformDetector, PlatformError
from .qt import QtInstall

__all__ = [
    "Architecture",
    "PlatformDetector",
    "PlatformError",
    "QtInstall",
]
