"""Target architecture definitions and host platform detection.

Architectures map onto the argument vcvarsall.bat expects. The toolchain is
always the 64-bit hosted one, so x86 and arm64 are cross targets:

    x86     -> x64_x86
    x86_64  -> x64
    arm64   -> x64_arm64
"""

import platform
import sys
from enum import Enum
from typing import Union

from ..errors import ConfigurationError


class PlatformError(ConfigurationError):
    """Raised when platform detection fails or platform is unsupported."""

    pass


class Architecture(Enum):
    """Target architectures supported by the MSVC toolchain."""

    X86 = "x86"
    X86_64 = "x86_64"
    ARM64 = "arm64"

    @property
    def vcvars_arg(self) -> str:
        """Argument passed to vcvarsall.bat for this target."""
        return _VCVARS_ARGS[self]

    @property
    def is_32bit(self) -> bool:
        return self is Architecture.X86

    @classmethod
    def from_string(cls, value: Union[str, "Architecture"]) -> "Architecture":
        """Convert a name such as 'x64' or 'amd64' to an Architecture.

        Raises:
            PlatformError: If the name is not a known architecture
        """
        if isinstance(value, Architecture):
            return value
        normalized = str(value).strip().lower()
        try:
            return _ALIASES[normalized]
        except KeyError:
            raise PlatformError(f"Unsupported architecture: {value}") from None


_VCVARS_ARGS = {
    Architecture.X86: "x64_x86",
    Architecture.X86_64: "x64",
    Architecture.ARM64: "x64_arm64",
}

_ALIASES = {
    "x86": Architecture.X86,
    "i386": Architecture.X86,
    "i686": Architecture.X86,
    "win32": Architecture.X86,
    "x86_64": Architecture.X86_64,
    "x64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "arm64": Architecture.ARM64,
    "aarch64": Architecture.ARM64,
}


class PlatformDetector:
    """Detects the host platform for toolchain selection."""

    @staticmethod
    def is_windows() -> bool:
        return platform.system().lower() == "windows"

    @staticmethod
    def detect_architecture() -> Architecture:
        """Detect the host architecture, used as the default target.

        Returns:
            Architecture of the running interpreter's machine

        Raises:
            PlatformError: If the machine type is not supported
        """
        machine = platform.machine().lower()
        if not machine:
            # Some embedded interpreters report nothing, fall back to pointer size
            return Architecture.X86_64 if sys.maxsize > 2**32 else Architecture.X86
        return Architecture.from_string(machine)

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform."""
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "platform": platform.platform(),
            "python_version": platform.python_version(),
            "is_64bit": sys.maxsize > 2**32,
        }
