"""Toolchain interface and the option types shared by compile and link.

The build scheduler talks to a toolchain only through IToolchain, so a second
compiler family could be plugged in behind the same calls. The option enums
are closed sets; anything else is a ConfigurationError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Type, TypeVar, Union

from ..errors import ConfigurationError
from ..packages.platform_utils import Architecture

PathLike = Union[str, Path]

E = TypeVar("E", bound=Enum)


class BuildVariant(Enum):
    """Build variant selected for the whole build run."""

    DEBUG = "debug"
    RELEASE = "release"


class RuntimeLinkage(Enum):
    """How the C/C++ runtime library is linked."""

    STATIC = "static"
    DYNAMIC = "dynamic"


class TargetType(Enum):
    """Kind of artifact produced by link()."""

    DYNAMIC = "dynamic"
    STATIC = "static"
    EXECUTABLE = "executable"


class Interface(Enum):
    """Subsystem of a dynamic library or executable."""

    CONSOLE = "console"
    GUI = "gui"


def coerce_enum(enum_type: Type[E], value: Union[str, E], what: str) -> E:
    """Convert a string or enum member to a member of enum_type.

    Args:
        enum_type: Target enum class
        value: Member or member value
        what: Description used in the error message

    Returns:
        The enum member

    Raises:
        ConfigurationError: If value is not a member of enum_type
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Unknown {what}: {value!r} (expected one of: {allowed})"
        ) from None


@dataclass
class CompileOptions:
    """Target options consumed by compile()."""

    runtime: RuntimeLinkage = RuntimeLinkage.DYNAMIC


@dataclass
class LinkOptions:
    """Target options consumed by link().

    interface only applies to dynamic libraries and executables.
    """

    type: TargetType = TargetType.EXECUTABLE
    interface: Interface = Interface.CONSOLE
    force_link_symbols: List[str] = field(default_factory=list)


class IToolchain(ABC):
    """Interface for native toolchains driven by the build scheduler."""

    @abstractmethod
    def compile(
        self,
        architecture: Architecture,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        framework_paths: Sequence[PathLike],
        options: CompileOptions
    ) -> None:
        """Compile one source file to an object file and a dependency file.

        Raises:
            ConfigurationError: If the architecture is not supported
            CompileFailedError: If a tool exits non-zero
            DependencyExtractionError: If dependency output can't be read
        """
        pass

    @abstractmethod
    def link(
        self,
        architecture: Architecture,
        target_file: PathLike,
        object_files: Sequence[PathLike],
        lib_paths: Sequence[PathLike],
        libs: Sequence[str],
        framework_paths: Sequence[PathLike],
        frameworks: Sequence[str],
        extra_args: Sequence[str],
        options: LinkOptions
    ) -> None:
        """Link object files into a library or executable.

        Raises:
            ConfigurationError: For unknown target types or interfaces
            LinkFailedError: If the linker or archiver exits non-zero
        """
        pass

    @abstractmethod
    def target_ext(self, target_type: TargetType) -> str:
        """Get the file extension of a target type."""
        pass

    @abstractmethod
    def object_ext(self, source_file: PathLike) -> str:
        """Get the object file extension produced for a source file."""
        pass

    @abstractmethod
    def is_object_file(self, path: PathLike) -> bool:
        """Check if a path names an object file of any kind."""
        pass
