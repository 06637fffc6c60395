"""MSVC toolchain facade used by the build scheduler.

Unlike clang, MSVC can only be initialized for one target architecture at a
time: vcvarsall.bat sets architecture-specific variables for every tool. So
the architecture is fixed when the toolchain is created. compile() and link()
still take an architecture, to keep the call shape other toolchain families
use, but it must match the initialized one. A second architecture needs a
second ToolchainMSVC.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..config.build_config import BuildConfig
from ..errors import ConfigurationError
from ..packages.msvc_environment import MsvcEnvironment, ToolchainSession
from ..packages.platform_utils import Architecture
from ..packages.qt import QtInstall
from .compilation_executor import CompilationExecutor
from .compile_database import CompileDatabase
from .compiler import (
    CompileOptions,
    IToolchain,
    LinkOptions,
    PathLike,
    TargetType,
)
from .compiler_msvc import CompilerMSVC
from .linker_msvc import LinkerMSVC

logger = logging.getLogger(__name__)


class ToolchainMSVC(IToolchain):
    """Compile and link entry points bound to one ToolchainSession."""

    def __init__(
        self,
        session: ToolchainSession,
        executor: Optional[CompilationExecutor] = None,
        compile_database: Optional[CompileDatabase] = None
    ):
        """Initialize toolchain.

        Args:
            session: Resolved toolchain; fixes architecture and variant
            executor: Runs the tools, defaults to one using the session environment
            compile_database: Receives compile database fragments, None to skip
        """
        self.session = session
        self.executor = executor or CompilationExecutor(session.environment)
        self.compiler = CompilerMSVC(session, self.executor, compile_database)
        self.linker = LinkerMSVC(session, self.executor)

    @classmethod
    def initialize(
        cls,
        config: BuildConfig,
        compile_database: Optional[CompileDatabase] = None
    ) -> "ToolchainMSVC":
        """Locate Visual Studio, capture its environment and create the toolchain.

        Runs vcvarsall.bat; call once per build run, before any compile.

        Raises:
            ToolchainNotFoundError: If Visual Studio can't be found
            ConfigurationError: If the toolchain environment is incomplete
        """
        qt = QtInstall(config.qt_root) if config.qt_root else None
        bridge = MsvcEnvironment(qt=qt, candidate_roots=config.vs_roots or None)
        session = bridge.create_session(
            config.architecture,
            config.variant,
            compiler_launcher=config.compiler_launcher,
            manifest=config.manifest,
        )
        return cls(session, compile_database=compile_database)

    @property
    def architecture(self) -> Architecture:
        return self.session.architecture

    def check_initialized_architecture(self, architecture: Architecture) -> None:
        """Fail unless architecture is the one this toolchain was created for.

        Raises:
            ConfigurationError: On mismatch
        """
        requested = Architecture.from_string(architecture)
        if requested is not self.session.architecture:
            raise ConfigurationError(
                f"MSVC can only target one architecture per build: initialized for "
                f"{self.session.architecture.value}, got {requested.value}"
            )

    def toolchain_path(self) -> Path:
        return self.session.msvc_root

    def coverage_available(self) -> bool:
        """Code coverage is not supported with MSVC."""
        return False

    def target_ext(self, target_type: TargetType) -> str:
        return self.linker.target_ext(target_type)

    def symlink_exts(self, target_type: TargetType) -> list:
        """Versioned library symlinks don't exist on Windows."""
        return []

    def object_ext(self, source_file: PathLike) -> str:
        return self.compiler.object_ext(source_file)

    def is_object_file(self, path: PathLike) -> bool:
        return self.compiler.is_object_file(path)

    def compile(
        self,
        architecture: Architecture,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        framework_paths: Sequence[PathLike],
        options: Optional[CompileOptions] = None
    ) -> None:
        """Compile one source file to an object file. All paths should be absolute.

        - source_file - .c, .cpp or .rc file (resource scripts compile to .res
          objects with rc.exe)
        - object_file - use object_ext(source_file) for the extension
        - dep_file - Makefile-style dependency file listing the headers used.
          Visual Studio, SDK and Qt headers are left out.
        - macros - 'NAME' or 'NAME=VALUE'
        - framework_paths - ignored for MSVC
        - options - runtime is used in this step
        """
        self.check_initialized_architecture(architecture)
        self.compiler.compile(source_file, object_file, dep_file, macros, include_dirs, options)

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
        """Link a dynamic library, static library or executable.

        - target_file - absolute path of the DLL, LIB or EXE
        - libs - library names without the '.lib' suffix
        - framework_paths, frameworks - ignored for MSVC
        - extra_args - passed to link.exe after /link
        - options - type, interface and force_link_symbols are used
        """
        self.check_initialized_architecture(architecture)
        self.linker.link(target_file, object_files, lib_paths, libs, extra_args, options)

    def moc(
        self,
        architecture: Architecture,
        source_file: PathLike,
        output_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        framework_paths: Sequence[PathLike]
    ) -> None:
        """Apply moc to a source or header file. framework_paths is ignored."""
        self.check_initialized_architecture(architecture)
        self.compiler.moc(source_file, output_file, macros, include_dirs)

    def rcc(self, source_file: PathLike, output_file: PathLike, name: str) -> None:
        """Compile a Qt resource collection to a C++ source."""
        self.compiler.rcc(source_file, output_file, name)
