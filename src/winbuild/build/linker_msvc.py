"""MSVC linker wrapper.

Static libraries are archived with lib.exe. Dynamic libraries and executables
are linked through cl.exe, which hands everything after /link to link.exe.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import ConfigurationError, LinkFailedError
from ..packages.msvc_environment import ToolchainSession
from ..packages.platform_utils import Architecture
from .compilation_executor import CompilationExecutor, ToolResult
from .compiler import Interface, LinkOptions, PathLike, TargetType, coerce_enum
from .flag_builder import FlagBuilder

logger = logging.getLogger(__name__)

# Minimum OS version stamped into the image (Windows 10)
MIN_OS_VERSION = '10.00'

SUBSYSTEMS = {
    Interface.CONSOLE: 'CONSOLE',
    Interface.GUI: 'WINDOWS',
}

TARGET_EXTS = {
    TargetType.DYNAMIC: '.dll',
    TargetType.STATIC: '.lib',
    TargetType.EXECUTABLE: '.exe',
}


def decorate_c_function(symbol: str, architecture: Architecture) -> str:
    """Apply the MSVC decoration of a C-linkage function.

    On x86, C functions are decorated by calling convention only. __cdecl is
    assumed (the default), which adds a leading underscore. Other
    architectures don't decorate C names.
    """
    if architecture.is_32bit:
        return f'_{symbol}'
    return symbol


class LinkerMSVC:
    """Builds and runs lib.exe and cl.exe /link invocations."""

    def __init__(self, session: ToolchainSession, executor: Optional[CompilationExecutor] = None):
        """Initialize linker.

        Args:
            session: Resolved toolchain
            executor: Runs the tools, defaults to one using the session environment
        """
        self.session = session
        self.executor = executor or CompilationExecutor(session.environment)
        self.flags = FlagBuilder(session.variant)

    def link(
        self,
        target_file: PathLike,
        object_files: Sequence[PathLike],
        lib_paths: Sequence[PathLike],
        libs: Sequence[str],
        extra_args: Sequence[str],
        options: LinkOptions
    ) -> None:
        """Link a dynamic library, static library or executable.

        Args:
            target_file: Path of the DLL, LIB or EXE to build
            object_files: Compiled object files
            lib_paths: Library search paths
            libs: Library names without the '.lib' suffix
            extra_args: Extra linker arguments, passed after /link
            options: Target options; type, interface and force_link_symbols

        Raises:
            ConfigurationError: For an unknown target type or interface
            LinkFailedError: If the tool exits non-zero
        """
        target_type = coerce_enum(TargetType, options.type, "target type")

        if target_type is TargetType.STATIC:
            self.archive(target_file, object_files)
        elif target_type is TargetType.DYNAMIC:
            import_lib = Path(target_file).with_suffix('.lib')
            self.cl_link(
                target_file, object_files, lib_paths, libs, options.interface,
                options.force_link_symbols,
                ['/DLL', f'/IMPLIB:{import_lib}'] + list(extra_args)
            )
        elif target_type is TargetType.EXECUTABLE:
            self.cl_link(
                target_file, object_files, lib_paths, libs, options.interface,
                options.force_link_symbols, list(extra_args)
            )
        else:
            raise ConfigurationError(f"Unknown target type: {target_type}")

    def build_archive_command(self, target_file: PathLike, object_files: Sequence[PathLike]) -> List[str]:
        cmd = [str(self.session.archiver), '/nologo']
        cmd.extend(self.flags.static_link_opts())
        cmd.append(f'/OUT:{target_file}')
        cmd.extend(str(obj) for obj in object_files)
        return cmd

    def archive(self, target_file: PathLike, object_files: Sequence[PathLike]) -> None:
        """Create a static library with lib.exe."""
        cmd = self.build_archive_command(target_file, object_files)
        logger.info(f"Archiving {Path(target_file).name} ({len(object_files)} objects)")
        self._check(self.executor.run(cmd), target_file)

    def build_link_command(
        self,
        target_file: PathLike,
        object_files: Sequence[PathLike],
        lib_paths: Sequence[PathLike],
        libs: Sequence[str],
        interface: Interface,
        force_link_symbols: Sequence[str],
        extra_args: Sequence[str]
    ) -> List[str]:
        """Build the cl.exe /link command for a DLL or EXE.

        Raises:
            ConfigurationError: For an unknown interface
        """
        interface = coerce_enum(Interface, interface, "target interface")
        subsystem = SUBSYSTEMS[interface]
        target_path = Path(target_file)

        cmd = [self.session.compiler_launcher] if self.session.compiler_launcher else []
        cmd.extend([str(self.session.compiler), '/nologo'])
        cmd.extend(str(obj) for obj in object_files)
        cmd.extend(f'{lib}.lib' for lib in libs)
        cmd.append(f'/Fe{target_path}')
        cmd.append('/link')  # Everything after this goes to link.exe
        cmd.extend(self.flags.link_opts())
        cmd.extend([
            f'/OSVERSION:{MIN_OS_VERSION}',
            f'/SUBSYSTEM:{subsystem},{MIN_OS_VERSION}',
            '/INCREMENTAL:NO',
            '/MANIFEST:EMBED',  # Embed app manifest in image
        ])
        if self.session.manifest is not None:
            cmd.append(f'/MANIFESTINPUT:{self.session.manifest}')
        cmd.append(f'/PDB:{target_path.with_suffix(".pdb")}')
        cmd.extend(f'/LIBPATH:{path}' for path in lib_paths)
        cmd.extend(
            f'/INCLUDE:{decorate_c_function(symbol, self.session.architecture)}'
            for symbol in force_link_symbols
        )
        cmd.extend(extra_args)
        return cmd

    def cl_link(
        self,
        target_file: PathLike,
        object_files: Sequence[PathLike],
        lib_paths: Sequence[PathLike],
        libs: Sequence[str],
        interface: Interface,
        force_link_symbols: Sequence[str],
        extra_args: Sequence[str]
    ) -> None:
        """Link a DLL or EXE through cl.exe."""
        cmd = self.build_link_command(
            target_file, object_files, lib_paths, libs, interface,
            force_link_symbols, extra_args
        )
        logger.info(f"Linking {Path(target_file).name}")
        self._check(self.executor.run(cmd), target_file)

    @staticmethod
    def _check(result: ToolResult, target_file: PathLike) -> None:
        if not result.success:
            raise LinkFailedError(target_file, result.returncode, result.output)

    @staticmethod
    def target_ext(target_type: TargetType) -> str:
        """Get the file extension of a target type.

        Raises:
            ConfigurationError: For an unknown target type
        """
        return TARGET_EXTS[coerce_enum(TargetType, target_type, "target type")]
