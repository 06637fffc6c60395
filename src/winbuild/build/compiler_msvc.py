"""MSVC compiler wrapper.

Compiles one source file per call:

- C/C++ sources go through cl.exe with /sourceDependencies; the JSON report
  becomes the dependency file and the invocation is recorded in the compile
  database.
- Resource scripts (.rc) are preprocessed by cl.exe with /showIncludes to
  discover their headers (rc.exe can't report them), then compiled to a .res
  object by rc.exe. The two preprocessors aren't identical, but close enough
  to find the includes.

Also drives the Qt code generators, moc and rcc.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import CompileFailedError, ConfigurationError
from ..packages.msvc_environment import ToolchainSession
from .compilation_executor import CompilationExecutor, ToolResult
from .compile_database import CompileDatabase
from .compiler import CompileOptions, PathLike, RuntimeLinkage, coerce_enum
from .dependency_recorder import (
    DependencyRecorder,
    read_show_includes,
    read_source_dependencies,
)
from .flag_builder import CL_COMPILE_OPTS, CL_CONFORMANCE_OPTS, FlagBuilder

logger = logging.getLogger(__name__)

RESOURCE_SCRIPT_EXT = '.rc'
RESOURCE_OBJECT_EXT = '.res'
OBJECT_EXT = '.obj'


def source_dependencies_path(dep_file: PathLike) -> Path:
    """Path of the /sourceDependencies JSON report for a dependency file."""
    return Path(f"{dep_file}.json")


class CompilerMSVC:
    """Builds and runs cl.exe, rc.exe, moc and rcc invocations.

    Holds only read-only state, so one instance can serve concurrent compiles
    as long as each writes distinct object and dependency files.
    """

    def __init__(
        self,
        session: ToolchainSession,
        executor: Optional[CompilationExecutor] = None,
        compile_database: Optional[CompileDatabase] = None
    ):
        """Initialize compiler.

        Args:
            session: Resolved toolchain
            executor: Runs the tools, defaults to one using the session environment
            compile_database: Receives a fragment per compiled source, None to
                skip recording
        """
        self.session = session
        self.executor = executor or CompilationExecutor(session.environment)
        self.compile_database = compile_database
        self.flags = FlagBuilder(session.variant)
        self.recorder = DependencyRecorder(session.exclusion_roots)

    def _launcher(self) -> List[str]:
        return [self.session.compiler_launcher] if self.session.compiler_launcher else []

    def compile(
        self,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        options: Optional[CompileOptions] = None
    ) -> None:
        """Compile one source file and write its dependency file.

        Args:
            source_file: .c, .cpp or .rc file
            object_file: Output object, see object_ext()
            dep_file: Makefile-style dependency file to write
            macros: Caller macros, 'NAME' or 'NAME=VALUE'
            include_dirs: Include directories
            options: Target options; runtime is used here

        Raises:
            CompileFailedError: If any tool exits non-zero
            DependencyExtractionError: If the dependency report can't be read
        """
        options = options or CompileOptions()
        if Path(source_file).suffix.lower() == RESOURCE_SCRIPT_EXT:
            self.make_resource_dependencies(source_file, object_file, dep_file, macros, include_dirs)
            self.compile_resource(source_file, object_file, macros, include_dirs)
        else:
            runtime = coerce_enum(RuntimeLinkage, options.runtime, "runtime linkage")
            self.compile_source(source_file, object_file, dep_file, macros, include_dirs, runtime)

    def build_compile_command(
        self,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        runtime: RuntimeLinkage
    ) -> List[str]:
        """Build the cl.exe command for a C/C++ source."""
        object_path = Path(object_file)
        cmd = self._launcher()
        cmd.extend([
            str(self.session.compiler),
            '/nologo',
            '/c',  # Compile only, don't link
            self.flags.runtime_arg(runtime),
        ])
        cmd.extend(CL_COMPILE_OPTS)
        cmd.extend(self.flags.compile_opts())
        cmd.extend(self.flags.cl_macro_flags(macros))
        cmd.extend(self.flags.cl_include_flags(include_dirs))
        cmd.extend([
            # JSON list of the headers used, needs VS 16.7 or later
            '/sourceDependencies', str(source_dependencies_path(dep_file)),
            f'/Fd{object_path.with_suffix(".pdb")}',
            f'/Fo{object_path}',
            # Absolute path so diagnostics can be opened from an IDE
            os.path.abspath(source_file),
        ])
        cmd.extend(CL_CONFORMANCE_OPTS)
        return cmd

    def compile_source(
        self,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        runtime: RuntimeLinkage
    ) -> None:
        """Compile a C/C++ source with cl.exe."""
        cmd = self.build_compile_command(source_file, object_file, dep_file, macros, include_dirs, runtime)
        logger.info(f"Compiling {Path(source_file).name}")
        self._check(self.executor.run(cmd), source_file)

        if self.compile_database is not None:
            self.compile_database.create_fragment(source_file, object_file, cmd)

        headers = read_source_dependencies(source_dependencies_path(dep_file), source_file)
        self.recorder.write(dep_file, object_file, source_file, headers)

    def build_makedep_command(
        self,
        source_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike],
        use_utf8: bool = False
    ) -> List[str]:
        """Build the preprocess-only cl.exe command that lists includes."""
        cmd = self._launcher()
        cmd.extend([
            str(self.session.compiler),
            '/nologo',
            '/P',             # Preprocess only
            '/showIncludes',
            '/FiNUL',         # Discard the preprocessed output
        ])
        cmd.extend(self.flags.cl_macro_flags(macros))
        cmd.extend(self.flags.cl_include_flags(include_dirs))
        cmd.append(str(source_file))
        # .rc files are usually UTF-16 with a BOM for rc.exe, so no /utf-8
        if use_utf8:
            cmd.append('/utf-8')
        return cmd

    def make_resource_dependencies(
        self,
        source_file: PathLike,
        object_file: PathLike,
        dep_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike]
    ) -> None:
        """Write the dependency file of a resource script using cl.exe."""
        cmd = self.build_makedep_command(source_file, macros, include_dirs)
        result = self.executor.run(cmd, merge_output=True)
        self._check(result, source_file)
        self.recorder.write(dep_file, object_file, source_file, read_show_includes(result.stdout))

    def build_resource_command(
        self,
        source_file: PathLike,
        object_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike]
    ) -> List[str]:
        """Build the rc.exe command for a resource script."""
        cmd = [str(self.session.resource_compiler), '/nologo']
        cmd.extend(self.flags.rc_macro_flags(macros))
        cmd.extend(self.flags.rc_include_flags(include_dirs))
        cmd.extend(['/FO', str(object_file), str(source_file)])
        return cmd

    def compile_resource(
        self,
        source_file: PathLike,
        object_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike]
    ) -> None:
        """Compile a resource script to a .res object with rc.exe."""
        cmd = self.build_resource_command(source_file, object_file, macros, include_dirs)
        logger.info(f"Compiling resources {Path(source_file).name}")
        self._check(self.executor.run(cmd), source_file)

    def moc(
        self,
        source_file: PathLike,
        output_file: PathLike,
        macros: Sequence[str],
        include_dirs: Sequence[PathLike]
    ) -> None:
        """Run moc on a source or header file.

        Raises:
            ConfigurationError: If no Qt installation is configured
            CompileFailedError: If moc fails
        """
        if self.session.moc is None:
            raise ConfigurationError("moc is not available, no Qt installation configured")
        cmd = [str(self.session.moc)]
        cmd.extend(self.flags.moc_macro_flags(macros))
        cmd.extend(self.flags.moc_include_flags(include_dirs))
        # cl.exe finds this through INCLUDE, moc has to be told
        cmd.append(f'-I{self.session.msvc_include}')
        cmd.extend(['-o', str(output_file), str(source_file)])
        self._check(self.executor.run(cmd), source_file)

    def rcc(self, source_file: PathLike, output_file: PathLike, name: str) -> None:
        """Compile a .qrc resource collection to a C++ source with rcc.

        Raises:
            ConfigurationError: If no Qt installation is configured
            CompileFailedError: If rcc fails
        """
        if self.session.rcc is None:
            raise ConfigurationError("rcc is not available, no Qt installation configured")
        cmd = [
            str(self.session.rcc),
            str(source_file),
            '-name', name,
            '-o', str(output_file),
        ]
        self._check(self.executor.run(cmd), source_file)

    @staticmethod
    def _check(result: ToolResult, source_file: PathLike) -> None:
        if not result.success:
            raise CompileFailedError(source_file, result.returncode, result.output)

    @staticmethod
    def object_ext(source_file: PathLike) -> str:
        """Resource scripts compile to .res, everything else to .obj."""
        if Path(source_file).suffix.lower() == RESOURCE_SCRIPT_EXT:
            return RESOURCE_OBJECT_EXT
        return OBJECT_EXT

    @staticmethod
    def is_object_file(path: PathLike) -> bool:
        return Path(path).suffix.lower() in (OBJECT_EXT, RESOURCE_OBJECT_EXT)
