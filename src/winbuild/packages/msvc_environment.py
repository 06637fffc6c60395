"""Visual Studio discovery and environment capture.

The MSVC tools only work inside the environment vcvarsall.bat sets up:
PATH to the right bin/Host<arch>/<arch> directory, INCLUDE, LIB, SDK paths
and so on. That environment is architecture specific, so a session is bound
to one target architecture for its whole lifetime. There is no "universal"
build on Windows, so one architecture per build run is all that's needed.

vcvarsall.bat runs once per session. Its resulting variables are captured into
an immutable mapping that is passed to every child process; the interpreter's
own environment is left untouched.
"""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..build.command_quoter import quote_arg
from ..build.compiler import BuildVariant
from ..errors import ConfigurationError, ToolchainNotFoundError
from .platform_utils import Architecture
from .qt import QtInstall

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Editions tried in order within each candidate root
VS_EDITIONS: Tuple[str, ...] = ('Professional', 'Community', 'BuildTools', 'Enterprise')

VCVARSALL = Path('VC/Auxiliary/Build/vcvarsall.bat')

ENV_LINE_PATTERN = re.compile(r'^([^=]+)=(.*)$')


@dataclass(frozen=True)
class ToolchainSession:
    """Resolved toolchain for one build run and one architecture.

    Immutable; safe to share between threads running compiles.
    """

    architecture: Architecture
    variant: BuildVariant
    msvc_root: Path
    msvc_include: Path
    compiler: Path
    archiver: Path
    resource_compiler: Path
    environment: Mapping[str, str] = field(default_factory=dict)
    sdk_root: Optional[Path] = None
    companion_root: Optional[Path] = None
    moc: Optional[Path] = None
    rcc: Optional[Path] = None
    compiler_launcher: Optional[str] = None
    manifest: Optional[Path] = None

    def __post_init__(self):
        object.__setattr__(self, 'environment', MappingProxyType(dict(self.environment)))

    @property
    def exclusion_roots(self) -> List[Path]:
        """Directories whose headers are never recorded as dependencies."""
        roots = [self.msvc_root, self.sdk_root, self.companion_root]
        return [r for r in roots if r is not None]


def default_candidate_roots(environ: Optional[Mapping[str, str]] = None) -> List[Path]:
    """Get the default Visual Studio version directories, newest first."""
    environ = os.environ if environ is None else environ
    program_files = environ.get('ProgramFiles', 'C:/Program Files')
    program_files_x86 = environ.get('ProgramFiles(x86)', 'C:/Program Files (x86)')
    return [
        Path(program_files.replace('\\', '/')) / 'Microsoft Visual Studio' / '2022',
        Path(program_files_x86.replace('\\', '/')) / 'Microsoft Visual Studio' / '2019',
    ]


def locate_visual_studio(candidate_roots: Iterable[PathLike], version_tag: Optional[str] = None) -> Path:
    """Find a Visual Studio installation.

    Roots whose name ends with version_tag are tried first, the others keep
    their order. The first root containing a known edition wins.

    Args:
        candidate_roots: Version directories, e.g. .../Microsoft Visual Studio/2022
        version_tag: Preferred version, e.g. '2019' from the Qt build

    Returns:
        Path to the edition directory, e.g. .../2019/Community

    Raises:
        ToolchainNotFoundError: If no root contains a known edition
    """
    roots = [Path(r) for r in candidate_roots]
    if version_tag:
        roots.sort(key=lambda r: 0 if r.name.endswith(version_tag) else 1)

    for root in roots:
        for edition in VS_EDITIONS:
            if (root / edition).exists():
                return root / edition

    searched = ", ".join(str(r) for r in roots) or "none"
    raise ToolchainNotFoundError(
        f"Could not locate a valid Visual Studio installation (searched: {searched})"
    )


def parse_environment_dump(output: str) -> Dict[str, str]:
    """Parse the NAME=value lines printed by 'set'."""
    variables: Dict[str, str] = {}
    for line in output.splitlines():
        match = ENV_LINE_PATTERN.match(line)
        if match is not None:
            variables[match.group(1)] = match.group(2)
    return variables


def env_lookup(environment: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive environment lookup, Windows names are not case sensitive."""
    if name in environment:
        return environment[name]
    lowered = name.lower()
    for key, value in environment.items():
        if key.lower() == lowered:
            return value
    return None


def capture_environment(vcvarsall: PathLike, architecture: Architecture) -> Dict[str, str]:
    """Run vcvarsall.bat and capture the environment it produces.

    The dump includes variables that were already set too; applying those
    again is harmless.

    Args:
        vcvarsall: Path to vcvarsall.bat
        architecture: Target architecture

    Returns:
        The complete environment after vcvarsall.bat ran

    Raises:
        ConfigurationError: If vcvarsall.bat fails
    """
    # cmd.exe /s strips the outer quotes and runs the rest verbatim
    command_line = (
        f'cmd.exe /s /c "{quote_arg(str(vcvarsall))} {architecture.vcvars_arg} >nul && set"'
    )
    logger.info(f"Capturing toolchain environment: {command_line}")

    try:
        result = subprocess.run(
            command_line,
            capture_output=True,
            text=True,
            errors='replace',
            check=False
        )
    except OSError as e:
        raise ConfigurationError(f"Failed to run {vcvarsall}: {e}") from e

    if result.returncode != 0:
        raise ConfigurationError(
            f"{vcvarsall} {architecture.vcvars_arg} failed with exit code "
            f"{result.returncode}\n{result.stdout}{result.stderr}"
        )

    return parse_environment_dump(result.stdout)


def find_tool(environment: Mapping[str, str], name: str) -> Path:
    """Resolve a tool on the captured PATH.

    vcvarsall puts cl.exe, lib.exe and rc.exe on PATH, but does not name the
    exact bin/Host<arch>/<arch> directory anywhere.

    Raises:
        ConfigurationError: If the tool is not on the captured PATH
    """
    search_path = env_lookup(environment, 'PATH')
    found = shutil.which(name, path=search_path) if search_path else None
    if found is None:
        raise ConfigurationError(f"{name} not found on the toolchain PATH")
    return Path(found).absolute()


class MsvcEnvironment:
    """Locates Visual Studio and builds ToolchainSessions."""

    def __init__(
        self,
        qt: Optional[QtInstall] = None,
        candidate_roots: Optional[Iterable[PathLike]] = None
    ):
        """Initialize environment bridge.

        Args:
            qt: Companion Qt installation, if any
            candidate_roots: Visual Studio version directories to search,
                defaults to default_candidate_roots()
        """
        self.qt = qt
        self.candidate_roots = (
            [Path(r) for r in candidate_roots]
            if candidate_roots is not None
            else default_candidate_roots()
        )

    def locate(self) -> Path:
        """Find the Visual Studio installation, preferring the one Qt was built with."""
        version_tag = self.qt.msvc_version_tag if self.qt else None
        msvc_root = locate_visual_studio(self.candidate_roots, version_tag)
        logger.info(f"Found VS: {msvc_root}")
        return msvc_root

    def create_session(
        self,
        architecture: Architecture,
        variant: BuildVariant,
        compiler_launcher: Optional[str] = None,
        manifest: Optional[PathLike] = None
    ) -> ToolchainSession:
        """Locate the toolchain, capture its environment and resolve tools.

        Must complete before any compile or link call is issued.

        Args:
            architecture: Target architecture for the whole build run
            variant: Build variant for the whole build run
            compiler_launcher: Optional wrapper prefixed to cl.exe, e.g. sccache
            manifest: Application manifest embedded by the linker

        Returns:
            ToolchainSession

        Raises:
            ToolchainNotFoundError: If Visual Studio can't be found
            ConfigurationError: If the environment lacks required variables
                or tools
        """
        msvc_root = self.locate()
        environment = capture_environment(msvc_root / VCVARSALL, architecture)

        vc_tools_dir = env_lookup(environment, 'VCToolsInstallDir')
        if not vc_tools_dir:
            raise ConfigurationError("VC Tools not installed (VCToolsInstallDir is not set)")
        # moc needs this include directory explicitly, cl.exe gets it from INCLUDE
        msvc_include = Path(vc_tools_dir.replace('\\', '/')) / 'INCLUDE'

        sdk_dir = env_lookup(environment, 'WindowsSdkDir')
        sdk_root = Path(sdk_dir.replace('\\', '/')) if sdk_dir else None
        if sdk_root is None:
            logger.warning("WindowsSdkDir is not set, SDK headers will be recorded as dependencies")

        session = ToolchainSession(
            architecture=architecture,
            variant=variant,
            msvc_root=msvc_root,
            msvc_include=msvc_include,
            compiler=find_tool(environment, 'cl.exe'),
            archiver=find_tool(environment, 'lib.exe'),
            resource_compiler=find_tool(environment, 'rc.exe'),
            environment=environment,
            sdk_root=sdk_root,
            companion_root=self.qt.target_root if self.qt else None,
            moc=self.qt.tool('moc') if self.qt else None,
            rcc=self.qt.tool('rcc') if self.qt else None,
            compiler_launcher=compiler_launcher,
            manifest=Path(manifest).absolute() if manifest else None,
        )
        logger.info(
            f"Toolchain ready for {architecture.value} ({variant.value}): {session.compiler}"
        )
        return session
