"""
Command-line interface for winbuild.

This module provides the `winbuild` CLI for driving the MSVC toolchain by
hand: inspect the captured toolchain, compile one file, link one target, or
merge compile database fragments.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from winbuild import __version__
from winbuild.build import (
    CompileDatabase,
    CompileOptions,
    LinkOptions,
    ToolchainMSVC,
    merge_fragments,
)
from winbuild.build.compiler import Interface, RuntimeLinkage, TargetType, coerce_enum
from winbuild.cli_utils import ConfigLoader, ErrorFormatter, setup_logging
from winbuild.config import BuildConfig
from winbuild.errors import ConfigurationError, ToolchainError, ToolInvocationError
from winbuild.packages import Architecture, PlatformDetector

EXIT_OK = 0
EXIT_TOOL_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


@dataclass
class CompileArgs:
    """Arguments for the compile command."""

    source: Path
    output: Path
    dep_file: Path
    macros: List[str] = field(default_factory=list)
    include_dirs: List[Path] = field(default_factory=list)
    runtime: str = RuntimeLinkage.DYNAMIC.value
    compile_db_dir: Optional[Path] = None


@dataclass
class LinkArgs:
    """Arguments for the link command."""

    target: Path
    objects: List[Path]
    type: str = TargetType.EXECUTABLE.value
    interface: str = Interface.CONSOLE.value
    lib_paths: List[Path] = field(default_factory=list)
    libs: List[str] = field(default_factory=list)
    force_link: List[str] = field(default_factory=list)
    extra_args: List[str] = field(default_factory=list)


def env_command(toolchain: ToolchainMSVC) -> int:
    """Print the resolved toolchain."""
    session = toolchain.session
    print(f"Architecture:       {session.architecture.value}")
    print(f"Variant:            {session.variant.value}")
    print(f"Visual Studio:      {session.msvc_root}")
    print(f"Windows SDK:        {session.sdk_root or '(not set)'}")
    print(f"Qt:                 {session.companion_root or '(not configured)'}")
    print(f"cl.exe:             {session.compiler}")
    print(f"lib.exe:            {session.archiver}")
    print(f"rc.exe:             {session.resource_compiler}")
    print(f"moc:                {session.moc or '-'}")
    print(f"rcc:                {session.rcc or '-'}")
    print(f"MSVC include:       {session.msvc_include}")
    return EXIT_OK


def compile_command(toolchain: ToolchainMSVC, args: CompileArgs) -> int:
    """Compile one source file."""
    if args.compile_db_dir is not None:
        toolchain.compiler.compile_database = CompileDatabase(args.compile_db_dir)
    options = CompileOptions(runtime=coerce_enum(RuntimeLinkage, args.runtime, "runtime linkage"))
    toolchain.compile(
        toolchain.architecture,
        args.source.absolute(),
        args.output.absolute(),
        args.dep_file.absolute(),
        args.macros,
        [d.absolute() for d in args.include_dirs],
        [],
        options,
    )
    ErrorFormatter.print_success(f"Compiled {args.output}")
    return EXIT_OK


def link_command(toolchain: ToolchainMSVC, args: LinkArgs) -> int:
    """Link one target."""
    options = LinkOptions(
        type=coerce_enum(TargetType, args.type, "target type"),
        interface=args.interface,
        force_link_symbols=args.force_link,
    )
    toolchain.link(
        toolchain.architecture,
        args.target.absolute(),
        [o.absolute() for o in args.objects],
        [p.absolute() for p in args.lib_paths],
        args.libs,
        [],
        [],
        args.extra_args,
        options,
    )
    ErrorFormatter.print_success(f"Linked {args.target}")
    return EXIT_OK


def compdb_command(build_dir: Path, output: Path) -> int:
    """Merge compile database fragments into compile_commands.json."""
    entries = merge_fragments(build_dir, output)
    ErrorFormatter.print_success(f"Wrote {len(entries)} entries to {output}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="winbuild",
        description="winbuild - MSVC toolchain orchestration",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"winbuild {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: ./winbuild.ini if present)",
    )
    parser.add_argument(
        "-a",
        "--arch",
        default=None,
        help="Target architecture: x86, x86_64 or arm64 (overrides config)",
    )
    parser.add_argument(
        "--variant",
        choices=["debug", "release"],
        default=None,
        help="Build variant (overrides config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every tool command line",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser(
        "env",
        help="Locate Visual Studio and show the captured toolchain",
    )

    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile one source file",
    )
    compile_parser.add_argument("source", type=Path, help="Source file (.c, .cpp, .rc)")
    compile_parser.add_argument("-o", "--output", type=Path, required=True, help="Object file")
    compile_parser.add_argument("--dep", type=Path, required=True, help="Dependency file to write")
    compile_parser.add_argument("-D", dest="macros", action="append", default=[], help="Macro NAME or NAME=VALUE")
    compile_parser.add_argument("-I", dest="include_dirs", action="append", type=Path, default=[], help="Include directory")
    compile_parser.add_argument(
        "--runtime",
        choices=[r.value for r in RuntimeLinkage],
        default=RuntimeLinkage.DYNAMIC.value,
        help="Runtime library linkage (default: dynamic)",
    )
    compile_parser.add_argument(
        "--compile-db-dir",
        type=Path,
        default=None,
        help="Record a compile database fragment, with this working directory",
    )

    link_parser = subparsers.add_parser(
        "link",
        help="Link a DLL, static library or executable",
    )
    link_parser.add_argument("target", type=Path, help="Target file")
    link_parser.add_argument("objects", type=Path, nargs="+", help="Object files")
    link_parser.add_argument(
        "--type",
        choices=[t.value for t in TargetType],
        default=TargetType.EXECUTABLE.value,
        help="Target type (default: executable)",
    )
    link_parser.add_argument(
        "--interface",
        choices=[i.value for i in Interface],
        default=Interface.CONSOLE.value,
        help="Subsystem for DLLs and executables (default: console)",
    )
    link_parser.add_argument("-L", dest="lib_paths", action="append", type=Path, default=[], help="Library search path")
    link_parser.add_argument("-l", dest="libs", action="append", default=[], help="Library name without .lib")
    link_parser.add_argument("--force-link", action="append", default=[], help="Symbol to keep")
    link_parser.add_argument("--extra", dest="extra_args", action="append", default=[], help="Extra linker argument")

    compdb_parser = subparsers.add_parser(
        "compdb",
        help="Merge compile database fragments",
    )
    compdb_parser.add_argument("build_dir", type=Path, help="Directory containing fragments")
    compdb_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("compile_commands.json"),
        help="Output file (default: compile_commands.json)",
    )

    return parser


def load_config(parsed_args: argparse.Namespace) -> BuildConfig:
    config = ConfigLoader.load(parsed_args.config)
    architecture = Architecture.from_string(parsed_args.arch) if parsed_args.arch else None
    variant = coerce_enum(type(config.variant), parsed_args.variant, "variant") if parsed_args.variant else None
    return config.with_overrides(architecture=architecture, variant=variant)


def main(argv: Optional[List[str]] = None) -> int:
    """winbuild - MSVC toolchain orchestration."""
    parser = build_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        return EXIT_OK

    try:
        config = load_config(parsed_args)
        setup_logging(parsed_args.verbose, config.log_file)

        if parsed_args.command == "compdb":
            return compdb_command(parsed_args.build_dir, parsed_args.output)

        if not PlatformDetector.is_windows():
            ErrorFormatter.print_warning("The MSVC toolchain only runs on Windows")

        toolchain = ToolchainMSVC.initialize(config)

        if parsed_args.command == "env":
            return env_command(toolchain)
        if parsed_args.command == "compile":
            return compile_command(toolchain, CompileArgs(
                source=parsed_args.source,
                output=parsed_args.output,
                dep_file=parsed_args.dep,
                macros=parsed_args.macros,
                include_dirs=parsed_args.include_dirs,
                runtime=parsed_args.runtime,
                compile_db_dir=parsed_args.compile_db_dir,
            ))
        if parsed_args.command == "link":
            return link_command(toolchain, LinkArgs(
                target=parsed_args.target,
                objects=parsed_args.objects,
                type=parsed_args.type,
                interface=parsed_args.interface,
                lib_paths=parsed_args.lib_paths,
                libs=parsed_args.libs,
                force_link=parsed_args.force_link,
                extra_args=parsed_args.extra_args,
            ))
        parser.error(f"Unknown command: {parsed_args.command}")
    except ConfigurationError as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        return EXIT_CONFIG_ERROR
    except ToolInvocationError as e:
        ErrorFormatter.print_error("Build failed", str(e))
        return EXIT_TOOL_FAILED
    except ToolchainError as e:
        ErrorFormatter.print_error("Toolchain error", str(e))
        return EXIT_TOOL_FAILED
    except KeyboardInterrupt:
        ErrorFormatter.print_warning("Interrupted")
        return EXIT_INTERRUPTED
    return EXIT_TOOL_FAILED


if __name__ == "__main__":
    sys.exit(main())
