"""
Build system components for winbuild.

This module provides the MSVC toolchain layer including:
- Command line quoting (CommandLineToArgvW rules)
- Header dependency recording
- Compilation (cl.exe, rc.exe, moc, rcc)
- Linking (cl.exe /link, lib.exe)
"""

# Order matters: toolchain_msvc pulls in packages.msvc_environment, which
# needs command_quoter and compiler to be loaded already.
from .command_quoter import join_args, quote_arg, split_command_line
from .compiler import (
    BuildVariant,
    CompileOptions,
    Interface,
    IToolchain,
    LinkOptions,
    RuntimeLinkage,
    TargetType,
)
from .flag_builder import FlagBuilder
from .dependency_recorder import DependencyRecord, DependencyRecorder
from .compile_database import CompileDatabase, merge_fragments
from .compilation_executor import CompilationExecutor, ToolResult
from .compiler_msvc import CompilerMSVC
from .linker_msvc import LinkerMSVC
from .toolchain_msvc import ToolchainMSVC

__all__ = [
    'BuildVariant',
    'CompilationExecutor',
    'CompileDatabase',
    'CompileOptions',
    'CompilerMSVC',
    'DependencyRecord',
    'DependencyRecorder',
    'FlagBuilder',
    'Interface',
    'IToolchain',
    'LinkOptions',
    'LinkerMSVC',
    'RuntimeLinkage',
    'TargetType',
    'ToolResult',
    'ToolchainMSVC',
    'join_args',
    'merge_fragments',
    'quote_arg',
    'split_command_line',
]
