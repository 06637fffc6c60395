"""Compilation and link flag tables for the MSVC toolchain.

Design:
    - Static tables keyed by BuildVariant, never mutated
    - Macro sets are always platform macros + variant macros + caller macros,
      in that order; duplicates are passed through
    - Each tool spells macros and includes differently (cl /D, rc /d NAME,
      moc -D), so FlagBuilder renders the same set in each spelling
"""

from typing import Dict, List, Sequence, Tuple

from .compiler import BuildVariant, PathLike, RuntimeLinkage

# Macros that are always defined when compiling for Windows
WIN_MACROS: Tuple[str, ...] = (
    'UNICODE',
    '_UNICODE',
    'WIN32',
    'WINAPI_FAMILY=WINAPI_FAMILY_DESKTOP_APP',
    'NTDDI_VERSION=NTDDI_WIN7',
    'WINVER=0x0601',
    '_WIN32_WINNT=0x0601',
    '_WIN32_WINDOWS=0x0601',
)

# Macros that depend on variant
VARIANT_MACROS: Dict[BuildVariant, Tuple[str, ...]] = {
    BuildVariant.DEBUG: (
        'PIA_DEBUG',
    ),
    BuildVariant.RELEASE: (
        'NDEBUG',
        'QT_NO_DEBUG',
    ),
}

COMPILE_OPTS: Dict[BuildVariant, Tuple[str, ...]] = {
    BuildVariant.DEBUG: (
        '/Od',      # Disable optimizations
        '/bigobj',  # Some debug objects exceed default section count limit
    ),
    BuildVariant.RELEASE: (
        '/O2',  # Optimize for speed
        '/GL',  # Whole program optimization
    ),
}

LINK_OPTS: Dict[BuildVariant, Tuple[str, ...]] = {
    BuildVariant.DEBUG: (
        # Reference private symbols from the image instead of copying them to
        # the PDB. Links faster; debugging needs the build products.
        '/DEBUG:FASTLINK',
    ),
    BuildVariant.RELEASE: (
        '/DEBUG:FULL',  # All debugging information in the PDB
        '/OPT:REF',     # Remove unreferenced sections
        '/OPT:ICF',     # Identical COMDAT folding
        '/LTCG',        # Link-time code generation (pairs with /GL)
    ),
}

# Arguments for lib.exe
STATIC_LINK_OPTS: Dict[BuildVariant, Tuple[str, ...]] = {
    BuildVariant.DEBUG: (),
    BuildVariant.RELEASE: (
        '/LTCG',
    ),
}

# /MT, /MTd link the runtime statically, /MD, /MDd dynamically. The 'd'
# suffix selects the debug runtime.
RUNTIME_ARGS: Dict[Tuple[BuildVariant, RuntimeLinkage], str] = {
    (BuildVariant.RELEASE, RuntimeLinkage.STATIC): '/MT',
    (BuildVariant.RELEASE, RuntimeLinkage.DYNAMIC): '/MD',
    (BuildVariant.DEBUG, RuntimeLinkage.STATIC): '/MTd',
    (BuildVariant.DEBUG, RuntimeLinkage.DYNAMIC): '/MDd',
}

# cl.exe options independent of variant
CL_COMPILE_OPTS: Tuple[str, ...] = (
    '/Zi',              # Separate PDB file
    '/EHsc',            # C++ unwinding; extern "C" functions can't throw
    '/std:c++17',
    '/Zc:rvalueCast',   # Conforming type conversions
    '/utf-8',           # Source and execution charsets are UTF-8
    '/we4834',          # Discarding a [[nodiscard]] value is an error
)

# Trailing conformance options
CL_CONFORMANCE_OPTS: Tuple[str, ...] = (
    '/Zc:__cplusplus',
    '/permissive-',
)


class FlagBuilder:
    """Renders macro, include and option sets for one build variant."""

    def __init__(self, variant: BuildVariant):
        """Initialize flag builder.

        Args:
            variant: Variant of the build run
        """
        self.variant = variant

    def macros(self, caller_macros: Sequence[str]) -> List[str]:
        """Get the full macro list: platform, variant, then caller macros."""
        result = list(WIN_MACROS)
        result.extend(VARIANT_MACROS[self.variant])
        result.extend(caller_macros)
        return result

    def cl_macro_flags(self, caller_macros: Sequence[str]) -> List[str]:
        return [f'/D{m}' for m in self.macros(caller_macros)]

    def rc_macro_flags(self, caller_macros: Sequence[str]) -> List[str]:
        # rc.exe takes the macro as a separate argument
        flags: List[str] = []
        for m in self.macros(caller_macros):
            flags.extend(['/d', m])
        return flags

    @staticmethod
    def cl_include_flags(include_dirs: Sequence[PathLike]) -> List[str]:
        return [f'/I{d}' for d in include_dirs]

    @staticmethod
    def rc_include_flags(include_dirs: Sequence[PathLike]) -> List[str]:
        flags: List[str] = []
        for d in include_dirs:
            flags.extend(['/I', str(d)])
        return flags

    @staticmethod
    def moc_macro_flags(caller_macros: Sequence[str]) -> List[str]:
        """Macros for moc: platform and caller macros, no variant macros."""
        return [f'-D{m}' for m in list(WIN_MACROS) + list(caller_macros)]

    @staticmethod
    def moc_include_flags(include_dirs: Sequence[PathLike]) -> List[str]:
        return [f'-I{d}' for d in include_dirs]

    def runtime_arg(self, runtime: RuntimeLinkage) -> str:
        """Get the runtime library option for a runtime linkage."""
        return RUNTIME_ARGS[(self.variant, runtime)]

    def compile_opts(self) -> List[str]:
        return list(COMPILE_OPTS[self.variant])

    def link_opts(self) -> List[str]:
        return list(LINK_OPTS[self.variant])

    def static_link_opts(self) -> List[str]:
        return list(STATIC_LINK_OPTS[self.variant])
