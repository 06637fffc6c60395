"""
Build configuration parser.

This module reads the winbuild.ini file describing a build run: target
architecture, variant, Qt location and a few toolchain knobs.

Example winbuild.ini:
    [build]
    architecture = x86_64
    variant = release
    qt_root = C:/Qt/5.15.2/msvc2019_64
    compiler_launcher = sccache
    manifest = common/res/manifest.xml
    vs_roots =
        D:/VS/2022
        C:/Program Files (x86)/Microsoft Visual Studio/2019
    log_file = out/winbuild.log
"""

import configparser
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..build.compiler import BuildVariant, coerce_enum
from ..errors import ConfigurationError
from ..packages.platform_utils import Architecture, PlatformDetector, PlatformError

SECTION = "build"

DRIVE_PATTERN = re.compile(r"^[A-Za-z]:/")

KNOWN_KEYS = {
    "architecture",
    "variant",
    "qt_root",
    "compiler_launcher",
    "manifest",
    "vs_roots",
    "log_file",
}


def _resolve(base_dir: Path, value: str) -> Path:
    normalized = value.replace("\\", "/")
    # Drive-letter paths are absolute even when parsed on a POSIX host
    if DRIVE_PATTERN.match(normalized) or Path(normalized).is_absolute():
        return Path(normalized)
    return base_dir / normalized


def _default_architecture() -> Architecture:
    try:
        return PlatformDetector.detect_architecture()
    except PlatformError:
        return Architecture.X86_64


class BuildConfigError(ConfigurationError):
    """Exception raised for winbuild.ini configuration errors."""

    pass


@dataclass
class BuildConfig:
    """Settings for one build run."""

    architecture: Architecture = field(default_factory=_default_architecture)
    variant: BuildVariant = BuildVariant.RELEASE
    qt_root: Optional[Path] = None
    compiler_launcher: Optional[str] = None
    manifest: Optional[Path] = None
    vs_roots: List[Path] = field(default_factory=list)
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, ini_path: Path) -> "BuildConfig":
        """
        Load configuration from an INI file.

        Relative paths are resolved against the file's directory.

        Args:
            ini_path: Path to winbuild.ini

        Returns:
            BuildConfig

        Raises:
            BuildConfigError: If the file is missing, unparseable or has
                invalid values
        """
        if not ini_path.exists():
            raise BuildConfigError(f"Configuration file not found: {ini_path}")

        parser = configparser.ConfigParser(
            interpolation=configparser.ExtendedInterpolation()
        )
        try:
            parser.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise BuildConfigError(f"Failed to parse {ini_path}: {e}") from e

        if SECTION not in parser:
            raise BuildConfigError(f"No [{SECTION}] section in {ini_path}")

        values = {key: value.strip() for key, value in parser[SECTION].items()}
        unknown = set(values) - KNOWN_KEYS
        if unknown:
            raise BuildConfigError(
                f"Unknown keys in [{SECTION}] of {ini_path}: {', '.join(sorted(unknown))}"
            )

        return cls.from_dict(values, base_dir=ini_path.parent)

    @classmethod
    def from_dict(cls, values: Dict[str, str], base_dir: Optional[Path] = None) -> "BuildConfig":
        """Build a config from string values, e.g. an INI section."""
        base_dir = base_dir or Path.cwd()
        kwargs: Dict[str, Any] = {}

        if values.get("architecture"):
            try:
                kwargs["architecture"] = Architecture.from_string(values["architecture"])
            except PlatformError as e:
                raise BuildConfigError(str(e)) from e
        if values.get("variant"):
            try:
                kwargs["variant"] = coerce_enum(BuildVariant, values["variant"].lower(), "variant")
            except ConfigurationError as e:
                raise BuildConfigError(str(e)) from e
        if values.get("qt_root"):
            kwargs["qt_root"] = _resolve(base_dir, values["qt_root"])
        if values.get("compiler_launcher"):
            kwargs["compiler_launcher"] = values["compiler_launcher"]
        if values.get("manifest"):
            kwargs["manifest"] = _resolve(base_dir, values["manifest"])
        if values.get("vs_roots"):
            kwargs["vs_roots"] = [
                _resolve(base_dir, line.strip())
                for line in values["vs_roots"].splitlines()
                if line.strip()
            ]
        if values.get("log_file"):
            kwargs["log_file"] = _resolve(base_dir, values["log_file"])

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "BuildConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})