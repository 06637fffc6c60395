"""Qt companion installation.

The Qt build is the companion dependency of the MSVC toolchain: its tools
(moc, rcc) are the code generators, its tree is an exclusion root for header
dependencies, and its directory name tells which Visual Studio it was built
with (e.g. C:/Qt/5.15.2/msvc2019_64 -> 2019).
"""

import re
from pathlib import Path
from typing import Optional, Union

from ..errors import ConfigurationError

MSVC_VERSION_PATTERN = re.compile(r'msvc([0-9]+)', re.IGNORECASE)


class QtInstall:
    """A Qt installation built for MSVC."""

    def __init__(self, target_root: Union[str, Path]):
        """Initialize Qt installation.

        Args:
            target_root: Qt target directory, e.g. C:/Qt/5.15.2/msvc2019_64
        """
        self.target_root = Path(str(target_root).replace('\\', '/'))

    @property
    def msvc_version_tag(self) -> Optional[str]:
        """Visual Studio version the Qt build targets, or None if unknown."""
        match = MSVC_VERSION_PATTERN.search(self.target_root.as_posix())
        return match.group(1) if match else None

    def tool(self, name: str) -> Path:
        """Get the path to a Qt tool.

        Args:
            name: Tool name without extension, e.g. 'moc'

        Returns:
            Absolute path to the tool executable

        Raises:
            ConfigurationError: If the tool does not exist
        """
        tool_path = self.target_root / 'bin' / f'{name}.exe'
        if not tool_path.exists():
            raise ConfigurationError(f"Qt tool not found: {tool_path}")
        return tool_path.absolute()
