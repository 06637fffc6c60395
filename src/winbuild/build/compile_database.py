"""Compile database fragments.

Each successful compile leaves a small JSON fragment next to its object file
recording the exact invocation. merge_fragments() combines the fragments of a
build directory into a compile_commands.json for clangd, clang-tidy and
similar tools. The toolchain itself never reads them.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FRAGMENT_SUFFIX = ".compdb.json"


class CompileDatabase:
    """Writes compile database fragments for compiled objects."""

    def __init__(self, directory: Optional[PathLike] = None):
        """Initialize compile database.

        Args:
            directory: Working directory recorded in each entry, defaults to
                the current directory
        """
        self.directory = Path(directory) if directory else Path.cwd()

    @staticmethod
    def fragment_path(object_file: PathLike) -> Path:
        return Path(f"{object_file}{FRAGMENT_SUFFIX}")

    def create_fragment(
        self,
        source_file: PathLike,
        object_file: PathLike,
        arguments: Sequence[str]
    ) -> Path:
        """Write the fragment for one compiled object.

        Args:
            source_file: Compiled source file
            object_file: Produced object file
            arguments: Full argument vector, program first

        Returns:
            Path of the written fragment
        """
        entry: Dict[str, Any] = {
            "directory": str(self.directory),
            "file": os.path.abspath(source_file),
            "output": str(object_file),
            "arguments": [str(a) for a in arguments],
        }
        fragment = self.fragment_path(object_file)
        fragment.parent.mkdir(parents=True, exist_ok=True)
        with open(fragment, 'w', encoding='utf-8') as f:
            json.dump(entry, f, indent=2)
        return fragment


def merge_fragments(build_dir: PathLike, output_file: PathLike) -> List[Dict[str, Any]]:
    """Merge every fragment under build_dir into one compile_commands.json.

    Unreadable fragments are skipped with a warning; a stale or half-written
    fragment must not block generating the database.

    Args:
        build_dir: Directory searched recursively for fragments
        output_file: Path of the compile_commands.json to write

    Returns:
        The merged entries, sorted by source file
    """
    entries: List[Dict[str, Any]] = []
    for fragment in sorted(Path(build_dir).rglob(f"*{FRAGMENT_SUFFIX}")):
        try:
            with open(fragment, 'r', encoding='utf-8') as f:
                entry = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping unreadable compile database fragment {fragment}: {e}")
            continue
        if not isinstance(entry, dict) or "file" not in entry:
            logger.warning(f"Skipping malformed compile database fragment {fragment}")
            continue
        entries.append(entry)

    entries.sort(key=lambda e: (e["file"], e.get("output", "")))

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(entries, f, indent=2)

    logger.info(f"Wrote {len(entries)} entries to {output_path}")
    return entries
