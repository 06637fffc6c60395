"""Makefile-style header dependency records.

cl.exe reports the headers a compile used in two different ways:

- /sourceDependencies writes a JSON report next to the object file. Used for
  ordinary C/C++ compiles.
- /showIncludes prints "Note: including file: <path>" lines. rc.exe has no
  dependency reporting at all, so resource scripts are run through cl.exe in
  preprocess-only mode and these lines are scraped instead.

Both readers only yield header paths. DependencyRecorder normalizes them,
drops anything under an exclusion root and writes a Makefile fragment that a
standard dependency importer can load:

    C:/build/a.obj: \\
     C:/src/a.cpp \\
     c:/src/a.h \\
     c:/src/with\\ space.h

Exclusion roots are the Visual Studio install, the Windows SDK and the Qt
install. Their headers rarely change and there are a great many of them, so
recording them makes loading the dependency files very slow.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ..errors import DependencyExtractionError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SHOW_INCLUDES_PATTERN = re.compile(r'^Note: including file: +(.*?)\s*$', re.IGNORECASE)


def normalize_path(path: PathLike) -> str:
    """Lowercase a path and use '/' for all separators.

    Backslashes can't be escaped reliably in Makefile imports, and Windows
    paths are case-insensitive.
    """
    return str(path).lower().replace('\\', '/')


def escape_spaces(path: str) -> str:
    return path.replace(' ', '\\ ')


def read_show_includes(output: str) -> Iterator[str]:
    """Yield header paths from cl.exe /showIncludes output.

    Args:
        output: Combined stdout/stderr of the preprocessor run

    Yields:
        Header paths in the order they were reported
    """
    for line in output.splitlines():
        match = SHOW_INCLUDES_PATTERN.match(line)
        if match is not None:
            yield match.group(1)


def read_source_dependencies(report_file: PathLike, source_file: PathLike) -> List[str]:
    """Read header paths from a cl.exe /sourceDependencies JSON report.

    Args:
        report_file: Path to the JSON report
        source_file: Source the report belongs to, used in errors

    Returns:
        Header paths listed under Data.Includes

    Raises:
        DependencyExtractionError: If the report is missing or malformed
    """
    try:
        with open(report_file, 'r', encoding='utf-8-sig') as f:
            report = json.load(f)
    except OSError as e:
        raise DependencyExtractionError(source_file, f"cannot read {report_file}: {e}") from e
    except ValueError as e:
        raise DependencyExtractionError(source_file, f"invalid JSON in {report_file}: {e}") from e

    try:
        includes = report['Data']['Includes']
    except (KeyError, TypeError) as e:
        raise DependencyExtractionError(source_file, f"no Data.Includes in {report_file}") from e

    if not isinstance(includes, list) or not all(isinstance(i, str) for i in includes):
        raise DependencyExtractionError(source_file, f"Data.Includes is not a list of paths in {report_file}")

    return includes


@dataclass(frozen=True)
class DependencyRecord:
    """Headers used to build one object file."""

    object_file: str
    source_file: str
    headers: Tuple[str, ...]

    def to_makefile(self) -> str:
        """Render the record as a Makefile rule with continuation lines."""
        lines = [f"{escape_spaces(self.object_file)}: \\", f" {escape_spaces(self.source_file)}"]
        for header in self.headers:
            lines[-1] += " \\"
            lines.append(f" {escape_spaces(header)}")
        return "\n".join(lines) + "\n"

    def write(self, dep_file: PathLike) -> None:
        dep_path = Path(dep_file)
        dep_path.parent.mkdir(parents=True, exist_ok=True)
        with open(dep_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(self.to_makefile())


class DependencyRecorder:
    """Filters and normalizes discovered headers into DependencyRecords."""

    def __init__(self, exclusion_roots: Iterable[Optional[PathLike]]):
        """Initialize recorder.

        Args:
            exclusion_roots: Directories whose headers are never recorded.
                None entries are ignored.
        """
        self.exclusion_roots: Tuple[str, ...] = tuple(
            normalize_path(root).rstrip('/')
            for root in exclusion_roots
            if root
        )

    def is_excluded(self, normalized_path: str) -> bool:
        """Check if a normalized path lies under an exclusion root."""
        for root in self.exclusion_roots:
            if normalized_path == root or normalized_path.startswith(root + '/'):
                return True
        return False

    def record(
        self,
        object_file: PathLike,
        source_file: PathLike,
        headers: Iterable[str]
    ) -> DependencyRecord:
        """Build a record from discovered header paths.

        Args:
            object_file: Object file the record describes
            source_file: Source file compiled into object_file
            headers: Header paths from either reader

        Returns:
            DependencyRecord with normalized, filtered, deduplicated headers
        """
        kept = {}
        excluded = 0
        for header in headers:
            normalized = normalize_path(header)
            if self.is_excluded(normalized):
                excluded += 1
                continue
            kept.setdefault(normalized, None)

        logger.debug(
            f"{Path(source_file).name}: recorded {len(kept)} headers, excluded {excluded}"
        )
        return DependencyRecord(
            object_file=str(object_file),
            source_file=str(source_file),
            headers=tuple(kept),
        )

    def write(
        self,
        dep_file: PathLike,
        object_file: PathLike,
        source_file: PathLike,
        headers: Iterable[str]
    ) -> DependencyRecord:
        """Record headers and write the dependency file.

        Returns:
            The record that was written
        """
        record = self.record(object_file, source_file, headers)
        record.write(dep_file)
        return record


def parse_dependency_file(dep_file: PathLike) -> List[str]:
    """Read the prerequisites back out of a dependency file.

    Returns:
        Source file followed by the recorded headers, unescaped
    """
    text = Path(dep_file).read_text(encoding='utf-8')
    joined = text.replace('\\\n', ' ')
    _, _, prerequisites = joined.partition(': ')
    # Split on spaces not preceded by a backslash
    parts: Sequence[str] = re.split(r'(?<!\\) +', prerequisites.strip())
    return [p.replace('\\ ', ' ') for p in parts if p]
