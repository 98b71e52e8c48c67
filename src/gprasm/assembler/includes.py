"""
Include file expansion.

Replaces every ``include "path"`` line with the parsed lines of the named
file, recursively, so later stages see one flat, ordered line stream.

Paths are searched relative to the including file first, then in each
configured include directory, then in the current working directory.
A file that (directly or indirectly) includes itself is rejected; the
same file may still be included several times one after the other.
"""

import logging
from pathlib import Path
from typing import Optional

from gprasm.errors import IncludeError, SourceLocation
from gprasm.assembler.opcodes import MAX_REGISTERS
from gprasm.assembler.parser import Include, Line, parse_source

logger = logging.getLogger(__name__)


class IncludeResolver:
    """
    Expands include directives into a flat list of lines.

    Usage:
        resolver = IncludeResolver([Path("lib")])
        lines = resolver.expand(source, "main.s")
    """

    def __init__(
        self,
        include_paths: Optional[list[Path]] = None,
        register_count: int = MAX_REGISTERS,
    ):
        self._include_paths = [Path(p) for p in include_paths or []]
        self._register_count = register_count
        self._active: list[str] = []

    def expand(self, source: str, filename: str = "<input>") -> list[Line]:
        """
        Parse ``source`` and splice in the lines of every included file.

        Args:
            source: Root source text
            filename: Root filename, used for relative include lookups

        Returns:
            The fully expanded line stream, in source order

        Raises:
            IncludeError: If a file is missing, unreadable or circular
            AssemblySyntaxError: If any file fails to parse
        """
        self._active = []
        if filename != "<input>":
            self._active.append(_canonical(Path(filename)))
        return self._expand(source, filename)

    def _expand(self, source: str, filename: str) -> list[Line]:
        lines = parse_source(source, filename, self._register_count)
        expanded: list[Line] = []

        for line in lines:
            if not isinstance(line.instruction, Include):
                expanded.append(line)
                continue

            if line.label is not None:
                expanded.append(Line(line.location, line.label, None, line.source))

            expanded.extend(self._include(line))

        return expanded

    def _include(self, line: Line) -> list[Line]:
        name = line.instruction.path
        path = self.resolve_path(name, line.location)

        if path is None:
            raise IncludeError(
                name,
                "file not found",
                line.location,
                source_line=line.source,
                search_paths=[str(p) for p in self._search_dirs(line.location)],
            )

        key = _canonical(path)
        if key in self._active:
            raise IncludeError(
                name,
                "circular include detected",
                line.location,
                source_line=line.source,
            )

        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IncludeError(name, str(e), line.location, source_line=line.source) from e

        logger.debug("Including %s from %s", path, line.location)

        self._active.append(key)
        try:
            return self._expand(source, str(path))
        finally:
            self._active.pop()

    def resolve_path(self, name: str, location: SourceLocation) -> Optional[Path]:
        """Find an include file, or return None if no candidate exists."""
        for directory in self._search_dirs(location):
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    def _search_dirs(self, location: SourceLocation) -> list[Path]:
        dirs = []
        if location.filename != "<input>":
            dirs.append(Path(location.filename).parent)
        dirs.extend(self._include_paths)
        dirs.append(Path("."))
        return dirs


def _canonical(path: Path) -> str:
    return str(path.resolve())


def expand_includes(
    source: str,
    filename: str = "<input>",
    include_paths: Optional[list[Path]] = None,
    register_count: int = MAX_REGISTERS,
) -> list[Line]:
    """
    Parse a root source text and expand its includes.

    Convenience wrapper around ``IncludeResolver``.
    """
    resolver = IncludeResolver(include_paths, register_count)
    return resolver.expand(source, filename)
