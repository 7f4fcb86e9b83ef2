"""
Formatting Parameters and Context
=================================

FormattingParameters is the immutable configuration of one formatting run
(which fixes are enabled, which names count as defined, where to search for
include files). FormattingContext is the mutable state of one top-level
file's traversal: the stack of files currently open and the include sets
collected so far.

The open-file stack is only changed through ``FormattingContext.enter()``,
which pops the path again on every exit path, including errors.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from code_format.cxx.errors import IncludeCycleError
from code_format.errors import SourceLocation


@dataclass(frozen=True)
class IncludeDir:
    """
    An include search directory.

    Attributes:
        path: Directory to search
        is_system: True for system directories (-IS); files found there
                   are recorded but never scanned for their own includes
    """
    path: Path
    is_system: bool = False


@dataclass(frozen=True)
class FormattingParameters:
    """
    Formatter configuration options.

    Attributes:
        fix_file_ending: End the file with exactly one line break and drop
                         blank lines at its top
        fix_single_statement: Enclose single-statement bodies in braces
        fix_id_naming: Convert mixed-case identifiers to snake_case
        fix_pragma_once: Ensure headers start with '#pragma once'
        remove_already_included: Drop #include lines for files that are
                                 already included directly or indirectly
        definitions: Names considered defined by conditional compilation
        include_dirs: Include search directories, in search order
        debug_level: Diagnostic verbosity (2 and above traces tokens)
    """
    fix_file_ending: bool = False
    fix_single_statement: bool = False
    fix_id_naming: bool = False
    fix_pragma_once: bool = False
    remove_already_included: bool = False
    definitions: frozenset = frozenset()
    include_dirs: tuple = ()
    debug_level: int = 0

    @property
    def any_fix_enabled(self) -> bool:
        return (
            self.fix_file_ending
            or self.fix_single_statement
            or self.fix_id_naming
            or self.fix_pragma_once
            or self.remove_already_included
        )


@dataclass
class FormattingContext:
    """
    Per-file traversal state, threaded through the include recursion.

    Attributes:
        open_files: Files currently being processed, innermost last
        direct_includes: (resolved path, source line) of every #include
                         kept in the top-level file
        indirect_includes: Every file reached through another file's
                           includes
    """
    open_files: list = field(default_factory=list)
    direct_includes: list = field(default_factory=list)
    indirect_includes: set = field(default_factory=set)

    @property
    def current_file(self) -> Optional[Path]:
        return self.open_files[-1] if self.open_files else None

    @contextmanager
    def enter(self, path: Path, location: Optional[SourceLocation] = None) -> Iterator[Path]:
        """
        Push ``path`` on the open-file stack for the duration of a block.

        Raises:
            IncludeCycleError: If ``path`` is already open
        """
        if path in self.open_files:
            raise IncludeCycleError(
                path.name,
                chain=[*self.open_files, path],
                location=location,
            )
        self.open_files.append(path)
        try:
            yield path
        finally:
            self.open_files.pop()

    def is_directly_included(self, path: Path) -> bool:
        return any(included == path for included, _ in self.direct_includes)

    def is_included(self, path: Path) -> bool:
        """Return True if ``path`` was already reached directly or indirectly."""
        return path in self.indirect_includes or self.is_directly_included(path)
