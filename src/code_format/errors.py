"""
code-format Error Hierarchy
===========================

This module defines the exception hierarchy for code-format.
All exceptions inherit from CodeFormatError, allowing callers to catch all
formatter-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
CodeFormatError (base)
├── FormatIOError (file access)
│   ├── InputFileError - input file cannot be opened or read
│   └── OutputFileError - output file cannot be written
└── CxxFormatError (C/C++ engine, see code_format.cxx.errors)
    └── IncludeError - include directive problems (reported as warnings)

Design Philosophy
-----------------
Malformed C/C++ source is never an error: the lexer and the formatting
passes degrade to end of input and always produce output. Exceptions are
reserved for the environment (files that cannot be read or written) and
for include resolution, which is caught and reported as a warning by the
include handlers.

Error messages follow this format:
    filename:line:column: error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for diagnostics.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' (or 'filename:line')."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Base Exception Class
# =============================================================================

class CodeFormatError(Exception):
    """
    Base exception for all code-format errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

        Example output:
            main.cpp:3: error: could not find include file `foo.h`
            hint: add its directory with -I
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# File Access Exceptions
# =============================================================================

class FormatIOError(CodeFormatError):
    """
    Base exception for file access failures.

    These are fatal: the formatter cannot produce output without its
    input, and a failed write must be reported with a nonzero exit.

    Attributes:
        path: The file that could not be accessed
    """

    def __init__(self, path: str, reason: str, hint: Optional[str] = None):
        self.path = path
        self.reason = reason
        super().__init__(self._describe(path, reason), hint=hint)

    def _describe(self, path: str, reason: str) -> str:
        return f"could not access file `{path}`: {reason}"


class InputFileError(FormatIOError):
    """Raised when the input file cannot be opened or read."""

    def _describe(self, path: str, reason: str) -> str:
        return f"could not open input file `{path}`: {reason}"


class OutputFileError(FormatIOError):
    """Raised when the output file cannot be written."""

    def _describe(self, path: str, reason: str) -> str:
        return f"could not open output file `{path}`: {reason}"
