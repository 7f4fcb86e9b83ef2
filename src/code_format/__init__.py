"""
code-format - Token-Level Source Formatter for C/C++
====================================================

This package rewrites C/C++ sources and headers at the token level. It
applies a few structural fixes and reproduces every byte it does not
touch exactly.

Available Fixes
---------------
- **single statements**: brace the bodies of if/else/for/while/do
- **identifier naming**: convert mixedCase names to snake_case
- **pragma once**: start every header with ``#pragma once``
- **already included**: drop #include lines for files that are already
  included, directly or through another header
- **file ending**: end with one line break, no blank lines at the top

Quick Start
-----------
Format a string:
    >>> from code_format import FormattingParameters, format_text
    >>> format_text("while (x) x--;", FormattingParameters(fix_single_statement=True))
    'while (x) { x--; }'

Format a file:
    >>> from code_format import Formatter, FormattingParameters
    >>> result = Formatter(FormattingParameters(fix_pragma_once=True)).format_file("util.h")
    >>> result.changed
    True

Or use the command-line tool:
    $ code-format --fix-single-statement --fix-pragma-once -I include src/util.h

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from code_format.cxx import (
    Formatter,
    FormatResult,
    FormattingContext,
    FormattingParameters,
    IncludeDir,
    format_text,
)
from code_format.errors import (
    CodeFormatError,
    SourceLocation,
    FormatIOError,
    InputFileError,
    OutputFileError,
)
from code_format.cxx.errors import (
    CxxFormatError,
    IncludeError,
    IncludeNotFoundError,
    IncludeCycleError,
)

__all__ = [
    # Version info
    "__version__",
    # Formatter
    "Formatter",
    "FormatResult",
    "FormattingContext",
    "FormattingParameters",
    "IncludeDir",
    "format_text",
    # Exception hierarchy
    "CodeFormatError",
    "SourceLocation",
    "FormatIOError",
    "InputFileError",
    "OutputFileError",
    "CxxFormatError",
    "IncludeError",
    "IncludeNotFoundError",
    "IncludeCycleError",
]
