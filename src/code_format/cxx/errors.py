"""
C/C++ Engine Error Hierarchy
============================

This module defines the exceptions raised by the C/C++ formatting engine.
All exceptions inherit from CxxFormatError, which itself inherits from
the base CodeFormatError for consistent error handling across the package.

Exception Hierarchy
-------------------
CxxFormatError (base for all engine errors)
└── IncludeError - include directive could not be followed
    ├── IncludeNotFoundError - no search location contains the file
    └── IncludeCycleError - file is already being scanned

None of these stop formatting. The include handlers catch IncludeError,
log it as a warning, and skip that inclusion branch:

    main.cpp:4: error: could not find include file `missing.h`
    hint: searched: ., include
"""

from pathlib import Path
from typing import Optional, Sequence

from code_format.errors import CodeFormatError, SourceLocation


class CxxFormatError(CodeFormatError):
    """Base exception for C/C++ engine errors."""
    pass


# =============================================================================
# Include Errors
# =============================================================================

class IncludeError(CxxFormatError):
    """
    An include directive that cannot be followed.

    Attributes:
        filename: The include path as written in the directive
    """

    def __init__(
        self,
        filename: str,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.filename = filename
        super().__init__(message, location=location, hint=hint)


class IncludeNotFoundError(IncludeError):
    """
    No search location contains the included file.

    Attributes:
        search_paths: Directories that were searched, in order
    """

    def __init__(
        self,
        filename: str,
        location: Optional[SourceLocation] = None,
        search_paths: Sequence[Path] = (),
    ):
        self.search_paths = list(search_paths)
        hint = None
        if self.search_paths:
            hint = "searched: " + ", ".join(str(p) for p in self.search_paths)
        super().__init__(
            filename,
            f"could not find include file `{filename}`",
            location=location,
            hint=hint,
        )


class IncludeCycleError(IncludeError):
    """
    The file is already on the stack of open files.

    Attributes:
        chain: The open-file stack at the moment the cycle was detected
    """

    def __init__(
        self,
        filename: str,
        chain: Sequence[Path] = (),
        location: Optional[SourceLocation] = None,
    ):
        self.chain = list(chain)
        hint = None
        if self.chain:
            hint = "include chain: " + " -> ".join(str(p) for p in self.chain)
        super().__init__(
            filename,
            f"circular include of `{filename}`",
            location=location,
            hint=hint,
        )
