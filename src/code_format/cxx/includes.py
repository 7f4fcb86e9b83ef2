"""
Include Graph Resolution
========================

This module follows ``#include`` directives: it resolves include paths,
walks the graph of custom headers and removes directives that include a
file a second time.

Resolution Order
----------------
1. An absolute path is used as is, if the file exists
2. For "quoted" includes, the directory of every open file, innermost
   first (the including file, then the file that included it, ...)
3. The configured include directories, in order (-I and -IS)

The first existing candidate wins. Resolved paths are canonical
(``Path.resolve()``), so the same header reached through different
spellings compares equal.

Traversal
---------
Headers found in custom directories are opened and scanned for their own
includes; headers found in system directories are recorded but never
opened. Only directives in active conditional branches are followed.
Every file reached through another file ends up in
``FormattingContext.indirect_includes``.

Problems with single includes never stop formatting. A missing file, an
unreadable file or a circular include is logged as a warning and that
branch of the traversal is skipped:

    main.cpp:3: could not find include file `config.h`
    a.h:1: circular include of `a.h`
"""

import logging
from pathlib import Path
from typing import Optional

from code_format.cxx.context import FormattingContext, FormattingParameters
from code_format.cxx.errors import IncludeCycleError, IncludeError, IncludeNotFoundError
from code_format.cxx.lexer import Lexer, Token, TokenType
from code_format.cxx.processor import drop_line, process_text
from code_format.cxx.source import read_source
from code_format.errors import InputFileError, SourceLocation

logger = logging.getLogger(__name__)

# Escape sequences decoded in "quoted" include paths
ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}


# =============================================================================
# Path Extraction and Resolution
# =============================================================================

def extract_include_path(text: str) -> Optional[tuple[str, bool]]:
    """
    Extract the path from the body of an #include directive.

    Args:
        text: Directive body, e.g. '<stdio.h>' or '"dir/file.h"'

    Returns:
        (path, is_angled), or None if the body is not a literal path
        (for example a macro name).
    """
    text = text.strip()

    if text.startswith("<"):
        end = text.find(">", 1)
        if end <= 1:
            return None
        return text[1:end], True

    if not text.startswith('"'):
        return None

    chars = []
    pos = 1
    while pos < len(text):
        char = text[pos]
        if char == '"':
            break
        if char == "\\" and pos + 1 < len(text):
            escaped = text[pos + 1]
            chars.append(ESCAPES.get(escaped, "\\" + escaped))
            pos += 2
            continue
        chars.append(char)
        pos += 1
    else:
        # Unterminated
        return None

    name = "".join(chars)
    return (name, False) if name else None


def resolve_include(
    name: str,
    is_angled: bool,
    ctx: FormattingContext,
    params: FormattingParameters,
    location: Optional[SourceLocation] = None,
) -> tuple[Path, bool]:
    """
    Find the file an include directive refers to.

    Args:
        name: Path as written in the directive
        is_angled: True for <...> includes
        ctx: Traversal state (the open-file stack is searched)
        params: Formatting parameters (include directories)
        location: Directive location for error reporting

    Returns:
        (resolved path, True if it was found in a system directory)

    Raises:
        IncludeNotFoundError: If no candidate exists
    """
    path = Path(name)
    if path.is_absolute():
        if path.is_file():
            return path.resolve(), False
        raise IncludeNotFoundError(name, location)

    searched = []

    if not is_angled:
        for open_file in reversed(ctx.open_files):
            directory = open_file.parent
            searched.append(directory)
            candidate = directory / path
            if candidate.is_file():
                return candidate.resolve(), False

    for include_dir in params.include_dirs:
        searched.append(include_dir.path)
        candidate = include_dir.path / path
        if candidate.is_file():
            return candidate.resolve(), include_dir.is_system

    raise IncludeNotFoundError(name, location, search_paths=searched)


# =============================================================================
# Traversal
# =============================================================================

def _warn(exc: IncludeError) -> None:
    prefix = f"{exc.location}: " if exc.location else ""
    logger.warning(f"{prefix}{exc.message}")
    if exc.hint:
        logger.debug(f"{prefix}{exc.hint}")


def _read_include_body(lexer: Lexer) -> Optional[Token]:
    """Consume the body following an '#include' token, if there is one."""
    body = lexer.next()
    if body.type is TokenType.PREPROC_BODY:
        return body
    lexer.revert(body)
    return None


def scan_includes(
    path: Path,
    ctx: FormattingContext,
    params: FormattingParameters,
    location: Optional[SourceLocation] = None,
) -> None:
    """
    Scan a custom header for its own includes, recursively.

    ``path`` is pushed on the open-file stack while it is scanned. If it is
    already open, the include is circular: a warning is logged and the
    file is not scanned again.

    Args:
        path: Resolved header path
        ctx: Traversal state, updated in place
        params: Formatting parameters
        location: Location of the directive that led here
    """
    try:
        text = read_source(path)
    except InputFileError as e:
        prefix = f"{location}: " if location else ""
        logger.warning(f"{prefix}{e.message}")
        return

    def on_token(lexer: Lexer, token: Token, skip_level: int, output: list) -> None:
        if skip_level or not token.is_preproc("include"):
            return
        body = _read_include_body(lexer)
        if body is not None:
            follow_include(body.trimmed, ctx, params, SourceLocation(lexer.filename, token.line))

    try:
        with ctx.enter(path, location):
            logger.debug(f"scanning includes of {path}")
            process_text(text, str(path), params, on_token)
    except IncludeCycleError as e:
        _warn(e)


def follow_include(
    directive_body: str,
    ctx: FormattingContext,
    params: FormattingParameters,
    location: Optional[SourceLocation] = None,
) -> None:
    """Record the target of an indirect #include and scan it if needed."""
    parsed = extract_include_path(directive_body)
    if parsed is None:
        return
    name, is_angled = parsed

    try:
        target, is_system = resolve_include(name, is_angled, ctx, params, location)
    except IncludeNotFoundError as e:
        _warn(e)
        return

    already_seen = ctx.is_included(target)
    ctx.indirect_includes.add(target)

    if is_system:
        return
    # A file still open is scanned again so that the cycle gets reported
    if already_seen and target not in ctx.open_files:
        return
    scan_includes(target, ctx, params, location)


# =============================================================================
# Top-Level Rewriting
# =============================================================================

class IncludeRewriter:
    """
    Per-token handler for the #include directives of the top-level file.

    Records each directly included file together with its source line,
    scans custom headers for what they include in turn, and drops a
    directive whose target was already included directly or indirectly.

    Usage:
        rewriter = IncludeRewriter(ctx, params)
        if not rewriter(lexer, token, output):
            output.append(token.text)
    """

    def __init__(self, ctx: FormattingContext, params: FormattingParameters):
        self.ctx = ctx
        self.params = params

    def __call__(self, lexer: Lexer, token: Token, output: list) -> bool:
        """
        Handle one token.

        Returns:
            True if the directive (name and body) was emitted or dropped,
            False if ``token`` is not an #include with a body.
        """
        if not token.is_preproc("include"):
            return False
        body = _read_include_body(lexer)
        if body is None:
            return False

        location = SourceLocation(lexer.filename, token.line)
        parsed = extract_include_path(body.trimmed)
        if parsed is None:
            logger.debug(f"{location}: not a literal include path: {body.trimmed!r}")
            output.append(token.text + body.text)
            return True
        name, is_angled = parsed

        try:
            target, is_system = resolve_include(name, is_angled, self.ctx, self.params, location)
        except IncludeNotFoundError as e:
            _warn(e)
            output.append(token.text + body.text)
            return True

        if self.ctx.is_included(target):
            logger.info(f"{location}: removing already included `{name}`")
            drop_line(lexer, token, output)
            return True

        self.ctx.direct_includes.append((target, token.line))
        if not is_system:
            scan_includes(target, self.ctx, self.params, location)

        output.append(token.text + body.text)
        return True
