"""
C/C++ Formatter Main Module
===========================

This module provides the main formatter interface. It runs the enabled
fixes as a sequence of passes over the text:

    Source → Brace/Includes → Naming → Pragma Once → File Ending → Output

Usage
-----
Command line:
    $ code-format --fix-single-statement main.cpp

Programmatic:
    >>> from code_format.cxx.formatter import format_text
    >>> from code_format.cxx.context import FormattingParameters
    >>> format_text("if (a) b();", FormattingParameters(fix_single_statement=True))
    'if (a) { b(); }'

Formatting Passes
-----------------
Each pass lexes the output of the previous one and only runs if its fix
is enabled:

1. **Structure**: single-statement bracing and removal of includes of
   already included files. Runs on the original text, so include
   diagnostics carry original line numbers.
2. **Naming**: snake_case identifiers
3. **Pragma Once**: header protection
4. **File Ending**: no trailing whitespace and exactly one line break
   (in the file's own style) at the end, no blank lines at the top

Code in inactive conditional branches (see ``FormattingParameters.
definitions``) is copied unchanged by every pass. With no fix enabled the
output is identical to the input.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from code_format.cxx.bracer import fix_single_statement
from code_format.cxx.context import FormattingContext, FormattingParameters, IncludeDir
from code_format.cxx.includes import IncludeRewriter
from code_format.cxx.lexer import Lexer, Token
from code_format.cxx.naming import fix_id_naming
from code_format.cxx.pragma import PragmaOnceFixer
from code_format.cxx.processor import TokenCallback, process_text
from code_format.cxx.source import read_source

logger = logging.getLogger(__name__)

__all__ = [
    "Formatter",
    "FormatResult",
    "FormattingContext",
    "FormattingParameters",
    "IncludeDir",
    "format_text",
]


class Formatter:
    """
    C/C++ source formatter.

    Example:
        formatter = Formatter(FormattingParameters(fix_file_ending=True))
        result = formatter.format_file("main.cpp")
        if result.changed:
            ...

    Attributes:
        params: Formatting parameters
    """

    def __init__(self, params: Optional[FormattingParameters] = None):
        self.params = params or FormattingParameters()

    def format_text(
        self,
        text: str,
        filename: str = "<input>",
        context: Optional[FormattingContext] = None,
    ) -> str:
        """
        Format source text.

        Args:
            text: Source text
            filename: Source filename; relative quoted includes are resolved
                      against its directory
            context: Traversal state to fill in (a fresh one if None)

        Returns:
            The formatted text
        """
        params = self.params
        ctx = context if context is not None else FormattingContext()

        with ctx.enter(Path(filename).resolve()):
            if params.fix_single_statement or params.remove_already_included:
                text = self._run("structure", text, filename, self._structure_pass(ctx))
            if params.fix_id_naming:
                text = self._run("naming", text, filename, _naming_pass)
            if params.fix_pragma_once:
                text = self._run("pragma once", text, filename, _pragma_pass(filename))
            if params.fix_file_ending:
                text = self._run("file ending", text, filename, _file_ending_pass)

        return text

    def format_file(self, path: Union[str, Path]) -> "FormatResult":
        """
        Format a source file (the file itself is not written).

        Raises:
            InputFileError: If the file cannot be read
        """
        source = read_source(path)
        ctx = FormattingContext()
        output = self.format_text(source, str(path), ctx)
        return FormatResult(
            filename=str(path),
            source=source,
            output=output,
            direct_includes=list(ctx.direct_includes),
            indirect_includes=set(ctx.indirect_includes),
        )

    def _run(self, name: str, text: str, filename: str, on_token: TokenCallback) -> str:
        logger.debug(f"{filename}: {name} pass")
        return process_text(text, filename, self.params, on_token)

    def _structure_pass(self, ctx: FormattingContext) -> TokenCallback:
        rewriter = IncludeRewriter(ctx, self.params) if self.params.remove_already_included else None
        bracing = self.params.fix_single_statement

        def on_token(lexer: Lexer, token: Token, skip_level: int, output: list) -> None:
            if not skip_level:
                if rewriter is not None and rewriter(lexer, token, output):
                    return
                if bracing and fix_single_statement(lexer, token, output, self.params.definitions):
                    return
            output.append(token.text)

        return on_token


# =============================================================================
# Passes
# =============================================================================

def _naming_pass(lexer: Lexer, token: Token, skip_level: int, output: list) -> None:
    if skip_level:
        output.append(token.text)
    else:
        fix_id_naming(lexer, token, output)


def _pragma_pass(filename: str) -> TokenCallback:
    fixer = PragmaOnceFixer(filename)

    def on_token(lexer: Lexer, token: Token, skip_level: int, output: list) -> None:
        if skip_level or not fixer(lexer, token, output):
            output.append(token.text)

    return on_token


def _file_ending_pass(lexer: Lexer, token: Token, skip_level: int, output: list) -> None:
    if lexer.nested:
        output.append(token.text)
    elif token.is_eof:
        # Trailing whitespace of the last token goes too; a blank file stays empty
        while output and not output[-1].strip():
            output.pop()
        if output:
            output[-1] = output[-1].rstrip()
            output.append(lexer.newline)
    elif token.is_first:
        output.append(token.with_trimmed_empty_lines().text)
    else:
        output.append(token.text)


# =============================================================================
# Results
# =============================================================================

@dataclass
class FormatResult:
    """
    Result of formatting one file.

    Attributes:
        filename: Source filename
        source: Original text
        output: Formatted text
        direct_includes: (resolved path, line) of the includes kept in the file
        indirect_includes: Files reached through other files' includes
    """
    filename: str = ""
    source: str = ""
    output: str = ""
    direct_includes: list = field(default_factory=list)
    indirect_includes: set = field(default_factory=set)

    @property
    def changed(self) -> bool:
        return self.output != self.source


# =============================================================================
# Convenience Functions
# =============================================================================

def format_text(
    text: str,
    params: Optional[FormattingParameters] = None,
    filename: str = "<input>",
) -> str:
    """
    Format C/C++ source text with the given parameters.

    Args:
        text: Source text
        params: Formatting parameters (no fix enabled if None)
        filename: Source filename for diagnostics and include resolution

    Returns:
        The formatted text
    """
    return Formatter(params).format_text(text, filename)
