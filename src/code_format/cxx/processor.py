"""
Directive-Aware Token Stream Driver
===================================

This module drives the lexer over a text buffer and hands every token to a
callback, while keeping track of conditional compilation. It is the loop
every formatting pass is built on.

Conditional Compilation
-----------------------
The driver does not evaluate expressions. A condition "matches" only when
the directive body is a single identifier listed in the definitions:

#ifdef NAME / #if NAME      - matched iff NAME is defined
#ifndef NAME                - matched iff NAME is not defined
#elif NAME                  - taken iff no earlier branch matched and NAME is defined
#else                       - taken iff no earlier branch matched
#endif                      - closes the conditional (a stray one is ignored)

Compound conditions such as ``#if defined(A) && B`` never match. A branch
that was entered is assumed to be final, so any later ``#elif``/``#else``
of the same chain is skipped.

Skipped branches are still delivered to the callback, together with the
current skip level, so the callback decides what to emit for them.

Macro Bodies
------------
The body of ``#define`` is rescanned by a nested run of the driver, so
that the passes see the tokens inside macro definitions too. The nested
run starts outside of any directive and does not touch the outer skip
state.

Example
-------
>>> from code_format.cxx.processor import process_text
>>> from code_format.cxx.context import FormattingParameters
>>> def active_only(lexer, token, skip_level, output):
...     if skip_level == 0:
...         output.append(token.text)
>>> params = FormattingParameters(definitions=frozenset({"A"}))
>>> process_text("#ifdef A\\nfoo\\n#else\\nbar\\n#endif", "x.c", params, active_only)
'#ifdef A\\nfoo\\n#else'
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from code_format.cxx.context import FormattingParameters
from code_format.cxx.lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)

# on_token(lexer, token, skip_level, output)
TokenCallback = Callable[[Lexer, Token, int, list], None]

CONDITIONAL_OPENERS = ("if", "ifdef", "ifndef")


# =============================================================================
# Conditional Compilation State
# =============================================================================

@dataclass
class ConditionalState:
    """
    Skip state of conditional compilation.

    Attributes:
        skip_level: Nesting depth of currently inactive branches (0 = active)
        already_matched: Whether a branch of the innermost chain that
                         borders the active code has already been taken
    """
    skip_level: int = 0
    already_matched: bool = False

    @property
    def skipping(self) -> bool:
        return self.skip_level > 0

    def apply(self, directive: str, condition: Optional[str], definitions: frozenset) -> None:
        """
        Update the state for one directive.

        Args:
            directive: Directive name ('ifdef', 'else', ...)
            condition: Directive body text, or None if the directive has none
            definitions: Names considered defined
        """
        defined = condition is not None and condition.strip() in definitions

        if directive in CONDITIONAL_OPENERS:
            if not self.skip_level:
                matched = not defined if directive == "ifndef" else defined
                if not matched:
                    self.skip_level += 1
                self.already_matched = False
            else:
                self.skip_level += 1

        elif directive == "elif":
            if not self.skip_level:
                self.skip_level = 1
                self.already_matched = True
            elif self.skip_level == 1 and not self.already_matched and defined:
                self.skip_level = 0

        elif directive == "else":
            if not self.skip_level:
                self.skip_level = 1
                self.already_matched = True
            elif self.skip_level == 1 and not self.already_matched:
                self.skip_level = 0

        elif directive == "endif":
            if self.skip_level:
                self.skip_level -= 1


# =============================================================================
# Driver
# =============================================================================

def process_text(
    text: str,
    filename: str,
    params: FormattingParameters,
    on_token: TokenCallback,
    at_beginning_of_line: bool = True,
    nested: bool = False,
) -> str:
    """
    Run the lexer over ``text`` and collect what ``on_token`` emits.

    Args:
        text: Source text to process
        filename: Source filename for diagnostics
        params: Formatting parameters (definitions and debug level are used)
        on_token: Callback receiving (lexer, token, skip_level, output);
                  it appends the text it wants to keep to ``output``
        at_beginning_of_line: Whether the text starts at a line start
        nested: True for macro bodies (no token is flagged as first)

    Returns:
        The concatenation of everything the callback emitted.
    """
    lexer = Lexer(text, filename, at_beginning_of_line=at_beginning_of_line, nested=nested)
    state = ConditionalState()
    output: list[str] = []
    trace = params.debug_level >= 2

    while True:
        token = lexer.next()
        if trace:
            logger.debug(f"token: {token.type.name}, ws_count = {token.ws_count}: {token.trimmed!r}")

        on_token(lexer, token, state.skip_level, output)
        if token.is_eof:
            break
        if token.type is not TokenType.PREPROC_ID:
            continue

        directive = token.preproc_name
        body: Optional[Token] = lexer.next()
        if body.type is not TokenType.PREPROC_BODY:
            lexer.revert(body)
            body = None
        elif directive == "define":
            output.append(_process_macro_body(body, filename, params, on_token, state.skip_level))
        else:
            if trace:
                logger.debug(f"preproc body: {body.text!r}")
            on_token(lexer, body, state.skip_level, output)

        state.apply(directive, body.trimmed if body else None, params.definitions)

    return "".join(output)


def _process_macro_body(
    body: Token,
    filename: str,
    params: FormattingParameters,
    on_token: TokenCallback,
    skip_level: int,
) -> str:
    """Rescan a #define body, reporting the enclosing skip level."""

    def forward(lexer: Lexer, token: Token, _nested_level: int, output: list) -> None:
        on_token(lexer, token, skip_level, output)

    return process_text(
        body.text,
        filename,
        params,
        forward,
        at_beginning_of_line=False,
        nested=True,
    )


# =============================================================================
# Line Removal
# =============================================================================

def drop_line(lexer: Lexer, first_token: Token, output: list) -> None:
    """
    Drop the physical line started by ``first_token``.

    The caller has already consumed the rest of the directive (its body).
    Comments trailing on the same line are dropped too. Blank lines before
    the dropped line are kept; when the dropped line was the first one of
    the file, the blank lines after it are trimmed instead.
    """
    token = lexer.next()
    while token.is_comment and not token.has_newline:
        token = lexer.next()

    if first_token.is_first:
        token = token.with_trimmed_empty_lines()
    else:
        output.append(first_token.empty_lines)
    lexer.revert(token)
