"""
Pragma-Once Normalization
=========================

Makes every header start with ``#pragma once``.

Header files are recognized by their extension, which must begin with
'h' (.h, .hpp, .hh, .hxx). Other files are left alone.

The first significant token of a header decides what happens:

- ``#pragma once``: already canonical, nothing to do
- ``#ifndef NAME`` directly followed by ``#define NAME``: a classic include
  guard, left untouched (and the header is then never changed)
- anything else: ``#pragma once`` and a blank line are inserted before it

Any further ``#pragma once`` line of an unguarded header is removed,
keeping the blank lines that surround it.
"""

import logging
from pathlib import PurePath

from code_format.cxx.lexer import Lexer, Token, TokenType
from code_format.cxx.processor import drop_line

logger = logging.getLogger(__name__)

PRAGMA_ONCE = "#pragma once"


def is_header_file(filename: str) -> bool:
    """Return True for files with an extension starting with 'h'."""
    return PurePath(filename).suffix[1:2] == "h"


def _is_pragma_once(token: Token, body: Token) -> bool:
    return token.is_preproc("pragma") and body.is_preproc_body_first_id("once")


class PragmaOnceFixer:
    """
    Per-token handler inserting and deduplicating ``#pragma once``.

    Attributes:
        filename: Name of the file being processed
        enabled: True if the file is a header
        guarded: True once a classic include guard was recognized
    """

    def __init__(self, filename: str):
        self.filename = filename
        self.enabled = is_header_file(filename)
        self.guarded = False

    def __call__(self, lexer: Lexer, token: Token, output: list) -> bool:
        """
        Handle one token.

        Returns:
            True if the token was emitted or dropped here, False if the
            caller should emit it.
        """
        if not self.enabled or self.guarded:
            return False
        if token.is_first_significant:
            return self._fix_first(lexer, token, output)
        if token.type is not TokenType.PREPROC_ID:
            return False

        body = lexer.next()
        if _is_pragma_once(token, body):
            logger.info(f"{self.filename}:{token.line}: removing duplicate {PRAGMA_ONCE}")
            drop_line(lexer, token, output)
            return True
        lexer.revert(body)
        return False

    def _fix_first(self, lexer: Lexer, token: Token, output: list) -> bool:
        if token.is_eof:
            return False

        lookahead = [lexer.next()]
        if token.type is TokenType.PREPROC_ID:
            if _is_pragma_once(token, lookahead[0]):
                lexer.revert(lookahead[0])
                return False
            if token.is_preproc("ifndef") and lookahead[0].type is TokenType.PREPROC_BODY:
                guard = lookahead[0].first_identifier
                lookahead += [lexer.next(), lexer.next()]
                if lookahead[1].is_preproc("define") and lookahead[2].is_preproc_body_first_id(guard):
                    self.guarded = True
        for ahead in reversed(lookahead):
            lexer.revert(ahead)
        if self.guarded:
            return False

        logger.info(f"{self.filename}: inserting {PRAGMA_ONCE}")
        if token.is_first:
            output.append(PRAGMA_ONCE + "\n\n" + token.with_trimmed_empty_lines().text)
        else:
            indent = token.whitespace.rpartition("\n")[2]
            output.append("\n\n" + PRAGMA_ONCE + "\n\n" + indent + token.trimmed)
        return True
