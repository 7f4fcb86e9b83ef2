"""
Single-Statement Bracing
========================

This module encloses the bodies of control statements in braces:

    if (a) x(); else if (b) y(); else z();

becomes

    if (a) { x(); } else if (b) { y(); } else { z(); }

The transform works directly on the token stream, without a grammar. The
original tokens (conditions, statements, comments) are copied unchanged.
Only the following pieces of layout are normalized:

- the opening brace always follows the condition on the same line (" {")
- ``else``, a chained ``if`` and the ``while`` of a do-while follow the
  closing brace (" else"), or start a new line aligned with the
  controlling keyword when comments sit in between
- an inserted closing brace stays on the statement's line, unless the
  statement started on a line of its own or is followed by a trailing
  comment, in which case it goes on a new line aligned with the keyword

Inside a macro body everything stays on one line: the closing brace is
placed before a trailing comment instead.

Control statements nested inside bodies are bracketed recursively, so the
result is stable: bracing already braced code changes nothing.

Preprocessor Directives
-----------------------
Directives met while copying keep a conditional state of their own, so
inactive branches inside a block are copied unchanged, and their braces
and semicolons are not counted.

A brace can only be inserted when the body lies within one conditional
branch. When a body starts with a directive, or a directive opened inside
the statement is still open where the statement ends, the statement is
left exactly as it was:

    if (a)
    #ifdef X
        x();
    #else
        y();
    #endif

Input is assumed to compile. Truncated statements are tolerated: when the
input ends early, whatever was built so far is kept and the end-of-input
token is handed back to the caller.
"""

import logging
from dataclasses import replace

from code_format.cxx.lexer import Lexer, Token, TokenType
from code_format.cxx.processor import CONDITIONAL_OPENERS, ConditionalState

logger = logging.getLogger(__name__)

CONTROL_KEYWORDS = frozenset({"if", "while", "for", "do"})


def fix_single_statement(
    lexer: Lexer,
    first_token: Token,
    output: list,
    definitions: frozenset = frozenset(),
) -> bool:
    """
    Bracket the statement controlled by ``first_token``.

    Args:
        lexer: Lexer positioned right after ``first_token``
        first_token: Candidate control keyword
        output: Output accumulator
        definitions: Names considered defined, for directives met inside
                     the statement

    Returns:
        False if ``first_token`` is not a control keyword, or its statement
        has to be left unbraced (nothing was emitted or consumed), True once
        the whole statement has been emitted.
    """
    if not first_token.is_any_identifier(CONTROL_KEYWORDS):
        return False
    return StatementBracer(lexer, output, definitions).try_statement(first_token)


class _Unbraceable(Exception):
    """A body cannot be braced without crossing a conditional branch."""


class StatementBracer:
    """
    Brackets one control statement, including the statements nested in it.

    Every token taken from the lexer is journaled, so that a statement that
    turns out to be unbraceable can be handed back to the lexer untouched.

    Attributes:
        lexer: Token source
        output: Output accumulator
        definitions: Names considered defined
        conditions: Skip state of the directives copied so far
    """

    def __init__(self, lexer: Lexer, output: list, definitions: frozenset = frozenset()):
        self.lexer = lexer
        self.output = output
        self.definitions = definitions
        self.conditions = ConditionalState()
        self._depth = 0
        self._journal: list[Token] = []

    # -------------------------------------------------------------------------
    # Token access
    # -------------------------------------------------------------------------

    def _next(self) -> Token:
        token = self.lexer.next()
        self._journal.append(token)
        return token

    def _revert(self, token: Token) -> None:
        if self._journal and self._journal[-1] is token:
            self._journal.pop()
        self.lexer.revert(token)

    def _on_new_line(self, first_token: Token, text: str, new_line: bool) -> str:
        if new_line and not self.lexer.nested:
            return first_token.make_indented(text, self.lexer.newline)
        return " " + text

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def try_statement(self, first_token: Token) -> bool:
        """Bracket a statement, or undo everything if it is unbraceable."""
        output_mark = len(self.output)
        journal_mark = len(self._journal)
        conditions = replace(self.conditions)
        depth = self._depth

        try:
            return self.statement(first_token)
        except _Unbraceable:
            del self.output[output_mark:]
            consumed = self._journal[journal_mark:]
            del self._journal[journal_mark:]
            for token in reversed(consumed):
                self.lexer.revert(token)
            self.conditions = conditions
            self._depth = depth
            logger.debug(
                f"{self.lexer.filename}:{first_token.line}: "
                f"'{first_token.trimmed}' body crosses a directive, left unbraced"
            )
            return False

    def statement(self, first_token: Token) -> bool:
        """
        Bracket the statement controlled by ``first_token``.

        Raises:
            _Unbraceable: If a body cannot be braced
        """
        if not first_token.is_any_identifier(CONTROL_KEYWORDS):
            return False

        self.output.append(first_token.text)

        is_do = first_token.is_identifier("do")
        is_else_block = False

        while True:
            token = self._next()
            if not is_else_block and not is_do:
                token = self._copy_condition(token)

            comments = []
            while token.is_comment:
                comments.append(token)
                token = self._next()

            if token.is_eof:
                self.output.extend(comment.text for comment in comments)
                self._revert(token)
                return True

            if token.type is TokenType.PREPROC_ID:
                if not is_do:
                    raise _Unbraceable()
                # The 'while' tail must still be consumed here
                self.output.extend(comment.text for comment in comments)
                self._copy_through_semicolon(self._copy_unbraced_do_body(token))
                return True

            self.output.append(" {")
            self.output.extend(comment.text for comment in comments)

            if token.is_symbol("{"):
                token = self._copy_block(self._next())
            else:
                token = self._bracket_statement(first_token, token)

            has_comments = False
            while token.is_comment:
                has_comments = True
                self.output.append(token.text)
                token = self._next()

            if is_do:
                if token.is_identifier("while"):
                    self.output.append(self._on_new_line(first_token, "while", has_comments))
                    token = self._next()
                self._copy_through_semicolon(token)
                return True

            if not is_else_block and first_token.is_identifier("if") and token.is_identifier("else"):
                self.output.append(self._on_new_line(first_token, "else", has_comments))

                token = self._next()
                comments = []
                while token.is_comment:
                    comments.append(token)
                    token = self._next()

                if token.is_identifier("if"):
                    self.output.extend(comment.text for comment in comments)
                    self.output.append(self._on_new_line(first_token, "if", bool(comments)))
                else:
                    # Final 'else': bracket its body on the next round
                    self._revert(token)
                    for comment in reversed(comments):
                        self._revert(comment)
                    is_else_block = True
                continue

            self._revert(token)
            return True

    def _bracket_statement(self, first_token: Token, token: Token) -> Token:
        """
        Copy a single statement and close the inserted brace after it.

        Returns the first token after the statement and its trailing comments.
        """
        make_new_line = token.has_newline
        depth = self._depth

        if self.statement(token):
            token = self._next()
        else:
            token = self._copy_statement(token)

        if self._depth != depth:
            raise _Unbraceable()

        trailing = []
        while token.is_comment and not token.has_newline:
            trailing.append(token.text)
            token = self._next()

        if self.lexer.nested:
            # A macro body is a single line
            self.output.append(" }")
            self.output.extend(trailing)
        else:
            self.output.extend(trailing)
            self.output.append(self._on_new_line(first_token, "}", make_new_line or bool(trailing)))
        return token

    # -------------------------------------------------------------------------
    # Copying
    # -------------------------------------------------------------------------

    def _copy_directive(self, token: Token) -> None:
        """
        Copy a directive line and update the conditional state.

        Raises:
            _Unbraceable: If the directive continues or closes a conditional
                          opened outside of the statement
        """
        self.output.append(token.text)
        directive = token.preproc_name
        body = self._next()
        if body.type is TokenType.PREPROC_BODY:
            self.output.append(body.text)
            condition = body.trimmed
        else:
            self._revert(body)
            condition = None

        if directive in CONDITIONAL_OPENERS:
            self._depth += 1
        elif directive in ("elif", "else", "endif"):
            # Belongs to a conditional opened before the statement
            if not self._depth:
                raise _Unbraceable()
            if directive == "endif":
                self._depth -= 1
        self.conditions.apply(directive, condition, self.definitions)

    def _copy_condition(self, token: Token) -> Token:
        """Copy tokens through the parenthesis matching the first '('."""
        level = -1
        while not token.is_eof:
            self.output.append(token.text)
            if level >= 0:
                level = token.track_level(level, "(", ")")
            elif token.is_symbol("("):
                level = 1
            token = self._next()
            if level == 0:
                break
        return token

    def _copy_statement(self, token: Token) -> Token:
        """
        Copy an ordinary statement through its terminating ';'.

        Braces are tracked so that initializer lists and lambdas do not end
        the statement early; control statements inside them are bracketed.
        """
        level = 0
        while not token.is_eof:
            if token.type is TokenType.PREPROC_ID:
                self._copy_directive(token)
            elif self.conditions.skipping:
                self.output.append(token.text)
            elif not (level > 0 and self.try_statement(token)):
                self.output.append(token.text)
                if level == 0 and token.is_symbol(";"):
                    return self._next()
                level = token.track_level(level, "{", "}")
            token = self._next()
        return token

    def _copy_block(self, token: Token) -> Token:
        """
        Copy a braced block whose '{' was already consumed.

        Control statements in active code inside are bracketed recursively.
        Returns the first token after the closing '}'.
        """
        level = 1
        while not token.is_eof:
            if token.type is TokenType.PREPROC_ID:
                self._copy_directive(token)
            elif self.conditions.skipping:
                self.output.append(token.text)
            else:
                level = token.track_level(level, "{", "}")
                if not self.try_statement(token):
                    self.output.append(token.text)
                if level == 0:
                    return self._next()
            token = self._next()
        return token

    def _copy_unbraced_do_body(self, token: Token) -> Token:
        """
        Copy a do-while body that starts with a directive, unchanged.

        Returns the 'while' token of the do-while.
        """
        level = 0
        depth = 0
        pending_do = 0
        while not token.is_eof:
            if token.type is TokenType.PREPROC_ID:
                if token.preproc_name in CONDITIONAL_OPENERS:
                    depth += 1
                elif token.preproc_name == "endif" and depth:
                    depth -= 1
            elif level == 0 and depth == 0:
                if token.is_identifier("do"):
                    pending_do += 1
                elif token.is_identifier("while"):
                    if not pending_do:
                        return token
                    pending_do -= 1
            level = token.track_level(level, "{", "}")
            self.output.append(token.text)
            token = self._next()
        return token

    def _copy_through_semicolon(self, token: Token) -> None:
        """Copy the 'while (...);' tail of a do-while statement."""
        level = 0
        while not token.is_eof:
            self.output.append(token.text)
            if level == 0 and token.is_symbol(";"):
                return
            level = token.track_level(level, "(", ")")
            token = self._next()
        self._revert(token)
