"""
C/C++ Lexer (Whitespace-Preserving Tokenizer)
=============================================

This module implements the lexer used by every formatting pass.
Unlike a compiler lexer it never discards anything: whitespace, comments
and escaped line continuations are folded into the tokens, so that
joining the text of all tokens reproduces the input exactly.

Token Categories
----------------
- EOF: end of input (its text holds any trailing whitespace)
- SYMBOL: operators and punctuators (maximal munch)
- IDENTIFIER: names and keywords (keywords are not distinguished)
- STRING: string and character literals, including prefixed and raw ones
- INTEGER / REAL: pp-numbers, classified by their spelling
- PREPROC_ID: '#' plus the directive name, only at the beginning of a line
- PREPROC_BODY: rest of the directive's logical line
- COMMENT: // and /* */ comments

Whitespace Handling
-------------------
Whitespace is never a token of its own. It is counted into the leading
``ws_count`` of the token that follows it. A backslash immediately
followed by a newline is whitespace too, but it does not start a new
logical line, so a '#' after it is not a directive.

Lexical States
--------------
The lexer keeps a stack of LexerState values:

| State                 | Meaning                                      |
|-----------------------|----------------------------------------------|
| INITIAL               | ordinary code                                |
| AT_BEGINNING_OF_LINE  | only whitespace/comments seen on this line   |
| PREPROC               | directive name read, body not captured yet   |

Malformed input never raises. Unterminated string and character literals
stop at the end of their line; unterminated block comments and raw
strings run to the end of input.

Example Usage
-------------
>>> from code_format.cxx.lexer import Lexer
>>> lexer = Lexer("if (x)\\n  y();", "test.c")
>>> lexer.next()
Token(IDENTIFIER, 'if', 1:1)
>>> lexer.next()
Token(SYMBOL, '(', 1:4)
"""

import re
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Iterable, Iterator


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token classes produced by the lexer."""

    EOF = auto()            # End of input
    SYMBOL = auto()         # Operators and punctuators
    IDENTIFIER = auto()     # Names and keywords
    STRING = auto()         # "..." and '...' literals
    INTEGER = auto()        # Integer pp-numbers
    REAL = auto()           # Floating pp-numbers
    PREPROC_ID = auto()     # '#define', '# include', ...
    PREPROC_BODY = auto()   # Directive body up to the logical end of line
    COMMENT = auto()        # // and /* */ comments


class LexerState(Enum):
    """Lexical modes kept on the lexer's state stack."""

    INITIAL = auto()
    AT_BEGINNING_OF_LINE = auto()
    PREPROC = auto()


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A classified slice of source text.

    Attributes:
        type: The TokenType classification
        text: Token text including its leading whitespace
        ws_count: Number of leading whitespace characters in ``text``
        line: Line of the first significant character (1-indexed)
        column: Column of the first significant character (1-indexed)
        is_first: True for the token starting at offset 0 of the file
        is_first_significant: True for the first non-comment token
    """
    type: TokenType
    text: str
    ws_count: int = 0
    line: int = 1
    column: int = 1
    is_first: bool = False
    is_first_significant: bool = False

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.trimmed!r}, {self.line}:{self.column})"

    @property
    def trimmed(self) -> str:
        """Token text without its leading whitespace."""
        return self.text[self.ws_count:]

    @property
    def whitespace(self) -> str:
        """The leading whitespace of the token."""
        return self.text[:self.ws_count]

    @property
    def is_eof(self) -> bool:
        return self.type is TokenType.EOF

    @property
    def is_comment(self) -> bool:
        return self.type is TokenType.COMMENT

    def is_symbol(self, symbol: str) -> bool:
        """Return True if this is the given operator or punctuator."""
        return self.type is TokenType.SYMBOL and self.trimmed == symbol

    def is_identifier(self, name: str) -> bool:
        return self.type is TokenType.IDENTIFIER and self.trimmed == name

    def is_any_identifier(self, names: Iterable[str]) -> bool:
        return self.type is TokenType.IDENTIFIER and self.trimmed in names

    # -------------------------------------------------------------------------
    # Preprocessor helpers
    # -------------------------------------------------------------------------

    @property
    def preproc_name(self) -> str:
        """
        Directive name of a PREPROC_ID token ('define' for '#  define').

        Returns an empty string for a null directive ('#' alone).
        """
        match = _IDENTIFIER_SEARCH.search(self.trimmed)
        return match.group(0) if match else ""

    def is_preproc(self, name: str) -> bool:
        """Return True if this is the directive name token '#<name>'."""
        return self.type is TokenType.PREPROC_ID and self.preproc_name == name

    @property
    def first_identifier(self) -> str:
        """Identifier at the very start of the trimmed text, or ''."""
        match = _IDENTIFIER_PATTERN.match(self.text, self.ws_count)
        return match.group(0) if match else ""

    def is_preproc_body_first_id(self, name: str) -> bool:
        """Return True if this is a directive body starting with ``name``."""
        return (
            self.type is TokenType.PREPROC_BODY
            and bool(name)
            and self.first_identifier == name
        )

    # -------------------------------------------------------------------------
    # Layout helpers
    # -------------------------------------------------------------------------

    def track_level(self, level: int, opening: str, closing: str) -> int:
        """Update a nesting level for an opening/closing symbol pair."""
        if self.type is TokenType.SYMBOL:
            if self.trimmed == opening:
                return level + 1
            if self.trimmed == closing:
                return level - 1
        return level

    @property
    def has_newline(self) -> bool:
        """True if the leading whitespace contains an unescaped line break."""
        ws = self.whitespace
        for index, char in enumerate(ws):
            if char == "\n" and not ws.endswith(("\\", "\\\r"), 0, index):
                return True
        return False

    def make_indented(self, text: str, newline: str = "\n") -> str:
        """
        Return ``text`` on a new line, aligned with this token.

        When the token starts a line, its own line break and indentation
        are reused (CRLF and tabs are kept). Otherwise ``newline`` is used
        and ``text`` is aligned with the token's column using spaces.
        """
        ws = self.whitespace
        index = ws.rfind("\n")
        if not self.has_newline:
            return newline + " " * max(0, self.column - 1) + text
        own_newline = "\r\n" if ws[index - 1:index] == "\r" else "\n"
        return own_newline + ws[index + 1:] + text

    @property
    def empty_lines(self) -> str:
        """
        Leading whitespace up to (but excluding) its last line break.

        Emitting this instead of the token drops the token's physical line
        while keeping the blank lines that preceded it.
        """
        ws = self.whitespace
        index = ws.rfind("\n")
        return ws[:index] if index >= 0 else ""

    def with_trimmed_empty_lines(self) -> "Token":
        """Return a copy without leading blank lines, flagged as first token."""
        ws = self.whitespace
        index = ws.rfind("\n")
        if index >= 0:
            ws = ws[index + 1:]
        return replace(
            self,
            text=ws + self.trimmed,
            ws_count=len(ws),
            is_first=True,
        )


# =============================================================================
# Lexer Tables
# =============================================================================

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$\u0080-\uffff][A-Za-z0-9_$\u0080-\uffff]*")
_IDENTIFIER_SEARCH = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# pp-number: digits, letters, '.', exponent signs and digit separators
_NUMBER_PATTERN = re.compile(r"\.?[0-9](?:[eEpP][+-]|'(?=[0-9A-Za-z])|[0-9A-Za-z_.])*")

_RAW_DELIMITER = re.compile(r'[^\s()\\"]{0,16}\(')

_HORIZONTAL_SPACE = " \t\r\f\v"

STRING_PREFIXES = frozenset({"L", "u", "U", "u8"})
RAW_STRING_PREFIXES = frozenset({"R", "LR", "uR", "UR", "u8R"})

# Longest first, so the first match is the maximal munch
PUNCTUATORS = (
    "<<=", ">>=", "...", "->*", "<=>",
    "->", "++", "--", "<<", ">>", "<=", ">=", "==", "!=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "::", "##", ".*",
)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes C/C++ source text without losing a single character.

    Tokens pushed back with ``revert()`` are returned again by ``next()``
    in last-in first-out order, which gives callers arbitrary lookahead
    without a grammar.

    Usage:
        lexer = Lexer(source_text, filename)
        token = lexer.next()
        while not token.is_eof:
            ...
            token = lexer.next()

    Attributes:
        source: The source text being tokenized
        filename: Name of the source file (for diagnostics)
        newline: Line break of the source (CRLF or LF), taken from its
                 first line break
        nested: True for macro body fragments
    """

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        at_beginning_of_line: bool = True,
        nested: bool = False,
    ):
        """
        Initialize the lexer.

        Args:
            source: The C/C++ text to tokenize
            filename: Name of the source file (for diagnostics)
            at_beginning_of_line: Whether a '#' at offset 0 starts a directive
            nested: True when lexing a fragment (a macro body); such tokens
                    are never flagged as first tokens of the file
        """
        self.source = source
        self.filename = filename
        self.nested = nested
        self.newline = "\r\n" if re.match(r"[^\n]*\r\n", source) else "\n"

        self._pos = 0
        self._line = 1
        self._column = 1

        self._states: list[LexerState] = [
            LexerState.AT_BEGINNING_OF_LINE if at_beginning_of_line else LexerState.INITIAL
        ]
        self._reverted: list[Token] = []

        self._first_pending = not nested
        self._first_significant_pending = not nested

    @property
    def line(self) -> int:
        """Current line of the read position."""
        return self._line

    @property
    def state(self) -> LexerState:
        return self._states[-1]

    def revert(self, token: Token) -> None:
        """Push a token back; it is returned by the next call to next()."""
        self._reverted.append(token)

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including the first EOF token."""
        while True:
            token = self.next()
            yield token
            if token.is_eof:
                return

    def next(self) -> Token:
        """Return the next token, taking reverted tokens first."""
        if self._reverted:
            return self._reverted.pop()

        start = self._pos

        if self._states[-1] is LexerState.PREPROC:
            self._skip_horizontal_space()
            if self._at_body_start():
                return self._finish(TokenType.PREPROC_BODY, start, self._scan_body)
            # Directive without body: the line ends here
            self._states.pop()

        self._skip_whitespace()

        if self._pos >= len(self.source):
            return self._make_token(TokenType.EOF, start, self._pos - start, self._line, self._column)

        return self._finish(None, start, self._scan_token)

    # =========================================================================
    # Position Tracking
    # =========================================================================

    def _peek(self, offset: int = 0) -> str:
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _consume_to(self, end: int) -> None:
        """Advance the read position to ``end``, updating line and column."""
        newlines = self.source.count("\n", self._pos, end)
        if newlines:
            self._line += newlines
            self._column = end - self.source.rfind("\n", self._pos, end)
        else:
            self._column += end - self._pos
        self._pos = end

    def _continuation_length(self, pos: int) -> int:
        """Length of an escaped line break at ``pos`` (0 if there is none)."""
        src = self.source
        if src.startswith("\\\n", pos):
            return 2
        if src.startswith("\\\r\n", pos):
            return 3
        return 0

    # =========================================================================
    # Whitespace Handling
    # =========================================================================

    def _skip_whitespace(self) -> None:
        """Skip whitespace, line breaks and escaped line continuations."""
        src = self.source
        pos = self._pos
        while pos < len(src):
            char = src[pos]
            if char == "\n":
                self._states[-1] = LexerState.AT_BEGINNING_OF_LINE
                pos += 1
            elif char in _HORIZONTAL_SPACE:
                pos += 1
            else:
                length = self._continuation_length(pos)
                if not length:
                    break
                pos += length
        self._consume_to(pos)

    def _skip_horizontal_space(self) -> None:
        """Skip whitespace that does not end the logical line."""
        src = self.source
        pos = self._pos
        while pos < len(src):
            if src[pos] in _HORIZONTAL_SPACE:
                pos += 1
                continue
            length = self._continuation_length(pos)
            if not length:
                break
            pos += length
        self._consume_to(pos)

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        start: int,
        ws_count: int,
        line: int,
        column: int,
    ) -> Token:
        is_first = self._first_pending and start == 0
        self._first_pending = False

        is_first_significant = False
        if token_type is not TokenType.COMMENT:
            is_first_significant = self._first_significant_pending
            self._first_significant_pending = False

        return Token(
            type=token_type,
            text=self.source[start:self._pos],
            ws_count=ws_count,
            line=line,
            column=column,
            is_first=is_first,
            is_first_significant=is_first_significant,
        )

    def _finish(self, token_type, start: int, scanner) -> Token:
        """Run ``scanner`` from the current position and wrap its result."""
        ws_count = self._pos - start
        line, column = self._line, self._column
        scanned_type, end = scanner(self._pos)
        self._consume_to(end)
        return self._make_token(token_type or scanned_type, start, ws_count, line, column)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self, pos: int) -> tuple[TokenType, int]:
        """Classify the token starting at ``pos`` and return its end."""
        src = self.source
        char = src[pos]
        following = src[pos + 1:pos + 2]

        if char == "#" and self._states[-1] is LexerState.AT_BEGINNING_OF_LINE:
            end = self._scan_directive_name(pos)
            self._states[-1] = LexerState.INITIAL
            self._states.append(LexerState.PREPROC)
            return TokenType.PREPROC_ID, end

        if char == "/" and following == "/":
            return TokenType.COMMENT, self._scan_line_comment(pos)

        if char == "/" and following == "*":
            return TokenType.COMMENT, self._scan_block_comment(pos)

        # Every other token ends the "beginning of line" window
        self._states[-1] = LexerState.INITIAL

        match = _IDENTIFIER_PATTERN.match(src, pos)
        if match:
            return self._scan_identifier(match)

        if char.isdigit() or (char == "." and following.isdigit()):
            return self._scan_number(pos)

        if char in "\"'":
            return TokenType.STRING, self._scan_quoted(pos)

        for punctuator in PUNCTUATORS:
            if src.startswith(punctuator, pos):
                return TokenType.SYMBOL, pos + len(punctuator)

        return TokenType.SYMBOL, pos + 1

    def _scan_directive_name(self, pos: int) -> int:
        """Scan '#', optional spacing and the directive identifier."""
        src = self.source
        pos += 1
        while pos < len(src):
            if src[pos] in " \t":
                pos += 1
                continue
            length = self._continuation_length(pos)
            if not length:
                break
            pos += length
        match = _IDENTIFIER_SEARCH.match(src, pos)
        return match.end() if match else pos

    def _scan_identifier(self, match: re.Match) -> tuple[TokenType, int]:
        """Scan an identifier, or a literal introduced by a prefix."""
        src = self.source
        name = match.group(0)
        end = match.end()
        quote = src[end:end + 1]

        if quote == '"' and name in RAW_STRING_PREFIXES:
            return TokenType.STRING, self._scan_raw_string(end)
        if quote in ("'", '"') and name in STRING_PREFIXES:
            return TokenType.STRING, self._scan_quoted(end)
        return TokenType.IDENTIFIER, end

    def _scan_number(self, pos: int) -> tuple[TokenType, int]:
        """Scan a pp-number and tell integers from reals by spelling."""
        match = _NUMBER_PATTERN.match(self.source, pos)
        text = match.group(0)
        lowered = text.lower()
        if lowered.startswith("0x"):
            is_real = "." in text or "p" in lowered
        else:
            is_real = "." in text or "e" in lowered
        return (TokenType.REAL if is_real else TokenType.INTEGER), match.end()

    def _scan_quoted(self, pos: int) -> int:
        """
        Scan a string or character literal starting at its opening quote.

        An unterminated literal ends before the next unescaped line break.
        """
        src = self.source
        quote = src[pos]
        pos += 1
        while pos < len(src):
            char = src[pos]
            if char == "\\":
                pos += 3 if src.startswith("\r\n", pos + 1) else 2
            elif char == quote:
                return pos + 1
            elif char == "\n":
                return pos
            else:
                pos += 1
        return len(src)

    def _scan_raw_string(self, pos: int) -> int:
        """Scan R"delim( ... )delim" starting at the opening quote."""
        src = self.source
        match = _RAW_DELIMITER.match(src, pos + 1)
        if not match:
            return self._scan_quoted(pos)
        terminator = ")" + match.group(0)[:-1] + '"'
        end = src.find(terminator, match.end())
        return len(src) if end < 0 else end + len(terminator)

    def _scan_line_comment(self, pos: int) -> int:
        """Scan a // comment, following escaped line continuations."""
        src = self.source
        while pos < len(src):
            if src[pos] == "\n":
                return pos
            length = self._continuation_length(pos)
            pos += length or 1
        return len(src)

    def _scan_block_comment(self, pos: int) -> int:
        end = self.source.find("*/", pos + 2)
        return len(self.source) if end < 0 else end + 2

    # =========================================================================
    # Directive Bodies
    # =========================================================================

    def _at_body_start(self) -> bool:
        """Check whether a directive body starts at the read position."""
        char = self._peek()
        if not char or char == "\n":
            return False
        return not (char == "/" and self._peek(1) == "/")

    def _scan_body(self, pos: int) -> tuple[TokenType, int]:
        """
        Scan a directive body up to the end of its logical line.

        Block comments and literals are skipped as a whole; a // comment
        ends the body and is lexed as a token of its own.
        """
        src = self.source
        while pos < len(src):
            char = src[pos]
            if char == "\n":
                break
            if char == "\\":
                length = self._continuation_length(pos)
                pos += length or 1
            elif char == "/" and src.startswith("//", pos):
                break
            elif char == "/" and src.startswith("/*", pos):
                pos = self._scan_block_comment(pos)
            elif char in "\"'":
                pos = self._scan_quoted(pos)
            else:
                pos += 1
        self._states.pop()
        return TokenType.PREPROC_BODY, pos
