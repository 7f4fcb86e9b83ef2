"""
C/C++ Formatting Engine
=======================

Modules
-------
- **lexer**: whitespace-preserving tokenizer with token pushback
- **processor**: token stream driver aware of conditional compilation
- **bracer**: braces around single-statement bodies
- **includes**: include path resolution and include graph traversal
- **naming**: snake_case identifier normalization
- **pragma**: ``#pragma once`` normalization
- **formatter**: pass composition and the Formatter class
"""

from code_format.cxx.context import FormattingContext, FormattingParameters, IncludeDir
from code_format.cxx.formatter import Formatter, FormatResult, format_text
from code_format.cxx.lexer import Lexer, Token, TokenType

__all__ = [
    "Formatter",
    "FormatResult",
    "FormattingContext",
    "FormattingParameters",
    "IncludeDir",
    "format_text",
    "Lexer",
    "Token",
    "TokenType",
]
