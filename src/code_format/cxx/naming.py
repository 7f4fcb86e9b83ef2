"""
Identifier naming normalization.

Mixed-case identifiers are converted to snake_case:

    myVariable      -> my_variable
    _privateField   -> private_field_     (member convention)
    parseHTTP2Reply -> parse_http2reply

Left unchanged:

- names followed by '(' (functions, calls, constructors)
- names of a single character
- names that are already all lower case or all upper case (digits and
  underscores aside), such as ``__func__`` or ``MAX_SIZE``
- names starting with an upper case letter (types)
- enumerators in the kConstant and _Constant styles
"""

import logging

from code_format.cxx.lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)


def _is_snake(name: str) -> bool:
    return all(char == "_" or char.isdigit() or (char.isascii() and char.islower()) for char in name)


def _is_macro_case(name: str) -> bool:
    return all(char == "_" or char.isdigit() or (char.isascii() and char.isupper()) for char in name)


def _is_upper(char: str) -> bool:
    return char.isascii() and char.isupper()


def _is_lower(char: str) -> bool:
    return char.isascii() and char.islower()


def normalize_identifier(name: str) -> str:
    """Return the snake_case spelling of a (non-function) identifier."""
    if len(name) < 2 or _is_snake(name) or _is_macro_case(name):
        return name
    if _is_upper(name[0]):
        return name
    # Enumerators: kValue, _Value
    if name[0] in "k_" and _is_upper(name[1]):
        return name

    is_member = name[0] == "_"
    if is_member:
        name = name[1:]

    chars = [name[0]]
    for prev, char in zip(name, name[1:]):
        if (char.isdigit() or _is_upper(char)) and _is_lower(prev):
            chars.append("_")
        chars.append(char.lower() if char.isascii() else char)

    if is_member:
        chars.append("_")
    return "".join(chars)


def fix_id_naming(lexer: Lexer, token: Token, output: list) -> None:
    """
    Emit ``token``, renamed if it is an identifier that needs it.

    Identifiers followed by '(' keep their name; a leading underscore on
    such a name is reported as a warning.
    """
    if token.type is not TokenType.IDENTIFIER:
        output.append(token.text)
        return

    name = token.trimmed
    following = lexer.next()
    lexer.revert(following)

    if following.is_symbol("("):
        if name.startswith("_"):
            logger.warning(f"{lexer.filename}:{token.line}: underscored function name {name}")
        new_name = name
    else:
        new_name = normalize_identifier(name)

    output.append(token.whitespace + new_name)
