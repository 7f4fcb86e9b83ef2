"""
Source file access.

Files are decoded as UTF-8 with ``surrogateescape``, so bytes that are not
valid UTF-8 survive a read/format/write round trip unchanged.
"""

from pathlib import Path
from typing import Union

from code_format.errors import InputFileError, OutputFileError

ENCODING = "utf-8"
ERRORS = "surrogateescape"


def decode_source(data: bytes) -> str:
    return data.decode(ENCODING, errors=ERRORS)


def encode_source(text: str) -> bytes:
    return text.encode(ENCODING, errors=ERRORS)


def read_source(path: Union[str, Path]) -> str:
    """
    Read a whole source file into memory.

    Raises:
        InputFileError: If the file cannot be opened or read
    """
    try:
        return decode_source(Path(path).read_bytes())
    except OSError as e:
        raise InputFileError(str(path), e.strerror or str(e)) from e


def write_source(path: Union[str, Path], text: str) -> None:
    """
    Write a whole source file.

    Raises:
        OutputFileError: If the file cannot be written
    """
    try:
        Path(path).write_bytes(encode_source(text))
    except OSError as e:
        raise OutputFileError(str(path), e.strerror or str(e)) from e
