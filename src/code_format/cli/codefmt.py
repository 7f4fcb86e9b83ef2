"""
code-format - C/C++ Formatter Command-Line Interface
====================================================

This module implements the ``code-format`` command. It formats one C/C++
file in place (or into the file given with -o).

Usage Examples
--------------
Brace single statements:
    $ code-format --fix-single-statement main.cpp

Normalize a header, writing the result elsewhere:
    $ code-format --fix-pragma-once --fix-file-ending util.h -o util.fixed.h

Remove redundant includes, with include paths and definitions:
    $ code-format --remove-already-included -I include -IS /usr/include -D NDEBUG main.cpp

Debug output:
    $ code-format -d 2 --fix-id-naming main.cpp
"""

import logging
from pathlib import Path
from typing import Optional

import click

from code_format import __version__
from code_format.cli.diagnostics import setup_logging
from code_format.cli.errors import handle_cli_exception
from code_format.cxx.context import FormattingParameters, IncludeDir
from code_format.cxx.formatter import Formatter
from code_format.cxx.source import write_source

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: overwrite the input file if it changed)",
)
@click.option(
    "--fix-file-ending",
    is_flag=True,
    help="End the file with exactly one line break",
)
@click.option(
    "--fix-single-statement",
    is_flag=True,
    help="Enclose single-statement if/else/for/while/do bodies in braces",
)
@click.option(
    "--fix-id-naming",
    is_flag=True,
    help="Convert mixed-case identifiers to snake_case",
)
@click.option(
    "--fix-pragma-once",
    is_flag=True,
    help="Start headers with '#pragma once' unless they have an include guard",
)
@click.option(
    "--remove-already-included",
    is_flag=True,
    help="Remove #include lines for files that are already included",
)
@click.option(
    "-D", "definitions",
    multiple=True,
    metavar="NAME",
    help="Consider NAME defined in #if/#ifdef (can be repeated)",
)
@click.option(
    "-I", "include_dirs",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Add custom include search directory (can be repeated)",
)
@click.option(
    "-IS", "system_dirs",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Add system include search directory (can be repeated)",
)
@click.option(
    "-d", "debug_level",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    metavar="LEVEL",
    help="Diagnostic level: 1 shows info, 2 also traces tokens",
)
@click.version_option(__version__, "-V", "--version", prog_name="code-format")
def main(
    input_file: Path,
    output: Optional[Path],
    fix_file_ending: bool,
    fix_single_statement: bool,
    fix_id_naming: bool,
    fix_pragma_once: bool,
    remove_already_included: bool,
    definitions: tuple[str, ...],
    include_dirs: tuple[Path, ...],
    system_dirs: tuple[Path, ...],
    debug_level: int,
) -> None:
    """
    Format a C/C++ source or header file.

    INPUT_FILE is the file to format. It is rewritten only if the
    formatted text differs, unless -o names an output file.

    \b
    Examples:
        code-format --fix-single-statement main.cpp
        code-format --fix-pragma-once util.h -o out.h
        code-format --remove-already-included -I include main.cpp

    \b
    Search order for "quoted" includes:
        1. the directories of the including files, innermost first
        2. -I directories, then -IS directories, in the order given
    <angled> includes skip step 1.
    """
    setup_logging(debug_level)

    params = FormattingParameters(
        fix_file_ending=fix_file_ending,
        fix_single_statement=fix_single_statement,
        fix_id_naming=fix_id_naming,
        fix_pragma_once=fix_pragma_once,
        remove_already_included=remove_already_included,
        definitions=frozenset(definitions),
        include_dirs=tuple(
            [IncludeDir(path) for path in include_dirs]
            + [IncludeDir(path, is_system=True) for path in system_dirs]
        ),
        debug_level=debug_level,
    )

    try:
        click.echo(f"Processing: {input_file}...")

        result = Formatter(params).format_file(input_file)

        if output is not None or result.changed:
            target = output or input_file
            write_source(target, result.output)
            logger.info(f"wrote {target}")
        else:
            logger.info(f"{input_file}: unchanged")

    except Exception as e:
        handle_cli_exception(e, verbose=debug_level > 0)


if __name__ == "__main__":
    main()
