# =============================================================================
# test_includes.py - Include Graph Resolution Tests
# =============================================================================
# Tests for include path extraction, resolution and traversal.
#
# Test coverage includes:
#   - Include path extraction and escape decoding
#   - Search order: absolute, open files, include directories
#   - Custom vs system directories
#   - Transitive traversal and removal of already included files
#   - Cycle detection (one warning, no hang, stack restored)
#   - Conditional branches and missing files
# =============================================================================

import logging
from pathlib import Path

import pytest
from code_format.cxx.context import FormattingContext, FormattingParameters, IncludeDir
from code_format.cxx.errors import IncludeCycleError, IncludeNotFoundError
from code_format.cxx.formatter import Formatter
from code_format.cxx.includes import extract_include_path, resolve_include


# =============================================================================
# Helper Functions
# =============================================================================

def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def dedup_params(*include_dirs, definitions=()) -> FormattingParameters:
    return FormattingParameters(
        remove_already_included=True,
        include_dirs=tuple(include_dirs),
        definitions=frozenset(definitions),
    )


def cycle_warnings(caplog) -> list:
    return [
        r for r in caplog.records
        if r.levelno == logging.WARNING and "circular include" in r.getMessage()
    ]


# =============================================================================
# Path Extraction Tests
# =============================================================================

class TestExtractIncludePath:
    """Test parsing of #include bodies."""

    def test_angled(self):
        assert extract_include_path("<stdio.h>") == ("stdio.h", True)

    def test_quoted(self):
        assert extract_include_path('"dir/file.h"') == ("dir/file.h", False)

    def test_trailing_text_ignored(self):
        assert extract_include_path('"x.h" /* note */') == ("x.h", False)

    def test_escape_decoded(self):
        assert extract_include_path('"a\\tb.h"') == ("a\tb.h", False)

    def test_escaped_quote(self):
        assert extract_include_path('"a\\"b.h"') == ('a"b.h', False)

    def test_unknown_escape_kept(self):
        assert extract_include_path('"a\\qb.h"') == ("a\\qb.h", False)

    @pytest.mark.parametrize("body", ["MACRO", '""', "<>", '"open.h', ""])
    def test_not_a_path(self, body):
        assert extract_include_path(body) is None


# =============================================================================
# Resolution Tests
# =============================================================================

class TestResolveInclude:
    """Test the search order."""

    def test_relative_to_open_file(self, tmp_path):
        main = write(tmp_path / "src" / "main.c", "")
        local = write(tmp_path / "src" / "local.h", "")
        ctx = FormattingContext()
        with ctx.enter(main.resolve()):
            path, is_system = resolve_include("local.h", False, ctx, FormattingParameters())
        assert path == local.resolve()
        assert not is_system

    def test_innermost_open_file_first(self, tmp_path):
        outer = write(tmp_path / "main.c", "")
        inner = write(tmp_path / "sub" / "inner.h", "")
        write(tmp_path / "common.h", "")
        nearest = write(tmp_path / "sub" / "common.h", "")
        ctx = FormattingContext()
        with ctx.enter(outer.resolve()), ctx.enter(inner.resolve()):
            path, _ = resolve_include("common.h", False, ctx, FormattingParameters())
        assert path == nearest.resolve()

    def test_angled_skips_open_files(self, tmp_path):
        main = write(tmp_path / "main.c", "")
        write(tmp_path / "local.h", "")
        ctx = FormattingContext()
        with ctx.enter(main.resolve()):
            with pytest.raises(IncludeNotFoundError):
                resolve_include("local.h", True, ctx, FormattingParameters())

    def test_include_dirs_in_order(self, tmp_path):
        write(tmp_path / "first" / "a.h", "")
        write(tmp_path / "second" / "a.h", "")
        params = FormattingParameters(include_dirs=(
            IncludeDir(tmp_path / "first"),
            IncludeDir(tmp_path / "second", is_system=True),
        ))
        path, is_system = resolve_include("a.h", True, FormattingContext(), params)
        assert path == (tmp_path / "first" / "a.h").resolve()
        assert not is_system

    def test_system_dir(self, tmp_path):
        write(tmp_path / "sys" / "s.h", "")
        params = FormattingParameters(include_dirs=(IncludeDir(tmp_path / "sys", is_system=True),))
        _, is_system = resolve_include("s.h", True, FormattingContext(), params)
        assert is_system

    def test_absolute_path(self, tmp_path):
        header = write(tmp_path / "abs.h", "")
        path, _ = resolve_include(str(header), False, FormattingContext(), FormattingParameters())
        assert path == header.resolve()

    def test_not_found_lists_search_paths(self, tmp_path):
        params = FormattingParameters(include_dirs=(IncludeDir(tmp_path / "inc"),))
        with pytest.raises(IncludeNotFoundError) as exc_info:
            resolve_include("missing.h", True, FormattingContext(), params)
        assert exc_info.value.filename == "missing.h"
        assert exc_info.value.search_paths == [tmp_path / "inc"]
        assert "could not find include file `missing.h`" in str(exc_info.value)


# =============================================================================
# Context Tests
# =============================================================================

class TestFormattingContext:
    """Test the open-file stack."""

    def test_enter_pushes_and_pops(self, tmp_path):
        ctx = FormattingContext()
        with ctx.enter(tmp_path / "a.h"):
            assert ctx.current_file == tmp_path / "a.h"
        assert ctx.open_files == []

    def test_enter_open_file_raises(self, tmp_path):
        ctx = FormattingContext()
        with ctx.enter(tmp_path / "a.h"):
            with pytest.raises(IncludeCycleError) as exc_info:
                with ctx.enter(tmp_path / "a.h"):
                    pass
            assert ctx.open_files == [tmp_path / "a.h"]
        assert "circular include of `a.h`" in str(exc_info.value)

    def test_pop_on_error(self, tmp_path):
        ctx = FormattingContext()
        with pytest.raises(ValueError):
            with ctx.enter(tmp_path / "a.h"):
                raise ValueError("boom")
        assert ctx.open_files == []


# =============================================================================
# Traversal and Removal Tests
# =============================================================================

class TestAlreadyIncluded:
    """Test removal of includes of already included files."""

    def test_transitively_included_header_removed(self, tmp_path):
        inc = tmp_path / "inc"
        a = write(inc / "a.h", '#include "b.h"\n')
        b = write(inc / "b.h", "int b;\n")
        main = write(tmp_path / "main.c", '#include "a.h"\n#include "b.h"\nint main;\n')

        result = Formatter(dedup_params(IncludeDir(inc))).format_file(main)

        assert result.output == '#include "a.h"\nint main;\n'
        assert result.direct_includes == [(a.resolve(), 1)]
        assert result.indirect_includes == {b.resolve()}

    def test_duplicate_direct_include_removed(self, tmp_path):
        write(tmp_path / "a.h", "")
        main = write(tmp_path / "main.c", '#include "a.h"\n\n#include "a.h"\nint x;\n')
        result = Formatter(dedup_params()).format_file(main)
        assert result.output == '#include "a.h"\n\nint x;\n'

    def test_unrelated_includes_kept(self, tmp_path):
        write(tmp_path / "a.h", "")
        write(tmp_path / "b.h", "")
        source = '#include "a.h"\n#include "b.h"\n'
        main = write(tmp_path / "main.c", source)
        assert Formatter(dedup_params()).format_file(main).output == source

    def test_system_headers_not_scanned(self, tmp_path):
        write(tmp_path / "sys" / "s.h", '#include "x.h"\n')
        write(tmp_path / "inc" / "x.h", "")
        source = '#include <s.h>\n#include "x.h"\n'
        main = write(tmp_path / "main.c", source)
        params = dedup_params(
            IncludeDir(tmp_path / "inc"),
            IncludeDir(tmp_path / "sys", is_system=True),
        )
        result = Formatter(params).format_file(main)
        assert result.output == source
        assert (tmp_path / "inc" / "x.h").resolve() not in result.indirect_includes

    def test_inactive_branch_not_followed(self, tmp_path):
        write(tmp_path / "a.h", '#ifdef USE_B\n#include "b.h"\n#endif\n')
        write(tmp_path / "b.h", "")
        source = '#include "a.h"\n#include "b.h"\n'
        main = write(tmp_path / "main.c", source)

        assert Formatter(dedup_params()).format_file(main).output == source
        with_b = Formatter(dedup_params(definitions={"USE_B"})).format_file(main)
        assert with_b.output == '#include "a.h"\n'

    def test_inactive_branch_of_top_file_untouched(self, tmp_path):
        write(tmp_path / "a.h", "")
        source = '#include "a.h"\n#ifdef X\n#include "a.h"\n#endif\n'
        main = write(tmp_path / "main.c", source)
        assert Formatter(dedup_params()).format_file(main).output == source

    def test_macro_include_kept(self, tmp_path):
        source = "#include HEADER\n"
        main = write(tmp_path / "main.c", source)
        assert Formatter(dedup_params()).format_file(main).output == source


# =============================================================================
# Problem Reporting Tests
# =============================================================================

class TestIncludeWarnings:
    """Include problems are warnings, never errors."""

    def test_missing_include(self, tmp_path, caplog):
        source = '#include "missing.h"\nint x;\n'
        main = write(tmp_path / "main.c", source)
        with caplog.at_level(logging.WARNING, logger="code_format"):
            result = Formatter(dedup_params()).format_file(main)
        assert result.output == source
        assert any("could not find include file `missing.h`" in m for m in caplog.messages)
        assert any(m.startswith(f"{main}:1:") for m in caplog.messages)

    def test_self_include(self, tmp_path, caplog):
        write(tmp_path / "a.h", '#include "a.h"\nint a;\n')
        main = write(tmp_path / "main.c", '#include "a.h"\n')
        with caplog.at_level(logging.WARNING, logger="code_format"):
            Formatter(dedup_params()).format_file(main)
        assert len(cycle_warnings(caplog)) == 1

    def test_mutual_include(self, tmp_path, caplog):
        write(tmp_path / "a.h", '#include "b.h"\n')
        write(tmp_path / "b.h", '#include "a.h"\n')
        main = write(tmp_path / "main.c", '#include "a.h"\n#include "b.h"\n')
        with caplog.at_level(logging.WARNING, logger="code_format"):
            result = Formatter(dedup_params()).format_file(main)
        assert len(cycle_warnings(caplog)) == 1
        assert result.output == '#include "a.h"\n'

    def test_stack_restored_after_cycle(self, tmp_path):
        write(tmp_path / "a.h", '#include "a.h"\n')
        main = write(tmp_path / "main.c", '#include "a.h"\n')
        ctx = FormattingContext()
        Formatter(dedup_params()).format_text(main.read_text(), str(main), ctx)
        assert ctx.open_files == []

    def test_top_file_including_itself(self, tmp_path, caplog):
        main = write(tmp_path / "main.c", '#include "main.c"\n')
        with caplog.at_level(logging.WARNING, logger="code_format"):
            Formatter(dedup_params()).format_file(main)
        assert len(cycle_warnings(caplog)) == 1
