# =============================================================================
# test_pragma_once.py - Pragma-Once Normalization Tests
# =============================================================================
# Tests for '#pragma once' insertion and deduplication.
#
# Test coverage includes:
#   - Header file detection
#   - Classic include guards left untouched
#   - Insertion before the first significant token
#   - Removal of stray '#pragma once' lines
#   - Idempotence
# =============================================================================

import pytest
from code_format.cxx.context import FormattingParameters
from code_format.cxx.formatter import format_text
from code_format.cxx.pragma import PragmaOnceFixer, is_header_file

PARAMS = FormattingParameters(fix_pragma_once=True)


def fix(source: str, filename: str = "test.h") -> str:
    return format_text(source, PARAMS, filename)


# =============================================================================
# Header Detection Tests
# =============================================================================

class TestHeaderDetection:
    """Only files with an extension starting with 'h' are headers."""

    @pytest.mark.parametrize("filename", ["a.h", "a.hpp", "a.hh", "a.hxx", "dir/b.h"])
    def test_headers(self, filename):
        assert is_header_file(filename)

    @pytest.mark.parametrize("filename", ["a.c", "a.cpp", "a.cc", "Makefile", "h"])
    def test_not_headers(self, filename):
        assert not is_header_file(filename)

    def test_fixer_disabled_for_sources(self):
        assert not PragmaOnceFixer("main.cpp").enabled


# =============================================================================
# Include Guard Tests
# =============================================================================

class TestIncludeGuards:
    """Classic guards are recognized and left alone."""

    def test_guarded_header_unchanged(self):
        source = "#ifndef X_H\n#define X_H\nint x;\n#endif\n"
        assert fix(source) == source

    def test_guard_after_comment_unchanged(self):
        source = "// Copyright\n\n#ifndef X_H\n#define X_H\n#pragma once\n#endif\n"
        assert fix(source) == source

    def test_mismatched_guard_gets_pragma(self):
        source = "#ifndef A\n#define B\n#endif\n"
        assert fix(source) == "#pragma once\n\n" + source

    def test_ifndef_without_define_gets_pragma(self):
        source = "#ifndef A\n#error A required\n#endif\n"
        assert fix(source) == "#pragma once\n\n" + source


# =============================================================================
# Insertion Tests
# =============================================================================

class TestInsertion:
    """Test '#pragma once' insertion."""

    def test_plain_header(self):
        assert fix("int x;\n") == "#pragma once\n\nint x;\n"

    def test_leading_blank_lines_dropped(self):
        assert fix("\n\nint x;\n") == "#pragma once\n\nint x;\n"

    def test_after_leading_comment(self):
        assert fix("// header\nint x;\n") == "// header\n\n#pragma once\n\nint x;\n"

    def test_before_include(self):
        source = '#include "a.h"\n'
        assert fix(source) == '#pragma once\n\n#include "a.h"\n'

    def test_exactly_one_pragma(self):
        assert fix("int x;\n#pragma once\nint y;\n").count("#pragma once") == 1

    def test_source_file_untouched(self):
        assert fix("int x;\n", "test.c") == "int x;\n"

    def test_empty_header_untouched(self):
        assert fix("") == ""

    def test_comment_only_header_untouched(self):
        assert fix("// nothing\n") == "// nothing\n"


# =============================================================================
# Stray Pragma Tests
# =============================================================================

class TestStrayPragma:
    """Test removal of further '#pragma once' lines."""

    def test_canonical_pragma_kept(self):
        source = "#pragma once\n\nint x;\n"
        assert fix(source) == source

    def test_stray_pragma_removed(self):
        assert fix("int x;\n#pragma once\nint y;\n") == "#pragma once\n\nint x;\nint y;\n"

    def test_duplicate_after_canonical_removed(self):
        assert fix("#pragma once\nint x;\n\n#pragma once\n") == "#pragma once\nint x;\n\n"

    def test_other_pragmas_kept(self):
        source = "#pragma once\n#pragma pack(1)\n"
        assert fix(source) == source


# =============================================================================
# Idempotence Tests
# =============================================================================

class TestIdempotence:
    """Fixing a fixed header changes nothing."""

    @pytest.mark.parametrize("source", [
        "int x;\n",
        "// header\nint x;\n",
        "/* c */ int x;\n",
        "int x;\n#pragma once\nint y;\n",
        "#ifndef A\n#define A\n#endif\n",
    ])
    def test_idempotent(self, source):
        once = fix(source)
        assert fix(once) == once
