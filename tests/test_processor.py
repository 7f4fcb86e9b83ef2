# =============================================================================
# test_processor.py - Directive-Aware Token Stream Tests
# =============================================================================
# Tests for the token stream driver.
#
# Test coverage includes:
#   - Conditional compilation state (#if/#ifdef/#ifndef/#elif/#else/#endif)
#   - Skip levels reported to the token callback
#   - Rescanning of #define bodies
#   - Line removal helper
#   - Token trace logging
# =============================================================================

import logging

import pytest
from code_format.cxx.context import FormattingParameters
from code_format.cxx.processor import ConditionalState, drop_line, process_text


# =============================================================================
# Helper Functions
# =============================================================================

def emit_all(lexer, token, skip_level, output):
    output.append(token.text)


def active_only(lexer, token, skip_level, output):
    if skip_level == 0:
        output.append(token.text)


def run(source: str, callback=emit_all, definitions=()) -> str:
    params = FormattingParameters(definitions=frozenset(definitions))
    return process_text(source, "test.c", params, callback)


def apply_all(directives, definitions=()) -> ConditionalState:
    """Apply (directive, condition) pairs to a fresh state."""
    state = ConditionalState()
    for directive, condition in directives:
        state.apply(directive, condition, frozenset(definitions))
    return state


# =============================================================================
# Conditional State Tests
# =============================================================================

class TestConditionalState:
    """Test skip level bookkeeping."""

    def test_ifdef_defined(self):
        assert apply_all([("ifdef", "A")], {"A"}).skip_level == 0

    def test_ifdef_undefined(self):
        state = apply_all([("ifdef", "A")])
        assert state.skip_level == 1
        assert state.skipping

    def test_if_single_identifier(self):
        assert apply_all([("if", " A ")], {"A"}).skip_level == 0

    def test_ifndef_inverts(self):
        assert apply_all([("ifndef", "A")], {"A"}).skip_level == 1
        assert apply_all([("ifndef", "A")]).skip_level == 0

    def test_compound_condition_never_matches(self):
        """Expressions are not evaluated."""
        assert apply_all([("if", "defined(A)")], {"A"}).skip_level == 1

    def test_nested_skip_is_opaque(self):
        """Inside a skipped branch every opener just nests."""
        state = apply_all([("ifdef", "A"), ("ifdef", "B")], {"B"})
        assert state.skip_level == 2

    def test_else_taken(self):
        state = apply_all([("ifdef", "A"), ("else", None)])
        assert state.skip_level == 0

    def test_else_after_taken_branch(self):
        state = apply_all([("ifdef", "A"), ("else", None)], {"A"})
        assert state.skip_level == 1
        assert state.already_matched

    def test_elif_taken(self):
        state = apply_all([("if", "A"), ("elif", "B")], {"B"})
        assert state.skip_level == 0

    def test_elif_after_taken_branch(self):
        """A taken branch is final; later #elif/#else are skipped."""
        state = apply_all([("if", "A"), ("elif", "B")], {"A", "B"})
        assert state.skip_level == 1
        state.apply("else", None, frozenset({"A", "B"}))
        assert state.skip_level == 1

    def test_else_after_taken_elif(self):
        state = apply_all([("if", "A"), ("elif", "B"), ("else", None)], {"B"})
        assert state.skip_level == 1

    def test_endif_closes(self):
        state = apply_all([("ifdef", "A"), ("endif", None)])
        assert state.skip_level == 0

    def test_stray_endif_is_ignored(self):
        state = apply_all([("endif", None), ("endif", None)])
        assert state.skip_level == 0

    def test_nested_else_inside_skip(self):
        """An #else of a nested chain does not resume the outer one."""
        state = apply_all([
            ("ifdef", "A"),
            ("ifdef", "B"),
            ("else", None),
        ])
        assert state.skip_level == 2


# =============================================================================
# Driver Tests
# =============================================================================

class TestProcessText:
    """Test the token loop."""

    @pytest.mark.parametrize("source", [
        "",
        "int x;\n",
        "#ifdef A\nfoo\n#else\nbar\n#endif\n",
        "#define MAX(a, b) \\\n    ((a) > (b) ? (a) : (b))\nint y = MAX(1, 2);\n",
        "#if A // c\n#elif B /* d */\n#endif\n",
        "  #  define EMPTY\n#define\n#\n",
    ])
    def test_identity(self, source):
        """Emitting every token reproduces the input."""
        assert run(source) == source

    def test_conditional_defined(self):
        output = run("#ifdef A\nfoo\n#else\nbar\n#endif", active_only, {"A"})
        assert "foo" in output
        assert "bar" not in output

    def test_conditional_undefined(self):
        output = run("#ifdef A\nfoo\n#else\nbar\n#endif", active_only)
        assert "foo" not in output
        assert "bar" in output

    def test_skip_levels_reported(self):
        levels = {}

        def record(lexer, token, skip_level, output):
            levels[token.trimmed] = skip_level

        run("#ifdef A\na\n#ifdef B\nb\n#endif\n#endif\nc", record)
        assert levels["a"] == 1
        assert levels["b"] == 2
        assert levels["c"] == 0

    def test_directive_body_delivered(self):
        seen = []

        def record(lexer, token, skip_level, output):
            seen.append(token.trimmed)

        run("#include <a.h>\n", record)
        assert "#include" in seen
        assert "<a.h>" in seen

    def test_macro_body_rescanned(self):
        """Tokens inside #define bodies reach the callback."""
        names = []

        def record(lexer, token, skip_level, output):
            if lexer.nested:
                names.append(token.trimmed)
            output.append(token.text)

        run("#define MAX(a, b) a > b\n", record)
        assert names[:2] == ["MAX", "("]
        assert "b" in names

    def test_macro_body_gets_outer_skip_level(self):
        levels = {}

        def record(lexer, token, skip_level, output):
            if lexer.nested:
                levels[token.trimmed] = skip_level

        run("#ifdef X\n#define Y 1\n#endif\n", record)
        assert levels["Y"] == 1

    def test_token_trace(self, caplog):
        """Debug level 2 traces every token."""
        params = FormattingParameters(debug_level=2)
        with caplog.at_level(logging.DEBUG, logger="code_format"):
            process_text("x;", "test.c", params, emit_all)
        assert any("token: IDENTIFIER" in message for message in caplog.messages)

    def test_no_trace_by_default(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="code_format"):
            run("x;")
        assert not any("token:" in message for message in caplog.messages)


# =============================================================================
# Line Removal Tests
# =============================================================================

def drop_pragmas(lexer, token, skip_level, output):
    if token.is_preproc("pragma"):
        lexer.next()
        drop_line(lexer, token, output)
    else:
        output.append(token.text)


class TestDropLine:
    """Test removal of a directive's physical line."""

    def test_drop_middle_line(self):
        assert run("int a;\n#pragma x\nint b;\n", drop_pragmas) == "int a;\nint b;\n"

    def test_blank_lines_before_are_kept(self):
        assert run("int a;\n\n#pragma x\nint b;\n", drop_pragmas) == "int a;\n\nint b;\n"

    def test_trailing_comment_dropped(self):
        assert run("int a;\n#pragma x // note\nint b;\n", drop_pragmas) == "int a;\nint b;\n"

    def test_first_line_trims_following_blank_lines(self):
        assert run("#pragma x\n\nint b;\n", drop_pragmas) == "int b;\n"

    def test_last_line(self):
        assert run("int a;\n#pragma x\n", drop_pragmas) == "int a;\n"
