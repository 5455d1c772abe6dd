# SPDX-License-Identifier: MIT
"""Tests for mheader.core.escape."""

import pytest

from mheader.core.escape import escape, make_tabs, needs_escape, quote, unescape


class TestNeedsEscape:
    def test_safe_tokens(self):
        tokens = ["abc", "Target.Type", "Lib_mylib", "!!Compile.Type", "%Group", "a+b-c"]
        for token in tokens:
            assert not needs_escape(token), token

    def test_empty_needs_escape(self):
        assert needs_escape("")

    def test_unsafe_characters(self):
        for token in ["a b", "a/b", "a=b", "a;b", "@(x)", "a'b"]:
            assert needs_escape(token), token

    def test_special_characters(self):
        assert needs_escape('a"b')
        assert needs_escape("a{b")
        assert needs_escape("a#b")
        assert needs_escape("a\\b")

    def test_newline_only_in_multiline_mode(self):
        # A newline is outside the safe set either way
        assert needs_escape("a\nb")
        assert needs_escape("a\nb", escape_newlines=True)


class TestEscape:
    def test_safe_token_unchanged(self):
        assert escape("abc") == "abc"
        assert escape("Target.Type") == "Target.Type"

    def test_quotes_unsafe_token(self):
        assert escape("a b") == '"a b"'
        assert escape("/src/lib.c") == '"/src/lib.c"'

    def test_force(self):
        assert escape("abc", force=True) == '"abc"'

    def test_force_ignored_for_booleans(self):
        assert escape("true", force=True) == "true"
        assert escape("false", force=True) == "false"

    def test_escape_mapping(self):
        assert escape('a"b') == '"a\\"b"'
        assert escape("a\\b") == '"a\\\\b"'
        assert escape("a\tb") == '"a\\tb"'
        assert escape("a\rb") == '"a\\rb"'

    def test_newline_single_line_mode(self):
        assert escape("a\nb") == '"a\\nb"'

    def test_newline_multiline_mode(self):
        result = escape("a\nb", escape_newlines=True, prefix="\t")
        assert result == '"a\\n"\\\n\t"b"'

    def test_trailing_newline_multiline_mode(self):
        result = escape("a\n", escape_newlines=True, prefix="  ")
        assert result == '"a\\n"\\\n  ""'

    def test_quote(self):
        assert quote("") == '""'
        assert quote('say "hi"') == '"say \\"hi\\""'


class TestUnescape:
    def test_bare_token(self):
        assert unescape("abc") == "abc"

    @pytest.mark.parametrize(
        "text",
        ["", "abc", "a b", 'quote"d', "back\\slash", "tab\tcr\r", "/a/b.c"],
    )
    def test_round_trip(self, text):
        assert unescape(escape(text, force=True)) == text

    @pytest.mark.parametrize("text", ["one\ntwo", "one\n", "\n\nthree\n four"])
    def test_round_trip_multiline(self, text):
        escaped = escape(text, force=True, escape_newlines=True, prefix="\t\t  ")
        assert unescape(escaped) == text

    def test_unterminated(self):
        with pytest.raises(ValueError):
            unescape('"abc')

    def test_bad_escape(self):
        with pytest.raises(ValueError):
            unescape('"a\\qb"')

    def test_garbage_after_string(self):
        with pytest.raises(ValueError):
            unescape('"a"b')


class TestMakeTabs:
    def test_empty(self):
        assert make_tabs("") == ""

    def test_whole_tabs(self):
        assert make_tabs("abc ") == "\t"
        assert make_tabs("\t") == "\t"

    def test_remainder_as_spaces(self):
        assert make_tabs("Desc ") == "\t "
        assert make_tabs("\tab") == "\t  "
