"""
Unit tests for Windows command line quoting.
"""

import pytest

from winbuild.build.command_quoter import join_args, quote_arg, split_command_line

# Arguments that exercise every quoting rule
TRICKY_ARGS = [
    'plain',
    'C:\\dir\\file.cpp',
    'C:\\Program Files\\Microsoft Visual Studio\\2019',
    'a b',
    'trailing\\',
    'trailing space\\',
    'trailing two\\\\',
    'say "hi"',
    '"',
    '""',
    '\\"',
    'a\\\\"b',
    '/DNAME="value with spaces"',
    '/DPATH=\\"C:\\x\\\\\\"',
    'end with quote"',
    '\\\\server\\share\\file',
    '',
    ' ',
    'multiple   spaces',
]


class TestQuoteArg:
    """Test suite for quote_arg."""

    def test_no_spaces_unchanged(self):
        assert quote_arg('noSpaces') == 'noSpaces'

    def test_space_is_quoted(self):
        assert quote_arg('a b') == '"a b"'

    def test_backslashes_not_before_quote_unchanged(self):
        assert quote_arg('C:\\dir\\file') == 'C:\\dir\\file'
        assert quote_arg('C:\\my dir\\file') == '"C:\\my dir\\file"'

    def test_trailing_backslash_doubled_before_closing_quote(self):
        assert quote_arg('a b\\') == '"a b\\\\"'

    def test_backslashes_before_interior_quote_doubled(self):
        # a\"b -> "a\\\"b": run of one doubled, plus the quote escape
        assert quote_arg('a\\"b') == '"a\\\\\\"b"'

    def test_interior_quote_escaped(self):
        assert quote_arg('say "hi"') == '"say \\"hi\\""'

    def test_backslash_only_argument_without_space(self):
        assert quote_arg('a\\') == 'a\\'

    def test_empty_argument_quoted(self):
        assert quote_arg('') == '""'


class TestJoinArgs:
    """Test suite for join_args."""

    def test_join(self):
        args = ['cl.exe', '/nologo', '/IC:\\my include', 'a.cpp']
        assert join_args(args) == 'cl.exe /nologo "/IC:\\my include" a.cpp'

    @pytest.mark.parametrize('arg', TRICKY_ARGS)
    def test_round_trip_single(self, arg):
        assert split_command_line(join_args(['prog', arg])) == ['prog', arg]

    def test_round_trip_all(self):
        assert split_command_line(join_args(TRICKY_ARGS)) == TRICKY_ARGS


class TestSplitCommandLine:
    """Test suite for split_command_line (CommandLineToArgvW rules)."""

    def test_whitespace_separates(self):
        assert split_command_line('a  b\tc') == ['a', 'b', 'c']

    def test_quotes_group(self):
        assert split_command_line('"a b" c') == ['a b', 'c']

    def test_even_backslashes_before_quote(self):
        # 2n backslashes + quote -> n backslashes, quote toggles
        assert split_command_line('"a\\\\" b') == ['a\\', 'b']

    def test_odd_backslashes_before_quote(self):
        # 2n+1 backslashes + quote -> n backslashes + literal quote
        assert split_command_line('a\\\\\\"b') == ['a\\"b']

    def test_backslashes_elsewhere_literal(self):
        assert split_command_line('C:\\dir\\\\file') == ['C:\\dir\\\\file']

    def test_double_quote_inside_quotes(self):
        assert split_command_line('"a""b"') == ['a"b']

    def test_empty_quoted_argument(self):
        assert split_command_line('a "" b') == ['a', '', 'b']

    def test_empty_line(self):
        assert split_command_line('') == []
        assert split_command_line('   ') == []
