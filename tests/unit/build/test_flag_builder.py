"""
Unit tests for FlagBuilder and the variant tables.
"""

import pytest

from winbuild.build.compiler import BuildVariant, RuntimeLinkage
from winbuild.build.flag_builder import (
    VARIANT_MACROS,
    WIN_MACROS,
    FlagBuilder,
)


class TestFlagBuilder:
    """Test suite for FlagBuilder."""

    @pytest.mark.parametrize('variant', list(BuildVariant))
    def test_macros_contain_platform_variant_and_caller(self, variant):
        macros = FlagBuilder(variant).macros(['FOO', 'BAR=1'])

        for macro in WIN_MACROS:
            assert macro in macros
        for macro in VARIANT_MACROS[variant]:
            assert macro in macros
        assert 'FOO' in macros
        assert 'BAR=1' in macros

    def test_release_macros(self):
        macros = FlagBuilder(BuildVariant.RELEASE).macros([])
        assert 'NDEBUG' in macros
        assert 'QT_NO_DEBUG' in macros
        assert 'PIA_DEBUG' not in macros

    def test_macro_order_and_duplicates(self):
        macros = FlagBuilder(BuildVariant.RELEASE).macros(['NDEBUG', 'UNICODE'])
        assert macros[:len(WIN_MACROS)] == list(WIN_MACROS)
        assert macros[-2:] == ['NDEBUG', 'UNICODE']
        assert macros.count('NDEBUG') == 2

    def test_cl_macro_flags(self):
        flags = FlagBuilder(BuildVariant.DEBUG).cl_macro_flags(['FOO'])
        assert '/DUNICODE' in flags
        assert '/DPIA_DEBUG' in flags
        assert flags[-1] == '/DFOO'

    def test_rc_macro_flags_are_separate_arguments(self):
        flags = FlagBuilder(BuildVariant.DEBUG).rc_macro_flags(['FOO'])
        assert flags[-2:] == ['/d', 'FOO']
        assert flags[:2] == ['/d', 'UNICODE']

    def test_moc_macros_skip_variant_macros(self):
        flags = FlagBuilder.moc_macro_flags(['FOO'])
        assert '-DUNICODE' in flags
        assert '-DFOO' in flags
        assert '-DPIA_DEBUG' not in flags

    def test_include_flags(self):
        assert FlagBuilder.cl_include_flags(['inc', 'C:/x y']) == ['/Iinc', '/IC:/x y']
        assert FlagBuilder.rc_include_flags(['inc']) == ['/I', 'inc']

    @pytest.mark.parametrize('variant,runtime,expected', [
        (BuildVariant.RELEASE, RuntimeLinkage.STATIC, '/MT'),
        (BuildVariant.RELEASE, RuntimeLinkage.DYNAMIC, '/MD'),
        (BuildVariant.DEBUG, RuntimeLinkage.STATIC, '/MTd'),
        (BuildVariant.DEBUG, RuntimeLinkage.DYNAMIC, '/MDd'),
    ])
    def test_runtime_arg(self, variant, runtime, expected):
        assert FlagBuilder(variant).runtime_arg(runtime) == expected

    def test_variant_options(self):
        debug = FlagBuilder(BuildVariant.DEBUG)
        release = FlagBuilder(BuildVariant.RELEASE)

        assert debug.compile_opts() == ['/Od', '/bigobj']
        assert release.compile_opts() == ['/O2', '/GL']
        assert debug.link_opts() == ['/DEBUG:FASTLINK']
        assert release.link_opts() == ['/DEBUG:FULL', '/OPT:REF', '/OPT:ICF', '/LTCG']
        assert debug.static_link_opts() == []
        assert release.static_link_opts() == ['/LTCG']

    def test_tables_not_mutated_by_callers(self):
        builder = FlagBuilder(BuildVariant.RELEASE)
        builder.link_opts().append('/BOGUS')
        builder.macros([]).append('BOGUS')
        assert '/BOGUS' not in builder.link_opts()
        assert 'BOGUS' not in builder.macros([])
