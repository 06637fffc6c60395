"""
Unit tests for the Qt companion installation.
"""

import pytest

from winbuild.errors import ConfigurationError
from winbuild.packages.qt import QtInstall


class TestQtInstall:
    """Test suite for QtInstall."""

    @pytest.mark.parametrize('root,expected', [
        ('C:/Qt/5.15.2/msvc2019_64', '2019'),
        ('C:\\Qt\\6.5.0\\msvc2022_arm64', '2022'),
        ('C:/Qt/5.15.2/MSVC2017', '2017'),
        ('C:/Qt/5.15.2/mingw81_64', None),
    ])
    def test_msvc_version_tag(self, root, expected):
        assert QtInstall(root).msvc_version_tag == expected

    def test_backslashes_normalized(self):
        assert QtInstall('C:\\Qt\\5.15.2\\msvc2019_64').target_root.as_posix() == 'C:/Qt/5.15.2/msvc2019_64'

    def test_tool(self, tmp_path):
        (tmp_path / 'bin').mkdir()
        (tmp_path / 'bin' / 'moc.exe').write_text('')
        assert QtInstall(tmp_path).tool('moc') == (tmp_path / 'bin' / 'moc.exe').absolute()

    def test_missing_tool(self, tmp_path):
        with pytest.raises(ConfigurationError, match='rcc'):
            QtInstall(tmp_path).tool('rcc')
