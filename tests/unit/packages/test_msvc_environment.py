"""
Unit tests for Visual Studio discovery and environment capture.
"""

import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from winbuild.build.compiler import BuildVariant
from winbuild.errors import ConfigurationError, ToolchainNotFoundError
from winbuild.packages.msvc_environment import (
    MsvcEnvironment,
    capture_environment,
    default_candidate_roots,
    env_lookup,
    find_tool,
    locate_visual_studio,
    parse_environment_dump,
)
from winbuild.packages.platform_utils import Architecture
from winbuild.packages.qt import QtInstall
from tests.unit.fakes import make_session


def make_tool_dir(directory: Path, names=('cl.exe', 'lib.exe', 'rc.exe')) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        tool = directory / name
        tool.write_text('')
        tool.chmod(0o755)
    return directory


class TestLocateVisualStudio:
    """Test suite for locate_visual_studio()."""

    def test_first_root_with_edition_wins(self, tmp_path):
        (tmp_path / '2022' / 'Community').mkdir(parents=True)
        (tmp_path / '2019' / 'Professional').mkdir(parents=True)

        found = locate_visual_studio([tmp_path / '2022', tmp_path / '2019'])

        assert found == tmp_path / '2022' / 'Community'

    def test_edition_order(self, tmp_path):
        for edition in ('Enterprise', 'BuildTools', 'Community'):
            (tmp_path / '2022' / edition).mkdir(parents=True)
        assert locate_visual_studio([tmp_path / '2022']).name == 'Community'

    def test_version_tag_preferred(self, tmp_path):
        (tmp_path / '2022' / 'Community').mkdir(parents=True)
        (tmp_path / '2019' / 'BuildTools').mkdir(parents=True)

        found = locate_visual_studio([tmp_path / '2022', tmp_path / '2019'], version_tag='2019')

        assert found == tmp_path / '2019' / 'BuildTools'

    def test_version_tag_falls_back(self, tmp_path):
        (tmp_path / '2022' / 'Community').mkdir(parents=True)
        found = locate_visual_studio([tmp_path / '2022', tmp_path / '2019'], version_tag='2019')
        assert found == tmp_path / '2022' / 'Community'

    def test_not_found(self, tmp_path):
        (tmp_path / '2022').mkdir()
        with pytest.raises(ToolchainNotFoundError, match='Visual Studio'):
            locate_visual_studio([tmp_path / '2022', tmp_path / '2019'])

    def test_not_found_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            locate_visual_studio([])

    def test_default_candidate_roots(self):
        roots = default_candidate_roots({
            'ProgramFiles': 'D:\\Program Files',
            'ProgramFiles(x86)': 'D:\\Program Files (x86)',
        })
        assert roots == [
            Path('D:/Program Files/Microsoft Visual Studio/2022'),
            Path('D:/Program Files (x86)/Microsoft Visual Studio/2019'),
        ]


class TestEnvironmentDump:
    """Test suite for parsing the captured environment."""

    def test_parse(self):
        output = (
            '**********************************************************************\r\n'
            'ALLUSERSPROFILE=C:\\ProgramData\r\n'
            'INCLUDE=C:\\VS\\include;C:\\SDK\\include\r\n'
            'Path=C:\\VS\\bin;C:\\Windows\r\n'
            'EMPTY=\r\n'
            'WEIRD=a=b\r\n'
        )
        variables = parse_environment_dump(output)
        assert variables['INCLUDE'] == 'C:\\VS\\include;C:\\SDK\\include'
        assert variables['Path'] == 'C:\\VS\\bin;C:\\Windows'
        assert variables['EMPTY'] == ''
        assert variables['WEIRD'] == 'a=b'
        assert len(variables) == 5

    def test_env_lookup_case_insensitive(self):
        environment = {'Path': 'C:/bin', 'VCToolsInstallDir': 'C:/VC'}
        assert env_lookup(environment, 'PATH') == 'C:/bin'
        assert env_lookup(environment, 'vctoolsinstalldir') == 'C:/VC'
        assert env_lookup(environment, 'WindowsSdkDir') is None


class TestCaptureEnvironment:
    """Test suite for capture_environment()."""

    @patch('winbuild.packages.msvc_environment.subprocess.run')
    def test_command_and_result(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            args='', returncode=0, stdout='VCToolsInstallDir=C:\\VC\\\r\nPath=C:\\VC\\bin\r\n', stderr=''
        )

        environment = capture_environment('C:/VS/2019/Community/VC/Auxiliary/Build/vcvarsall.bat', Architecture.X86)

        command = mock_run.call_args.args[0]
        assert command == (
            'cmd.exe /s /c "C:/VS/2019/Community/VC/Auxiliary/Build/vcvarsall.bat x64_x86 >nul && set"'
        )
        assert environment == {'VCToolsInstallDir': 'C:\\VC\\', 'Path': 'C:\\VC\\bin'}

    @patch('winbuild.packages.msvc_environment.subprocess.run')
    def test_path_with_spaces_quoted(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(args='', returncode=0, stdout='', stderr='')

        capture_environment('C:/Program Files/VS/vcvarsall.bat', Architecture.ARM64)

        assert mock_run.call_args.args[0] == 'cmd.exe /s /c ""C:/Program Files/VS/vcvarsall.bat" x64_arm64 >nul && set"'

    @patch('winbuild.packages.msvc_environment.subprocess.run')
    def test_failure(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            args='', returncode=1, stdout='', stderr='[ERROR:vcvarsall.bat] Invalid argument'
        )
        with pytest.raises(ConfigurationError, match='Invalid argument'):
            capture_environment('vcvarsall.bat', Architecture.X86_64)

    @patch('winbuild.packages.msvc_environment.subprocess.run')
    def test_launch_failure(self, mock_run):
        mock_run.side_effect = FileNotFoundError('cmd.exe')
        with pytest.raises(ConfigurationError):
            capture_environment('vcvarsall.bat', Architecture.X86_64)


class TestFindTool:
    """Test suite for find_tool()."""

    def test_found_on_captured_path(self, tmp_path):
        bin_dir = make_tool_dir(tmp_path / 'bin')
        environment = {'Path': os.pathsep.join([str(tmp_path / 'empty'), str(bin_dir)])}
        assert find_tool(environment, 'cl.exe') == (bin_dir / 'cl.exe').absolute()

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match='link.exe'):
            find_tool({'PATH': str(tmp_path)}, 'link.exe')

    def test_no_path(self):
        with pytest.raises(ConfigurationError):
            find_tool({}, 'cl.exe')


class TestCreateSession:
    """Test suite for MsvcEnvironment.create_session()."""

    @pytest.fixture
    def vs_install(self, tmp_path):
        root = tmp_path / 'Microsoft Visual Studio' / '2019'
        (root / 'Community').mkdir(parents=True)
        bin_dir = make_tool_dir(tmp_path / 'bin')
        environment = {
            'PATH': str(bin_dir),
            'VCToolsInstallDir': 'C:\\VS\\VC\\Tools\\MSVC\\14.29.30133\\',
            'WindowsSdkDir': 'C:\\Program Files (x86)\\Windows Kits\\10\\',
            'INCLUDE': 'C:\\VS\\include',
        }
        return root, bin_dir, environment

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_create_session(self, mock_capture, vs_install):
        root, bin_dir, environment = vs_install
        mock_capture.return_value = environment

        session = MsvcEnvironment(candidate_roots=[root]).create_session(
            Architecture.X86_64, BuildVariant.DEBUG, compiler_launcher='sccache'
        )

        mock_capture.assert_called_once()
        assert mock_capture.call_args.args[1] is Architecture.X86_64
        assert session.msvc_root == root / 'Community'
        assert session.msvc_include == Path('C:/VS/VC/Tools/MSVC/14.29.30133/INCLUDE')
        assert session.sdk_root == Path('C:/Program Files (x86)/Windows Kits/10/')
        assert session.compiler == (bin_dir / 'cl.exe').absolute()
        assert session.archiver == (bin_dir / 'lib.exe').absolute()
        assert session.resource_compiler == (bin_dir / 'rc.exe').absolute()
        assert session.environment['INCLUDE'] == 'C:\\VS\\include'
        assert session.compiler_launcher == 'sccache'
        assert session.moc is None and session.companion_root is None
        assert session.exclusion_roots == [session.msvc_root, session.sdk_root]

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_create_session_with_qt(self, mock_capture, vs_install, tmp_path):
        root, _, environment = vs_install
        mock_capture.return_value = environment
        qt_root = make_tool_dir(tmp_path / 'Qt' / 'msvc2019_64' / 'bin', ('moc.exe', 'rcc.exe')).parent

        session = MsvcEnvironment(qt=QtInstall(qt_root), candidate_roots=[root]).create_session(
            Architecture.X86_64, BuildVariant.RELEASE
        )

        assert session.companion_root == qt_root
        assert session.moc == (qt_root / 'bin' / 'moc.exe').absolute()
        assert session.rcc == (qt_root / 'bin' / 'rcc.exe').absolute()
        assert qt_root in session.exclusion_roots

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_missing_vc_tools(self, mock_capture, vs_install):
        root, _, environment = vs_install
        del environment['VCToolsInstallDir']
        mock_capture.return_value = environment

        with pytest.raises(ConfigurationError, match='VCToolsInstallDir'):
            MsvcEnvironment(candidate_roots=[root]).create_session(Architecture.X86_64, BuildVariant.DEBUG)

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_missing_sdk_is_tolerated(self, mock_capture, vs_install):
        root, _, environment = vs_install
        del environment['WindowsSdkDir']
        mock_capture.return_value = environment

        session = MsvcEnvironment(candidate_roots=[root]).create_session(Architecture.X86_64, BuildVariant.DEBUG)

        assert session.sdk_root is None
        assert session.exclusion_roots == [session.msvc_root]

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_vs_not_found_before_capture(self, mock_capture, tmp_path):
        with pytest.raises(ToolchainNotFoundError):
            MsvcEnvironment(candidate_roots=[tmp_path]).create_session(Architecture.X86_64, BuildVariant.DEBUG)
        mock_capture.assert_not_called()

    @patch('winbuild.packages.msvc_environment.capture_environment')
    def test_process_environment_untouched(self, mock_capture, vs_install, monkeypatch):
        root, _, environment = vs_install
        monkeypatch.delenv('VCToolsInstallDir', raising=False)
        mock_capture.return_value = environment

        MsvcEnvironment(candidate_roots=[root]).create_session(Architecture.X86_64, BuildVariant.DEBUG)

        assert 'VCToolsInstallDir' not in os.environ


class TestToolchainSession:
    """Test suite for ToolchainSession."""

    def test_immutable(self):
        session = make_session()
        with pytest.raises(AttributeError):
            session.compiler = Path('other.exe')
        with pytest.raises(TypeError):
            session.environment['PATH'] = 'C:/evil'

    def test_environment_copied(self):
        environment = {'PATH': 'C:/bin'}
        session = make_session(environment=environment)
        environment['PATH'] = 'C:/changed'
        assert session.environment['PATH'] == 'C:/bin'
