"""
Tests for the command line scripts.
"""

import json
from unittest.mock import patch

import pytest

from scripts import check_plugin_updates, update_registry
from src.plugin_registry.exceptions import MissingPrerequisiteError
from src.plugin_registry.github_client import ReleaseError, ReleaseInfo


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    # Leave pytest's log capture handlers on the root logger alone
    monkeypatch.setattr(check_plugin_updates, 'setup_logging', lambda verbose=False: None)
    monkeypatch.setattr(update_registry, 'setup_logging', lambda verbose=False: None)
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)
    return tmp_path


@pytest.fixture
def patched_client(mock_client):
    with patch.object(check_plugin_updates, 'GitHubReleaseClient', return_value=mock_client):
        yield mock_client


class TestCheckPluginUpdates:

    def test_help_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            check_plugin_updates.main(['--help'])
        assert exc_info.value.code == 0
        assert '--auto-download' in capsys.readouterr().out

    def test_unknown_option_exits_one(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            check_plugin_updates.main(['--frobnicate'])
        assert exc_info.value.code == 1
        assert 'Use --help' in capsys.readouterr().err

    def test_missing_registry_exits_one(self, capsys, patched_client):
        assert check_plugin_updates.main([]) == 1
        err = capsys.readouterr().err
        assert 'plugin_registry.json' in err
        assert 'local_plugin_registry.json' in err
        patched_client.latest_release.assert_not_called()

    def test_falls_back_to_local_registry(self, capsys, write_registry, patched_client):
        write_registry([{'name': 'foo', 'version': '1.0.0'}], name='local_plugin_registry.json')
        assert check_plugin_updates.main([]) == 0
        assert 'Using registry: local_plugin_registry.json' in capsys.readouterr().out

    def test_update_registry_run(self, capsys, write_registry, patched_client):
        path = write_registry([{'name': 'foo', 'version': '1.0.0', 'github_repo': 'x/y'}])
        patched_client.latest_release.return_value = ReleaseInfo(tag='1.2.0')

        assert check_plugin_updates.main(['--update-registry']) == 0

        assert json.loads(path.read_text())['plugins'][0]['version'] == '1.2.0'
        out = capsys.readouterr().out
        assert 'Update available: 1.0.0 -> 1.2.0' in out
        assert 'Registry updates: 1' in out
        assert 'Backup saved: ' in out

    def test_errors_do_not_change_exit_code(self, capsys, write_registry, patched_client):
        write_registry([
            {'name': 'foo', 'version': '1.0.0', 'github_repo': 'x/y'},
            {'name': 'bar', 'version': '1.0.0', 'github_repo': 'not a repo'},
        ])
        patched_client.latest_release.return_value = ReleaseError('API request failed')

        assert check_plugin_updates.main([]) == 0
        assert 'Errors: 2' in capsys.readouterr().out

    def test_download_dir_option(self, write_registry, patched_client, tmp_path):
        write_registry([{
            'name': 'foo', 'version': '1.0.0', 'github_repo': 'x/y',
            'download_url': 'https://github.com/x/y/releases/download/v1.2.0/foo.so',
        }])
        patched_client.latest_release.return_value = ReleaseInfo(tag='1.2.0')

        assert check_plugin_updates.main(['--auto-download', '--download-dir', 'updates']) == 0
        assert (tmp_path / 'updates' / 'foo.so').exists()

    def test_explicit_registry_path(self, write_registry, patched_client):
        path = write_registry([], name='custom.json')
        assert check_plugin_updates.main(['--registry', str(path)]) == 0


class TestUpdateRegistry:

    def test_missing_prerequisite_stops_before_network(self, capsys, write_registry):
        write_registry([{'name': 'foo', 'version': '1', 'repository': 'https://github.com/x/foo'}])
        with patch.object(update_registry, 'check_prerequisites',
                          side_effect=MissingPrerequisiteError('PyYAML is required but not installed')), \
                patch('src.plugin_registry.github_client.GitHubReleaseClient') as client_cls:
            assert update_registry.main([]) == 1

        client_cls.assert_not_called()
        assert 'PyYAML' in capsys.readouterr().err

    def test_missing_registry(self, capsys):
        assert update_registry.main([]) == 1
        assert 'plugin_registry.json' in capsys.readouterr().err

    def test_rebuild(self, capsys, write_registry, mock_client):
        path = write_registry([{'name': 'foo', 'version': '1', 'repository': 'https://github.com/x/foo'}])
        mock_client.fetch_manifest.return_value = b'name: foo\nversion: 2.0.0\n'

        with patch('src.plugin_registry.github_client.GitHubReleaseClient', return_value=mock_client):
            assert update_registry.main([]) == 0

        assert json.loads(path.read_text())['plugins'][0]['version'] == '2.0.0'
        assert '• foo v2.0.0' in capsys.readouterr().out

    def test_conversion_error_exits_one(self, capsys, write_registry, mock_client):
        path = write_registry([{'name': 'foo', 'version': '1', 'repository': 'https://github.com/x/foo'}])
        original = path.read_bytes()
        mock_client.fetch_manifest.return_value = b'version: 2.0.0\n'

        with patch('src.plugin_registry.github_client.GitHubReleaseClient', return_value=mock_client):
            assert update_registry.main([]) == 1

        assert path.read_bytes() == original
        assert 'Failed to convert manifest' in capsys.readouterr().err
