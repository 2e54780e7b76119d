import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from git.exc import GitCommandError

from sourcesync import __version__
from sourcesync.cli.main import cli
from sourcesync.exceptions import DownloadError, RefResolutionError
from sourcesync.state import StateStore


@pytest.fixture
def runner():
    return CliRunner(env={"SOURCESYNC_TOKEN": "t0ken"})


@pytest.fixture
def mock_synchronize():
    with patch("sourcesync.cli.sync.synchronize") as mock:
        yield mock


@pytest.fixture(autouse=True)
def default_server(monkeypatch):
    monkeypatch.setattr(
        "sourcesync.cli.sync.get_server_url", lambda: "https://github.com"
    )


@pytest.mark.short
def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.short
class TestSyncCommand:
    def test_settings_from_arguments(self, runner, mock_synchronize, tmp_path):
        result = runner.invoke(
            cli,
            [
                "sync",
                "acme/widgets",
                "--path",
                str(tmp_path / "widgets"),
                "--ref",
                "refs/heads/main",
                "--fetch-depth",
                "0",
                "--no-clean",
                "--token",
                "abc",
            ],
        )

        assert result.exit_code == 0, result.output
        settings = mock_synchronize.call_args.args[0]
        assert settings.repository_owner == "acme"
        assert settings.repository_name == "widgets"
        assert settings.repository_path == tmp_path / "widgets"
        assert settings.ref == "refs/heads/main"
        assert settings.fetch_depth == 0
        assert settings.clean is False
        assert settings.auth_token == "abc"
        assert settings.persist_credentials is False
        assert settings.server_url == "https://github.com"

    def test_token_from_environment(self, runner, mock_synchronize):
        result = runner.invoke(
            cli,
            ["sync", "acme/widgets", "--ref", "main"],
            env={"SOURCESYNC_TOKEN": "from-env"},
        )

        assert result.exit_code == 0, result.output
        assert mock_synchronize.call_args.args[0].auth_token == "from-env"

    def test_server_url_option(self, runner, mock_synchronize):
        result = runner.invoke(
            cli,
            [
                "sync",
                "acme/widgets",
                "--ref",
                "main",
                "--server-url",
                "https://ghe.example.com",
            ],
        )

        assert result.exit_code == 0, result.output
        settings = mock_synchronize.call_args.args[0]
        assert settings.repository_url == "https://ghe.example.com/acme/widgets"

    def test_invalid_repository(self, runner, mock_synchronize, caplog):
        with caplog.at_level(logging.ERROR, logger="sourcesync"):
            result = runner.invoke(cli, ["sync", "widgets", "--ref", "main"])

        assert result.exit_code == 1
        assert "Invalid arguments" in caplog.text
        mock_synchronize.assert_not_called()

    def test_missing_token(self, runner, mock_synchronize, caplog):
        with caplog.at_level(logging.ERROR, logger="sourcesync"):
            result = runner.invoke(
                cli,
                ["sync", "acme/widgets", "--ref", "main"],
                env={"SOURCESYNC_TOKEN": ""},
            )

        assert result.exit_code == 1
        assert "auth token is required" in caplog.text
        mock_synchronize.assert_not_called()

    def test_short_ref_with_commit(self, runner, mock_synchronize):
        result = runner.invoke(
            cli, ["sync", "acme/widgets", "--ref", "main", "--commit", "1" * 40]
        )

        assert result.exit_code == 1
        mock_synchronize.assert_not_called()

    def test_missing_ref_and_commit(self, runner, mock_synchronize):
        result = runner.invoke(cli, ["sync", "acme/widgets"])

        assert result.exit_code == 1
        mock_synchronize.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            RefResolutionError("A branch or tag with the name 'x' could not be found"),
            GitCommandError(["git", "fetch"], 128),
            DownloadError("Unable to download repository archive: connection reset"),
        ],
    )
    def test_sync_failure(self, runner, mock_synchronize, caplog, error):
        mock_synchronize.side_effect = error

        with caplog.at_level(logging.ERROR, logger="sourcesync"):
            result = runner.invoke(cli, ["sync", "acme/widgets", "--ref", "x"])

        assert result.exit_code == 1
        assert "Failed to sync acme/widgets" in caplog.text

    def test_debug_flag(self, runner, mock_synchronize):
        result = runner.invoke(cli, ["--debug", "sync", "acme/widgets", "--ref", "x"])

        assert result.exit_code == 0, result.output
        assert logging.getLogger("sourcesync").level == logging.DEBUG


@pytest.mark.short
class TestCleanupCommand:
    def test_explicit_path(self, runner, tmp_path):
        with patch("sourcesync.cli.sync.cleanup") as mock_cleanup:
            result = runner.invoke(cli, ["cleanup", "--path", str(tmp_path)])

        assert result.exit_code == 0, result.output
        mock_cleanup.assert_called_once_with(
            str(tmp_path), server_url="https://github.com"
        )

    def test_recorded_path(self, runner, tmp_path):
        store = StateStore(tmp_path / "state")
        store.set_repository_path(Path("/work/widgets"))

        with patch("sourcesync.cli.sync.StateStore", return_value=store), patch(
            "sourcesync.cli.sync.cleanup"
        ) as mock_cleanup:
            result = runner.invoke(cli, ["cleanup"])

        assert result.exit_code == 0, result.output
        mock_cleanup.assert_called_once_with(
            "/work/widgets", server_url="https://github.com"
        )

    def test_nothing_recorded(self, runner, tmp_path):
        store = StateStore(tmp_path / "state")

        with patch("sourcesync.cli.sync.StateStore", return_value=store), patch(
            "sourcesync.cli.sync.cleanup"
        ) as mock_cleanup:
            result = runner.invoke(cli, ["cleanup"])

        assert result.exit_code == 0
        mock_cleanup.assert_not_called()
