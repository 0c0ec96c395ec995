"""
Tests for the at-utils CLI.

This test suite covers:
1. Argument parsing
2. Query commands printing JSON
3. Error to exit code mapping
4. Update and install flows with git/npm mocked out
"""

import json
from argparse import Namespace
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from atcli.cli import create_parser, main
from atcli.commands.install import install_async
from atcli.commands.register import super_user_credentials
from atcli.commands.update import update_async
from atutils.config import Settings, save_app_config
from atutils.release import GitHubClient
from atutils.system.registration import InternalApiClient
from atutils.system.process import ProcessError


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep user settings and credentials out of CLI runs."""
    monkeypatch.chdir(tmp_path)
    for name in ("AT_UTILS_CONFIG", "GITHUB_USER", "GITHUB_TOKEN", "NODE_ENV"):
        monkeypatch.delenv(name, raising=False)


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


def fake_github(releases):
    """Factory returning GitHubClients that serve the given releases."""

    def handler(request):
        return httpx.Response(200, json=releases)

    return lambda settings: GitHubClient(transport=httpx.MockTransport(handler))


def release(tag, day):
    return {
        "name": tag,
        "tag_name": tag,
        "draft": False,
        "prerelease": False,
        "published_at": f"2024-06-{day:02d}T00:00:00Z",
    }


def no_local_commit():
    return patch(
        "atutils.system.git_ops.last_commit_date",
        new=AsyncMock(side_effect=ProcessError(["git"], 128)),
    )


class TestParser:
    """Test argument parsing."""

    def test_install_options(self):
        """Install should accept its flags."""
        args = create_parser().parse_args(
            ["install", "/srv/aat", "--tag", "v1.0.0", "--ignore-prereqs", "--no-clean"]
        )

        assert args.command == "install"
        assert args.dir == Path("/srv/aat")
        assert args.tag == "v1.0.0"
        assert args.ignore_prereqs and args.no_clean
        assert args.local_modules == []

    def test_release_channels(self):
        """Releases should accept channel flags."""
        args = create_parser().parse_args(["releases", "--prerelease", "--branches"])

        assert args.prerelease and args.branches and not args.draft

    def test_no_command_prints_help(self, capsys):
        """No subcommand should print help and succeed."""
        assert main([]) == 0
        assert "usage: at-utils" in capsys.readouterr().out


class TestQueryCommands:
    """Test the JSON query commands."""

    def test_deps(self, tmp_path, capsys):
        """Should print the aggregated dependency set."""
        modules = tmp_path / "node_modules"
        write_json(modules / "core" / "package.json", {
            "name": "core", "version": "1.0.0", "dependencies": {"lodash": "^4.0.0"},
        })
        write_json(modules / "core" / "adapt-authoring.json", {})

        assert main(["deps", str(tmp_path)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data == {"adapt": {"core": "1.0.0"}, "all": {"lodash": "^4.0.0"}, "dev": {}}

    def test_schemas(self, tmp_path, capsys):
        """Should print config schemas and the super user schema."""
        modules = tmp_path / "node_modules"
        write_json(modules / "server" / "package.json", {"name": "server", "version": "1.0.0"})
        write_json(modules / "server" / "conf" / "config.schema.json", {"type": "object"})

        assert main(["schemas", str(tmp_path)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["config"]["server"]["schema"] == {"type": "object"}
        assert "superUser" in data["user"]["properties"]

    def test_releases_uses_installed_version(self, tmp_path, capsys):
        """Should read the current version from package.json."""
        write_json(tmp_path / "package.json", {"name": "adapt-authoring", "version": "1.1.0"})
        releases = [release("1.0.0", 1), release("1.1.0", 2), release("1.2.0", 3)]

        with patch("atcli.commands.query.github_client", fake_github(releases)), no_local_commit():
            assert main(["releases", str(tmp_path)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [r["tag_name"] for r in data] == ["1.2.0"]

    def test_discovery_error_exit_code(self, tmp_path, capsys):
        """A missing node_modules directory should exit 1 with a message."""
        assert main(["deps", str(tmp_path / "missing")]) == 1
        assert "Error: Failed to read" in capsys.readouterr().err

    def test_bad_settings_exit_code(self, tmp_path, capsys):
        """An invalid settings file should exit 1."""
        (tmp_path / "bad.toml").write_text("[github\n")

        assert main(["--config", str(tmp_path / "bad.toml"), "deps"]) == 1
        assert "Failed to parse" in capsys.readouterr().err


class TestUpdate:
    """Test the update flow."""

    @pytest.mark.asyncio
    async def test_update_to_newest(self, tmp_path, capsys):
        """Should check out the newest candidate."""
        write_json(tmp_path / "package.json", {"version": "1.0.0"})
        args = Namespace(dir=tmp_path, tag=None, branches=False, prerelease=False, draft=False)
        releases = [release("1.1.0", 1), release("1.2.0", 5)]

        with patch("atcli.commands.update.github_client", fake_github(releases)), \
                no_local_commit(), \
                patch("atutils.system.git_ops.update_repo", new=AsyncMock()) as update_repo:
            assert await update_async(args, Settings()) == 0

        update_repo.assert_awaited_once_with(tmp_path, "1.2.0")
        assert "1.0.0 -> 1.2.0" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_already_up_to_date(self, tmp_path, capsys):
        """Should do nothing when no candidate is newer."""
        write_json(tmp_path / "package.json", {"version": "2.0.0"})
        args = Namespace(dir=tmp_path, tag=None, branches=False, prerelease=False, draft=False)

        with patch("atcli.commands.update.github_client", fake_github([release("2.0.0", 1)])), \
                no_local_commit(), \
                patch("atutils.system.git_ops.update_repo", new=AsyncMock()) as update_repo:
            assert await update_async(args, Settings()) == 0

        update_repo.assert_not_awaited()
        assert "Already up to date" in capsys.readouterr().out


class TestInstall:
    """Test the install flow."""

    def args(self, directory, **overrides):
        values = dict(
            dir=directory,
            tag="v1.0.0",
            ignore_prereqs=False,
            no_clean=False,
            app_config=None,
            local_modules=[],
            super_email=None,
            super_password=None,
            pipe_passwd=False,
        )
        values.update(overrides)
        return Namespace(**values)

    @pytest.mark.asyncio
    async def test_install_without_app_config(self, tmp_path, capsys):
        """Should check prerequisites, clone and print start commands."""
        target = tmp_path / "aat"
        with patch("atcli.commands.install.check_prerequisites", new=AsyncMock()) as prereqs, \
                patch("atutils.system.git_ops.clone_repo", new=AsyncMock()) as clone, \
                patch("atcli.commands.install.register_async", new=AsyncMock()) as register:
            assert await install_async(self.args(target), Settings()) == 0

        prereqs.assert_awaited_once()
        assert clone.await_args.kwargs["tag"] == "v1.0.0"
        assert clone.await_args.kwargs["clean_install"] is True
        register.assert_not_awaited()
        assert f"cd {target.resolve()}" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_install_with_app_config_registers(self, tmp_path):
        """With an app config it should save it and register the super user."""
        target = tmp_path / "aat"
        config_file = tmp_path / "config.json"
        write_json(config_file, {"adapt-authoring-server": {"host": "localhost", "port": 5678}})
        args = self.args(target, app_config=config_file, super_email="a@b.c", super_password="pw")

        with patch("atcli.commands.install.check_prerequisites", new=AsyncMock()), \
                patch("atutils.system.git_ops.clone_repo", new=AsyncMock()), \
                patch("atcli.commands.install.register_async", new=AsyncMock()) as register:
            assert await install_async(args, Settings(node_env="testing")) == 0

        assert (target.resolve() / "conf" / "testing.config.js").exists()
        register.assert_awaited_once()
        assert register.await_args.args[2:] == ("a@b.c", "pw")

    @pytest.mark.asyncio
    async def test_install_refuses_non_empty_dir(self, tmp_path, capsys):
        """Should not clone into a directory that already has content."""
        (tmp_path / "existing.txt").write_text("x")

        with patch("atutils.system.git_ops.clone_repo", new=AsyncMock()) as clone:
            assert await install_async(self.args(tmp_path), Settings()) == 1

        clone.assert_not_awaited()
        assert "is not empty" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_install_latest_release_by_default(self, tmp_path):
        """Without --tag the newest release should be installed."""
        releases = [release("1.0.0", 1), release("2.0.0", 9)]
        with patch("atcli.commands.install.check_prerequisites", new=AsyncMock()), \
                patch("atcli.commands.install.github_client", fake_github(releases)), \
                no_local_commit(), \
                patch("atutils.system.git_ops.clone_repo", new=AsyncMock()) as clone:
            await install_async(self.args(tmp_path / "aat", tag=None), Settings())

        assert clone.await_args.kwargs["tag"] == "2.0.0"


class TestRegister:
    """Test the register command."""

    SERVER = {"adapt-authoring-server": {"host": "localhost", "port": 5678}}

    def test_register_running_app(self, tmp_path, capsys):
        """With the API up it should register without starting the app."""
        save_app_config(tmp_path, self.SERVER, "production")

        with patch.object(InternalApiClient, "ping", new=AsyncMock(return_value=True)), \
                patch("atcli.commands.register.AppHandle") as handle, \
                patch("atcli.commands.register.register_super_user", new=AsyncMock()) as register:
            code = main([
                "register", str(tmp_path), "--super-email", "a@b.c", "--super-password", "pw",
            ])

        assert code == 0
        handle.assert_not_called()
        assert register.await_args.args[1:] == ("a@b.c", "pw")
        assert "Super user registered" in capsys.readouterr().out

    def test_register_starts_app_when_down(self, tmp_path):
        """With the API down the app should be started around registration."""
        save_app_config(tmp_path, self.SERVER, "production")
        handle = MagicMock()

        with patch.object(InternalApiClient, "ping", new=AsyncMock(return_value=False)), \
                patch("atcli.commands.register.AppHandle", handle), \
                patch("atcli.commands.register.register_super_user", new=AsyncMock()) as register:
            assert main(["register", str(tmp_path), "--super-email", "a@b.c"]) == 0

        assert handle.call_args.args[0] == tmp_path
        handle.return_value.__aenter__.assert_awaited_once()
        register.assert_awaited_once()

    def test_missing_app_config(self, tmp_path, capsys):
        """Without an app config the command should exit 1."""
        assert main(["register", str(tmp_path)]) == 1
        assert "Failed to read" in capsys.readouterr().err

    def test_piped_password(self):
        """--pipe-passwd should read the password from stdin."""
        args = Namespace(super_email="a@b.c", super_password=None, pipe_passwd=True)

        with patch("atcli.commands.register.read_piped_password", return_value="s3cret"):
            assert super_user_credentials(args) == ("a@b.c", "s3cret")
