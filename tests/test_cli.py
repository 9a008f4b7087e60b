import pytest
from pathlib import Path
from unittest.mock import Mock, patch

from apt_pkg_cache.application.dtos import CacheResponse
from apt_pkg_cache.application.handle_cache_request import HandleCacheRequest
from apt_pkg_cache.domain.package import Package, PackageSet
from apt_pkg_cache.infrastructure.process_executor import ProcessExecutor
from apt_pkg_cache.infrastructure.replay_executor import ReplayExecutor
from apt_pkg_cache.interfaces.cli import Config, create_executor, run_command, write_github_outputs
from apt_pkg_cache.main import main, parse_config

REPLAY_LOG = str(Path(__file__).parent / "testlogs" / "normalized_list.log")


class TestParseConfig:
    def test_normalized_list(self):
        config = parse_config(["normalized-list", "xdot", "rolldice", "--replay-file", REPLAY_LOG])

        assert config.command == "normalized-list"
        assert config.packages == ["xdot", "rolldice"]
        assert config.replay_file == REPLAY_LOG
        assert config.verbose is False

    def test_install_flags(self, tmp_path):
        config = parse_config([
            "install", "xdot",
            "--cache-dir", str(tmp_path),
            "--version", "test",
            "--global-version", "v2",
            "--os-arch", "arm64",
            "--github-output", str(tmp_path / "out"),
            "-v",
        ])

        assert config.cache_dir == str(tmp_path)
        assert config.version == "test"
        assert config.global_version == "v2"
        assert config.os_arch == "arm64"
        assert config.github_output == str(tmp_path / "out")
        assert config.verbose is True

    @patch('platform.machine', return_value="x86_64")
    def test_os_arch_defaults_to_machine(self, mock_machine, tmp_path):
        config = parse_config(["createkey", "xdot", "--cache-dir", str(tmp_path), "--global-version", "v1"])

        assert config.os_arch == "x86_64"

    def test_restore_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "github_output"))

        config = parse_config(["restore", "--cache-dir", str(tmp_path)])

        assert config.packages == []
        assert config.restore_root == "/"
        assert config.github_output == str(tmp_path / "github_output")

    def test_packages_required(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_config(["normalized-list"])

        assert exc_info.value.code == 2

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_config([])


class TestCreateExecutor:
    def test_replay_file(self):
        config = Config(command="normalized-list", packages=["xdot"], replay_file=REPLAY_LOG)

        assert isinstance(create_executor(config), ReplayExecutor)

    def test_process_by_default(self):
        config = Config(command="normalized-list", packages=["xdot"])

        assert isinstance(create_executor(config), ProcessExecutor)


class TestRunCommand:
    @pytest.fixture
    def handler(self):
        return Mock(spec=HandleCacheRequest)

    def test_normalized_list_prints_serialized_set(self, handler):
        handler.normalize.return_value = PackageSet.build(Package("xdot", "1.2-3"))
        config = Config(command="normalized-list", packages=["xdot"])

        assert run_command(config, handler) == "xdot=1.2-3"

    def test_validate_prints_nothing(self, handler):
        config = Config(command="validate", packages=["xdot"])

        assert run_command(config, handler) is None
        handler.validate.assert_called_once_with(["xdot"])

    def test_install_writes_github_outputs(self, handler, tmp_path):
        output = tmp_path / "github_output"
        handler.install.return_value = CacheResponse(
            cache_key_hash="ab12",
            package_version_list="xdot-1.2-3",
            is_cache_hit=False,
            all_package_version_list="libgtk-3-0-3.24.33,xdot-1.2-3"
        )
        config = Config(
            command="install", packages=["xdot"], global_version="v1", os_arch="amd64",
            github_output=str(output)
        )

        assert run_command(config, handler) == "xdot-1.2-3"
        assert output.read_text() == (
            "cache-key=ab12\n"
            "cache-hit=false\n"
            "package-version-list=xdot-1.2-3\n"
            "all-package-version-list=libgtk-3-0-3.24.33,xdot-1.2-3\n"
        )

    def test_restore_uses_restore_root(self, handler, tmp_path):
        handler.restore.return_value = CacheResponse("ab12", "xdot-1.2-3", True)
        config = Config(command="restore", packages=[], restore_root=str(tmp_path), github_output="")

        run_command(config, handler)

        handler.restore.assert_called_once_with(tmp_path)

    def test_unknown_command(self, handler):
        with pytest.raises(ValueError):
            run_command(Config(command="bogus", packages=[]), handler)


class TestWriteGithubOutputs:
    def test_appends(self, tmp_path):
        output = tmp_path / "github_output"
        output.write_text("existing=1\n")

        write_github_outputs(str(output), CacheResponse("ab12", "", True))

        lines = output.read_text().splitlines()
        assert lines[0] == "existing=1"
        assert "cache-hit=true" in lines


class TestMain:
    """End to end runs against recorded apt-cache sessions."""

    @pytest.fixture(autouse=True)
    def run_in_tmp(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)

    def test_normalized_list(self, capsys):
        assert main(["normalized-list", "xdot", "rolldice", "--replay-file", REPLAY_LOG]) == 0

        assert capsys.readouterr().out.strip() == "rolldice=1.16-1build1 xdot=1.2-3"

    def test_normalized_list_virtual_package(self, capsys):
        assert main(["normalized-list", "libvips", "--replay-file", REPLAY_LOG]) == 0

        assert capsys.readouterr().out.strip() == "libvips42=8.9.1-2"

    def test_nonexistent_package(self, capsys):
        assert main(["normalized-list", "nonexistentpackagename", "--replay-file", REPLAY_LOG]) == 1

        err = capsys.readouterr().err
        assert "Error encountered running apt-cache --quiet=0 --no-all-versions show nonexistentpackagename" in err
        assert "E: No packages found" in err

    def test_validate_virtual_package_without_providers(self, capsys):
        assert main(["validate", "python", "--replay-file", REPLAY_LOG]) == 1

        assert "virtual package 'python' has no concrete package providers available" in capsys.readouterr().err

    def test_createkey(self, tmp_path, capsys):
        cache_dir = tmp_path / "cache"

        exit_code = main([
            "createkey", "rolldice", "xdot",
            "--cache-dir", str(cache_dir),
            "--global-version", "v2",
            "--os-arch", "amd64",
            "--replay-file", REPLAY_LOG,
        ])

        assert exit_code == 0
        assert (cache_dir / "cache_key.txt").read_text() == (
            "Packages: 'rolldice=1.16-1build1 xdot=1.2-3', Version: '', GlobalVersion: 'v2', OsArch: 'amd64'"
        )
        assert (cache_dir / "cache_key.sha256").read_bytes().hex() == capsys.readouterr().out.strip()

    def test_restore_without_cache(self, tmp_path, capsys):
        assert main(["restore", "--cache-dir", str(tmp_path / "cache")]) == 1

        assert "does not exist" in capsys.readouterr().err
