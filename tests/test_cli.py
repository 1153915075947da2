"""Tests for the mfp entry point."""

import pytest

from mfp import __version__, cli


@pytest.fixture
def cli_env(monkeypatch, short_dir):
    """Point config and data at a temp dir; keep loguru and signals untouched."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(short_dir / "config"))
    monkeypatch.setenv("MFP_DATA_DIR", str(short_dir / "data"))
    monkeypatch.delenv("MFP_LOG_LEVEL", raising=False)
    monkeypatch.setattr(cli, "setup_loguru", lambda log_file, level="INFO": None)
    monkeypatch.setattr(cli, "install_signal_handlers", lambda: None)
    return short_dir


class TestParser:
    """Tests for argument parsing."""

    def test_defaults_to_help(self) -> None:
        args = cli.build_parser().parse_args([])
        assert args.command == "help"
        assert args.args == []

    def test_negative_seek_is_an_argument(self) -> None:
        args = cli.build_parser().parse_args(["seek", "-10"])
        assert args.command == "seek"
        assert args.args == ["-10"]

    def test_log_level(self) -> None:
        args = cli.build_parser().parse_args(["--log-level", "debug", "status"])
        assert args.log_level == "debug"
        assert args.command == "status"


class TestMain:
    """Tests for main()."""

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            cli.main(["--version"])
        assert exc.value.code == 0
        assert f"mfp {__version__}" in capsys.readouterr().out

    def test_status(self, cli_env, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            cli.main(["status"])
        assert exc.value.code == 0
        assert "MFP Status:" in capsys.readouterr().out
        assert (cli_env / "data").is_dir()
        assert (cli_env / "config" / "mfp" / "config.toml").exists()

    def test_help_flag(self, cli_env, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            cli.main(["--help"])
        assert exc.value.code == 0
        assert "Usage: mfp <command>" in capsys.readouterr().out

    def test_error_exits_zero(self, cli_env, capsys) -> None:
        """A reported command error is not a crash."""
        with pytest.raises(SystemExit) as exc:
            cli.main(["jump", "1"])
        assert exc.value.code == 0
        assert "❌" in capsys.readouterr().err

    def test_unusable_data_dir(self, cli_env, monkeypatch, capsys) -> None:
        blocker = cli_env / "blocker"
        blocker.write_text("")
        monkeypatch.setenv("MFP_DATA_DIR", str(blocker / "data"))

        with pytest.raises(SystemExit) as exc:
            cli.main(["status"])
        assert exc.value.code == 1
        assert "cannot create data directory" in capsys.readouterr().err

    def test_interrupt(self, cli_env, monkeypatch) -> None:
        def interrupted(ctx, command, args):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "handle_command", interrupted)
        with pytest.raises(SystemExit) as exc:
            cli.main(["play"])
        assert exc.value.code == 0
