"""Tests for the ``portfolio`` command line."""

import tomllib

import pytest

from portfolio.cli import main as cli
from portfolio.settings import Settings
from portfolio.utils.passwords import check_password


class TestInit:
    def test_writes_settings_with_secret(self, tmp_path):
        cli.main(["init", str(tmp_path)])

        data = tomllib.loads((tmp_path / "settings.toml").read_text())
        assert len(data["jwt_secret_key"]) >= 32
        assert data["database_driver"] == "sqlite"
        assert (tmp_path / "data").is_dir()
        # The generated file is loadable as settings
        assert Settings(**data).jwt_secret_key == data["jwt_secret_key"]

    def test_secrets_differ_between_projects(self, tmp_path):
        cli.init_project(str(tmp_path / "a"))
        cli.init_project(str(tmp_path / "b"))

        a = tomllib.loads((tmp_path / "a" / "settings.toml").read_text())
        b = tomllib.loads((tmp_path / "b" / "settings.toml").read_text())
        assert a["jwt_secret_key"] != b["jwt_secret_key"]

    def test_existing_settings_are_kept(self, tmp_path):
        settings_file = tmp_path / "settings.toml"
        settings_file.write_text('jwt_secret_key = "mine"\n')

        cli.init_project(str(tmp_path))

        assert settings_file.read_text() == 'jwt_secret_key = "mine"\n'


class TestPasswordPrompt:
    def test_hash_password(self, monkeypatch, capsys):
        monkeypatch.setattr(cli.getpass, "getpass", lambda _prompt: "new-secret")

        cli.main(["hash-password"])

        printed = capsys.readouterr().out.strip()
        assert check_password("new-secret", printed)

    def test_mismatch_exits(self, monkeypatch):
        answers = iter(["new-secret", "other-secret"])
        monkeypatch.setattr(cli.getpass, "getpass", lambda _prompt: next(answers))

        with pytest.raises(SystemExit) as exc_info:
            cli.prompt_new_password()
        assert exc_info.value.code == 1

    def test_too_short_exits(self, monkeypatch):
        monkeypatch.setattr(cli.getpass, "getpass", lambda _prompt: "12345")

        with pytest.raises(SystemExit):
            cli.prompt_new_password()


def test_no_command_prints_help(capsys):
    cli.main([])

    assert "usage: portfolio" in capsys.readouterr().out


def test_run_uses_settings(monkeypatch):
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr("uvicorn.run", fake_run)

    cli.main(["run", "--port", "9001"])

    assert calls["app"] == "portfolio.api.app:app"
    assert calls["port"] == 9001
    assert calls["host"] == cli.settings.host
