"""Command line parsing and the commands that need no browser."""

from __future__ import annotations

import json

import pytest

from claypilot import cli
from claypilot.session.store import SessionStore
from fakes import make_config


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: None)


@pytest.fixture
def fast_config(monkeypatch, tmp_path):
    config = make_config(tmp_path)
    monkeypatch.setattr(cli.ClayConfig, "from_env", lambda env_file=None: config)
    return config


def parse(*argv: str):
    return cli.build_parser().parse_args(list(argv))


class TestPayloads:
    def test_create_table(self):
        args = parse("create-table", "Leads Q3", "--description", "Inbound")
        assert cli.payload_for(args) == {"table_name": "Leads Q3", "description": "Inbound"}

    def test_login_without_identity(self):
        assert cli.payload_for(parse("login")) is None
        assert cli.payload_for(parse("login", "--identity", "a@b.co")) == {"identity": "a@b.co"}

    def test_add_enrichment_settings(self):
        args = parse(
            "add-enrichment", "t_1",
            "--type", "email_finder",
            "--column", "Email",
            "--source", "domain",
            "--setting", "provider=hunter",
            "--setting", "limit = 5",
        )
        payload = cli.payload_for(args)
        assert payload["enrichment"]["settings"] == {"provider": "hunter", "limit": "5"}
        assert payload["enrichment"]["type"] == "email_finder"

    def test_malformed_setting(self):
        args = parse("add-enrichment", "t_1", "--type", "email_finder", "--column", "E", "--source", "d", "--setting", "oops")
        with pytest.raises(SystemExit):
            cli.payload_for(args)

    def test_run_enrichment_flags(self):
        payload = cli.payload_for(parse("run-enrichment", "t_1", "--no-wait"))
        assert payload == {"table_id": "t_1", "columns": None, "wait_for_completion": False}

    def test_write_prompt(self):
        args = parse("write-prompt", "t_1", "--column", "Sum", "--prompt", "Hi", "--source", "a", "b", "--max-tokens", "50")
        prompt = cli.payload_for(args)["prompt"]
        assert prompt["source_columns"] == ["a", "b"]
        assert prompt["max_tokens"] == 50

    def test_unknown_enrichment_type_rejected(self):
        with pytest.raises(SystemExit):
            parse("add-enrichment", "t_1", "--type", "astrology", "--column", "E", "--source", "d")


class TestCommands:
    def test_workflows_listing(self, fast_config, capsys):
        assert cli.main(["workflows"]) == 0
        out = capsys.readouterr().out
        assert "create_table" in out
        assert "export_results" in out

    def test_session_info_without_session(self, fast_config, capsys):
        assert cli.main(["session", "info"]) == 1
        assert "No active session found" in capsys.readouterr().out

    def test_session_info_and_clear(self, fast_config, capsys):
        store = SessionStore(settings=fast_config.session)
        store.save_session([], identity="ops@example.com")

        assert cli.main(["session", "info"]) == 0
        out = capsys.readouterr().out
        assert "Valid: Yes" in out
        assert "Identity: ops@example.com" in out

        assert cli.main(["session", "clear"]) == 0
        assert not store.session_file.exists()

    def test_dry_run_create_table(self, fast_config, capsys):
        assert cli.main(["--dry-run", "--headless", "create-table", "Leads"]) == 0
        assert fast_config.options.dry_run is True
        assert fast_config.options.headless is True
        data = json.loads(capsys.readouterr().out)
        assert data["table_id"] == "dry-run-table"
        assert data["table_name"] == "Leads"

    def test_dry_run_failure_exit_code(self, fast_config, tmp_path, capsys):
        code = cli.main(["--dry-run", "upload-csv", "t_1", str(tmp_path / "missing.csv")])

        assert code == 1
        err = capsys.readouterr().err
        assert "CSV file not found" in err
        assert "Kind: UPLOAD_FAILED" in err

    def test_serve_uses_overrides(self, fast_config, monkeypatch):
        served = []

        async def fake_serve(manager, settings, log_level):
            served.append((manager.driver.dry_run, settings.host, settings.port))

        monkeypatch.setattr(cli, "serve", fake_serve)

        assert cli.main(["--dry-run", "serve", "--host", "0.0.0.0", "--port", "4000"]) == 0
        assert served == [(True, "0.0.0.0", 4000)]
