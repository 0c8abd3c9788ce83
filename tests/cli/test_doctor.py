from typer.testing import CliRunner

from quollabore import __version__
from quollabore.cli.main import app

runner = CliRunner()


def test_doctor_reports_configuration_error():
    result = runner.invoke(app, ["doctor", "--no-network"])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
    assert "Q_INGEST_TOKEN" in result.output


def test_doctor_prints_settings_with_masked_token(monkeypatch):
    monkeypatch.setenv("Q_INGEST_TOKEN", "abcd-very-secret-wxyz")
    monkeypatch.setenv("Q_PROJECT_ID", "proj-7")
    monkeypatch.setenv("Q_ENV", "staging")

    result = runner.invoke(app, ["doctor", "--no-network"])

    assert result.exit_code == 0
    assert "proj-7" in result.output
    assert "staging" in result.output
    assert "abcd...wxyz" in result.output
    assert "very-secret" not in result.output


def test_doctor_checks_host(monkeypatch):
    from quollabore.cli import main as cli_main

    monkeypatch.setenv("Q_INGEST_TOKEN", "t")
    monkeypatch.setenv("Q_PROJECT_ID", "p")
    monkeypatch.setattr(cli_main, "_check_host", lambda url: False)

    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 0
    assert "unreachable" in result.output


def test_version_command():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
