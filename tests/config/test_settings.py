from pathlib import Path

import pytest

from quollabore.config import load_settings
from quollabore.config.settings import DEFAULT_PORTAL_URL
from quollabore.errors import ConfigurationError


def test_defaults_when_only_credentials_are_given():
    s = load_settings(token="abc", project_id="p1")

    assert s.portal_url == DEFAULT_PORTAL_URL
    assert s.environment == "prod"
    assert s.parallel_total == 1
    assert s.shard_index == 0
    assert s.log_chunk_size == 16_000
    assert s.persist_failure_logs is True
    assert s.failure_log_dir == Path("test-results") / "quollabore-logs"


def test_environment_fills_missing_values(monkeypatch):
    monkeypatch.setenv("Q_INGEST_TOKEN", "env-token")
    monkeypatch.setenv("Q_PROJECT_ID", "env-project")
    monkeypatch.setenv("Q_ENV", "staging")
    monkeypatch.setenv("PARALLEL_TOTAL", "4")
    monkeypatch.setenv("PW_SHARD", "2")

    s = load_settings()

    assert s.token == "env-token"
    assert s.project_id == "env-project"
    assert s.environment == "staging"
    assert s.parallel_total == 4
    assert s.shard_index == 2


def test_explicit_values_win_over_environment(monkeypatch):
    monkeypatch.setenv("Q_INGEST_TOKEN", "env-token")
    monkeypatch.setenv("Q_PROJECT_ID", "env-project")
    monkeypatch.setenv("Q_ENV", "staging")

    s = load_settings(token="explicit", environment="qa", project_id=None)

    assert s.token == "explicit"
    assert s.environment == "qa"
    # None means "not given", so the environment still applies
    assert s.project_id == "env-project"


def test_git_provenance_falls_back_to_github_variables(monkeypatch):
    monkeypatch.setenv("GITHUB_REF_NAME", "main")
    monkeypatch.setenv("GITHUB_SHA", "deadbeef")
    monkeypatch.setenv("GITHUB_ACTOR", "octocat")
    monkeypatch.setenv("GITHUB_RUN_ID", "991")
    monkeypatch.setenv("GIT_BRANCH", "feature/x")

    s = load_settings(token="t", project_id="p")

    assert s.git_branch == "feature/x"
    assert s.git_commit_sha == "deadbeef"
    assert s.git_actor == "octocat"
    assert s.ci_job_id == "991"


@pytest.mark.parametrize(
    "overrides, missing",
    [
        ({"project_id": "p"}, "Q_INGEST_TOKEN"),
        ({"token": "t"}, "Q_PROJECT_ID"),
        ({"token": "", "project_id": "p"}, "Q_INGEST_TOKEN"),
    ],
)
def test_missing_credentials_are_rejected(overrides, missing):
    with pytest.raises(ConfigurationError, match=missing):
        load_settings(**overrides)


def test_invalid_values_raise_configuration_error(monkeypatch):
    monkeypatch.setenv("PARALLEL_TOTAL", "many")

    with pytest.raises(ConfigurationError, match="Invalid reporter configuration"):
        load_settings(token="t", project_id="p")


def test_explicit_value_overrides_an_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("PARALLEL_TOTAL", "abc")
    monkeypatch.setenv("PW_SHARD", "x")

    s = load_settings(token="t", project_id="p", parallel_total=4, shard_index=1)

    assert s.parallel_total == 4
    assert s.shard_index == 1


def test_explicit_value_beats_fallback_environment_name(monkeypatch):
    monkeypatch.setenv("GITHUB_REF_NAME", "main")

    s = load_settings(token="t", project_id="p", git_branch="release")

    assert s.git_branch == "release"


def test_generic_variable_names_are_not_read(monkeypatch):
    monkeypatch.setenv("TOKEN", "unrelated-secret")
    monkeypatch.setenv("PROJECT_ID", "other-project")
    monkeypatch.setenv("ENVIRONMENT", "ci-runner")
    monkeypatch.setenv("PROVIDER", "jest")
    monkeypatch.setenv("PORTAL_URL", "https://elsewhere.test/")

    s = load_settings(token="t", project_id="p")

    assert s.environment == "prod"
    assert s.provider == "playwright"
    assert s.portal_url == DEFAULT_PORTAL_URL


def test_generic_token_does_not_satisfy_credentials(monkeypatch):
    monkeypatch.setenv("TOKEN", "unrelated-secret")
    monkeypatch.setenv("PROJECT_ID", "other-project")

    with pytest.raises(ConfigurationError, match="Q_INGEST_TOKEN"):
        load_settings()


def test_non_positive_chunk_size_is_rejected():
    with pytest.raises(ConfigurationError):
        load_settings(token="t", project_id="p", log_chunk_size=0)


def test_unknown_option_is_rejected():
    with pytest.raises(ConfigurationError, match="portalUrl"):
        load_settings(token="t", project_id="p", portalUrl="https://x")


def test_masked_token_hides_the_middle():
    s = load_settings(token="abcd-1234-efgh", project_id="p")
    assert s.masked_token() == "abcd...efgh"
    assert "1234" not in s.masked_token()
