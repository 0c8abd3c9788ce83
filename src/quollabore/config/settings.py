from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from quollabore.errors import ConfigurationError

DEFAULT_PORTAL_URL = "https://report-api.quollabore.com/"
DEFAULT_FAILURE_LOG_DIR = Path("test-results") / "quollabore-logs"
DEFAULT_LOG_CHUNK_SIZE = 16_000


class ReporterSettings(BaseSettings):
    # Ingestion endpoint
    portal_url: str = Field(DEFAULT_PORTAL_URL, validation_alias="Q_PORTAL_URL")
    token: str = Field("", validation_alias="Q_INGEST_TOKEN")
    project_id: str = Field("", validation_alias="Q_PROJECT_ID")
    environment: str = Field("prod", validation_alias="Q_ENV")
    provider: str = Field("playwright", validation_alias="Q_PROVIDER")
    timeout_s: float = Field(10.0, gt=0, validation_alias="Q_TIMEOUT_S")

    # Sharding
    parallel_total: int = Field(1, ge=1, validation_alias="PARALLEL_TOTAL")
    shard_index: int = Field(0, ge=0, validation_alias=AliasChoices("Q_SHARD_INDEX", "PW_SHARD"))

    # CI / git provenance (GitHub Actions names are fallbacks)
    ci_job_id: str = Field("", validation_alias=AliasChoices("CI_JOB_ID", "GITHUB_RUN_ID"))
    git_branch: str = Field("", validation_alias=AliasChoices("GIT_BRANCH", "GITHUB_REF_NAME"))
    git_commit_sha: str = Field("", validation_alias=AliasChoices("GIT_COMMIT", "GITHUB_SHA"))
    git_commit_msg: str = Field(
        "", validation_alias=AliasChoices("GIT_COMMIT_MSG", "GITHUB_EVENT_HEAD_COMMIT_MESSAGE")
    )
    git_actor: str = Field("", validation_alias=AliasChoices("GIT_ACTOR", "GITHUB_ACTOR"))

    # Failure diagnostics
    log_chunk_size: int = Field(DEFAULT_LOG_CHUNK_SIZE, gt=0, validation_alias="Q_LOG_CHUNK_SIZE")
    persist_failure_logs: bool = Field(True, validation_alias="Q_PERSIST_FAILURE_LOGS")
    failure_log_dir: Path = Field(DEFAULT_FAILURE_LOG_DIR, validation_alias="Q_FAILURE_LOG_DIR")

    # Only the declared environment names are read; bare field names are not.
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    def masked_token(self) -> str:
        if len(self.token) <= 8:
            return "*" * len(self.token)
        return f"{self.token[:4]}...{self.token[-4:]}"


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<settings>"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


def _primary_alias(name: str) -> str:
    # Init values keyed by the first alias beat any environment fallback.
    alias = ReporterSettings.model_fields[name].validation_alias
    if isinstance(alias, AliasChoices):
        return str(alias.choices[0])
    return alias if isinstance(alias, str) else name


def load_settings(**overrides: Any) -> ReporterSettings:
    """Resolve reporter settings.

    Each field is taken from the explicit keyword argument when one is given
    (``None`` means "not given"), otherwise from its environment variable,
    otherwise from the default. Missing credentials raise
    :class:`ConfigurationError` before any request is attempted.
    """

    unknown = sorted(set(overrides) - set(ReporterSettings.model_fields))
    if unknown:
        raise ConfigurationError(f"Unknown reporter option(s): {', '.join(unknown)}")

    explicit = {_primary_alias(key): value for key, value in overrides.items() if value is not None}
    try:
        settings = ReporterSettings(**explicit)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid reporter configuration: {_describe(exc)}") from exc

    if not settings.token:
        raise ConfigurationError("Q_INGEST_TOKEN is not set")
    if not settings.project_id:
        raise ConfigurationError("Q_PROJECT_ID is not set")
    return settings


__all__ = [
    "DEFAULT_FAILURE_LOG_DIR",
    "DEFAULT_LOG_CHUNK_SIZE",
    "DEFAULT_PORTAL_URL",
    "ReporterSettings",
    "load_settings",
]
