"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# Environment override for the credential-bearing webhook URL.
WEBHOOK_URL_ENV = "STAGEWATCH_WEBHOOK_URL"

STAGE_CHANGE_DETAIL_TYPE = "CodePipeline Stage Execution State Change"


class WebhookConfig(BaseModel):
    """Chat webhook delivery configuration."""

    url: SecretStr = SecretStr("")
    timeout_secs: float = 10.0
    strict_status: bool = False


class FilterConfig(BaseModel):
    """Which upstream systems and stage states are worth reporting."""

    sources: list[str] = [
        "aws.codebuild",
        "aws.codecommit",
        "aws.codedeploy",
        "aws.codepipeline",
    ]
    states: list[str] = ["STARTED", "SUCCEEDED", "FAILED"]
    # Empty means any detail type is reportable.
    detail_types: list[str] = []


class InboundConfig(BaseModel):
    """Defaults applied when an inbound trigger omits optional envelope keys."""

    default_source: str = "aws.codepipeline"
    default_detail_type: str = STAGE_CHANGE_DETAIL_TYPE


class StageDescriptor(BaseModel):
    """One named stage of a linear pipeline."""

    name: str
    category: str = ""
    provider: str = ""
    configuration: dict[str, str] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    """Ordered stage layout of the watched pipeline."""

    name: str = "devops-pro-pipes"
    stages: list[StageDescriptor] = [
        StageDescriptor(
            name="Source",
            category="Source",
            provider="CodeStarSourceConnection",
            configuration={
                "FullRepositoryId": "PhiBrandon/production-cu",
                "BranchName": "main",
            },
        ),
        StageDescriptor(
            name="Build",
            category="Build",
            provider="CodeBuild",
            configuration={"ProjectName": "devopsProBuilder"},
        ),
    ]


class ReceiverConfig(BaseModel):
    """HTTP intake server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    token: SecretStr = SecretStr("")


class HandlerConfig(BaseModel):
    """Function-style entry point behaviour."""

    raise_on_failure: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    webhook: WebhookConfig = WebhookConfig()
    filter: FilterConfig = FilterConfig()
    inbound: InboundConfig = InboundConfig()
    pipeline: PipelineConfig = PipelineConfig()
    receiver: ReceiverConfig = ReceiverConfig()
    handler: HandlerConfig = HandlerConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    The webhook URL from ``STAGEWATCH_WEBHOOK_URL`` wins over the file.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    env_url = os.environ.get(WEBHOOK_URL_ENV)
    if env_url:
        webhook = dict(data.get("webhook") or {})
        webhook["url"] = env_url
        data["webhook"] = webhook

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
