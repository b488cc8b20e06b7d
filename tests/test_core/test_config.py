"""Tests for stagewatch/core/config.py — YAML loading, defaults, SecretStr, env override."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from stagewatch.core.config import (
    WEBHOOK_URL_ENV,
    FilterConfig,
    LoggingConfig,
    PipelineConfig,
    Settings,
    WebhookConfig,
    get_settings,
    load_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset the global settings cache and env override before each test."""
    monkeypatch.delenv(WEBHOOK_URL_ENV, raising=False)
    reset_settings()


class TestDefaults:
    """Settings should have sensible defaults when no YAML is provided."""

    def test_default_webhook_config(self) -> None:
        cfg = WebhookConfig()
        assert cfg.url.get_secret_value() == ""
        assert cfg.timeout_secs == 10.0
        assert cfg.strict_status is False

    def test_default_filter_config(self) -> None:
        cfg = FilterConfig()
        assert set(cfg.sources) == {
            "aws.codebuild",
            "aws.codecommit",
            "aws.codedeploy",
            "aws.codepipeline",
        }
        assert cfg.states == ["STARTED", "SUCCEEDED", "FAILED"]
        assert cfg.detail_types == []

    def test_default_pipeline_is_source_then_build(self) -> None:
        cfg = PipelineConfig()
        assert cfg.name == "devops-pro-pipes"
        assert [s.name for s in cfg.stages] == ["Source", "Build"]
        assert cfg.stages[0].configuration["BranchName"] == "main"
        assert cfg.stages[1].provider == "CodeBuild"

    def test_default_logging_config(self) -> None:
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.format == "json"

    def test_default_settings(self) -> None:
        s = Settings()
        assert s.receiver.port == 8080
        assert s.handler.raise_on_failure is False
        assert s.inbound.default_source == "aws.codepipeline"


class TestYamlLoading:
    """Settings should load correctly from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "webhook": {
                "url": "https://chat.example.com/api/webhooks/1/abc",
                "timeout_secs": 3,
                "strict_status": True,
            },
            "filter": {"states": ["FAILED"]},
            "pipeline": {
                "name": "three-stage",
                "stages": [
                    {"name": "Source"},
                    {"name": "Build"},
                    {"name": "Deploy", "provider": "CodeDeploy"},
                ],
            },
            "logging": {"level": "DEBUG", "format": "console"},
        }
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)

        assert settings.webhook.url.get_secret_value().endswith("/1/abc")
        assert settings.webhook.timeout_secs == 3
        assert settings.webhook.strict_status is True
        assert settings.filter.states == ["FAILED"]
        assert [s.name for s in settings.pipeline.stages] == ["Source", "Build", "Deploy"]
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "console"

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.pipeline.name == "devops-pro-pipes"

    def test_load_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        settings = load_settings(config_file)
        assert settings.webhook.timeout_secs == 10.0

    def test_partial_yaml_merges_with_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"receiver": {"port": 9000}}))

        settings = load_settings(config_file)
        assert settings.receiver.port == 9000
        assert settings.receiver.host == "0.0.0.0"
        assert settings.filter.states == ["STARTED", "SUCCEEDED", "FAILED"]

    def test_get_settings_caches(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"receiver": {"port": 9001}}))
        loaded = load_settings(config_file)
        assert get_settings() is loaded


class TestWebhookUrlEnv:
    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            yaml.dump({"webhook": {"url": "https://file.example", "timeout_secs": 4}})
        )
        monkeypatch.setenv(WEBHOOK_URL_ENV, "https://env.example/hook")

        settings = load_settings(config_file)
        assert settings.webhook.url.get_secret_value() == "https://env.example/hook"
        assert settings.webhook.timeout_secs == 4

    def test_env_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(WEBHOOK_URL_ENV, "https://env.example/hook")
        settings = load_settings(tmp_path / "missing.yaml")
        assert settings.webhook.url.get_secret_value() == "https://env.example/hook"


class TestSecretStr:
    """The credential-bearing webhook URL must not leak through repr."""

    def test_secret_str_repr_does_not_leak(self) -> None:
        cfg = WebhookConfig(url="https://chat.example.com/api/webhooks/1/token")  # type: ignore[arg-type]
        repr_str = repr(cfg)
        assert "token" not in repr_str
        assert "**********" in repr_str

    def test_secret_str_get_value(self) -> None:
        cfg = WebhookConfig(url="https://hook")  # type: ignore[arg-type]
        assert cfg.url.get_secret_value() == "https://hook"
