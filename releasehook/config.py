"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from releasehook.utils.platform import get_config_dir


class WebhookConfig(BaseModel):
    secret: str = ""
    bind: str = "0.0.0.0"
    port: int = 3000
    path: str = "/webhook"
    base_url: str = "http://localhost:3000"


class RateLimitConfig(BaseModel):
    window_seconds: float = 60.0
    max_requests: int = 100


class MailerConfig(BaseModel):
    api_url: str = "http://localhost:8080/api/send"
    api_key: str = ""
    from_address: str = "noreply@releasehook.local"
    recipients: list[str] = Field(default_factory=lambda: ["team@releasehook.local"])
    timeout: float = 30.0


class GitHubConfig(BaseModel):
    api_url: str = "https://api.github.com"
    token: str = ""
    timeout: float = 30.0
    annotate_releases: bool = True


class WorkflowConfig(BaseModel):
    name: str
    inputs: dict[str, str] = Field(default_factory=dict)


class OrchestratorConfig(BaseModel):
    """Per-target overrides of the built-in workflow tables."""
    workflows: dict[str, list[WorkflowConfig]] = Field(default_factory=dict)
    prerelease_workflows: dict[str, list[WorkflowConfig]] = Field(default_factory=dict)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RELEASEHOOK_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    mailer: MailerConfig = Field(default_factory=MailerConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    log_level: str = "INFO"
    log_json: bool = False
    dry_run: bool = False


def validate_settings(settings: Settings) -> list[str]:
    """Return human-readable problems with the settings (empty when usable)."""
    problems: list[str] = []

    if not settings.webhook.secret:
        problems.append("webhook.secret is required")
    if settings.rate_limit.window_seconds <= 0:
        problems.append("rate_limit.window_seconds must be positive")
    if settings.rate_limit.max_requests < 1:
        problems.append("rate_limit.max_requests must be at least 1")

    # Outbound credentials are unused in dry-run mode
    if not settings.dry_run:
        if not settings.mailer.api_url:
            problems.append("mailer.api_url is required")
        if not settings.mailer.api_key:
            problems.append("mailer.api_key is required")
        if not settings.github.token:
            problems.append("github.token is required")

    return problems


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("RELEASEHOOK_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # YAML values arrive as init kwargs, which take precedence over env vars
    return Settings(**yaml_data)
