"""Tests for settings loading and validation."""

import pytest

from releasehook.config import Settings, load_settings, validate_settings


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("RELEASEHOOK_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("RELEASEHOOK_CONFIG", raising=False)


def complete_settings(**overrides) -> Settings:
    data = {
        "webhook": {"secret": "hook-secret"},
        "mailer": {"api_key": "mail-key"},
        "github": {"token": "gh-token"},
    }
    data.update(overrides)
    return Settings(**data)


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.webhook.port == 3000
        assert settings.webhook.path == "/webhook"
        assert settings.rate_limit.window_seconds == 60.0
        assert settings.rate_limit.max_requests == 100
        assert settings.github.api_url == "https://api.github.com"
        assert settings.github.annotate_releases is True
        assert settings.dry_run is False
        assert settings.orchestrator.workflows == {}

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RELEASEHOOK_WEBHOOK__SECRET", "from-env")
        monkeypatch.setenv("RELEASEHOOK_RATE_LIMIT__MAX_REQUESTS", "5")
        monkeypatch.setenv("RELEASEHOOK_DRY_RUN", "true")
        settings = Settings()
        assert settings.webhook.secret == "from-env"
        assert settings.rate_limit.max_requests == 5
        assert settings.dry_run is True


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "nope.yaml")
        assert settings.webhook.port == 3000

    def test_yaml_overlay(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "webhook:\n"
            "  secret: yaml-secret\n"
            "  port: 8088\n"
            "orchestrator:\n"
            "  workflows:\n"
            "    cloud:\n"
            "      - name: cloud-canary.yml\n"
            "        inputs:\n"
            "          environment: canary\n"
        )
        settings = load_settings(path)
        assert settings.webhook.secret == "yaml-secret"
        assert settings.webhook.port == 8088
        canary = settings.orchestrator.workflows["cloud"][0]
        assert canary.name == "cloud-canary.yml"
        assert canary.inputs == {"environment": "canary"}

    def test_config_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("log_level: DEBUG\n")
        monkeypatch.setenv("RELEASEHOOK_CONFIG", str(path))
        assert load_settings().log_level == "DEBUG"

    def test_default_config_dir(self, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("dry_run: true\n")
        assert load_settings().dry_run is True

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).log_level == "INFO"


class TestValidateSettings:
    def test_complete_settings_valid(self):
        assert validate_settings(complete_settings()) == []

    def test_missing_credentials(self):
        problems = validate_settings(Settings())
        assert "webhook.secret is required" in problems
        assert "mailer.api_key is required" in problems
        assert "github.token is required" in problems

    def test_dry_run_needs_only_secret(self):
        problems = validate_settings(Settings(dry_run=True))
        assert problems == ["webhook.secret is required"]

    def test_rate_limit_bounds(self):
        settings = complete_settings(rate_limit={"window_seconds": 0, "max_requests": 0})
        problems = validate_settings(settings)
        assert "rate_limit.window_seconds must be positive" in problems
        assert "rate_limit.max_requests must be at least 1" in problems
