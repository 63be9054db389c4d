"""
Unit tests for configuration loading and validation
"""
import base64

import pytest

from pr_deploy_bot.config.settings import (
    DEFAULT_COMMENT_MESSAGE,
    DEFAULT_DEPLOYMENT_CONTEXT,
    ENV_MAPPING,
    Settings,
)
from pr_deploy_bot.utils.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove every recognised variable and run from an empty directory"""
    for env_var in ENV_MAPPING:
        # setenv first so values loaded from .env files are undone too
        monkeypatch.setenv(env_var, "")
        monkeypatch.delenv(env_var)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestDefaults:

    def test_documented_defaults(self):
        settings = Settings()

        assert settings.deployment_context == DEFAULT_DEPLOYMENT_CONTEXT == "pr-deployment/deployment"
        assert settings.comment_message == DEFAULT_COMMENT_MESSAGE == "Beep boop. Your code has been deployed!"
        assert settings.deployment_domain == ".now.sh"
        assert settings.now_api_url == "https://api.zeit.co/now"
        assert settings.github_api_url == "https://api.github.com"
        assert settings.log_level == "INFO"

    def test_urls_lose_trailing_slash(self):
        settings = Settings(github_api_url="https://ghe.example.com/api/v3/")
        assert settings.github_api_url == "https://ghe.example.com/api/v3"

    @pytest.mark.parametrize("kwargs", [
        {"timeout_seconds": 0},
        {"max_parallel_requests": 0},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"deployment_domain": ""},
        {"timeout_seconds": "soon"},
        {"max_parallel_requests": "many"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            Settings(**kwargs)


class TestOperationValidation:

    def test_cleanup_reports_every_missing_option(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings(repo_owner="acme").validate_for_cleanup()

        assert exc_info.value.missing == ["now_token", "github_username", "github_token", "repo_name"]
        assert exc_info.value.error_code == "CONFIG_ERROR"

    def test_comment_does_not_need_now_token(self, settings):
        settings.now_token = ""
        settings.validate_for_comment()

    def test_cleanup_does_not_need_pr_url(self, settings):
        settings.pr_url = ""
        settings.deployment_url = ""
        settings.validate_for_cleanup()

    def test_comment_reports_missing(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings().validate_for_comment()

        assert "pr_url" in exc_info.value.missing
        assert "deployment_url" in exc_info.value.missing


class TestHeaders:

    def test_now_headers(self, settings):
        assert settings.get_now_headers() == {"Authorization": "Bearer now-secret-token"}

    def test_github_headers(self, settings):
        headers = settings.get_github_headers()

        encoded = headers["Authorization"].split(" ", 1)[1]
        assert headers["Authorization"].startswith("Basic ")
        assert base64.b64decode(encoded).decode() == "deploy-bot:gh-secret-token"
        assert headers["X-GitHub-Media-Type"] == "github.v3"
        assert headers["Content-Type"] == "application/json; charset=utf-8"

    def test_pull_request_prefix(self, settings):
        assert settings.pull_request_url_prefix == "https://github.com/acme/web/pull/"
        assert settings.repository == "acme/web"


class TestFromEnv:

    def test_reads_environment(self, clean_env):
        clean_env.setenv("NOW_TOKEN", "t")
        clean_env.setenv("REPO_NAME", "web")
        clean_env.setenv("MAX_PARALLEL_REQUESTS", "2")
        clean_env.setenv("TIMEOUT_SECONDS", "12.5")

        settings = Settings.from_env()

        assert settings.now_token == "t"
        assert settings.repo_name == "web"
        assert settings.max_parallel_requests == 2
        assert settings.timeout_seconds == 12.5

    def test_overrides_win_and_none_falls_through(self, clean_env):
        clean_env.setenv("REPO_OWNER", "from-env")
        clean_env.setenv("REPO_NAME", "web")

        settings = Settings.from_env(repo_owner="from-cli", repo_name=None)

        assert settings.repo_owner == "from-cli"
        assert settings.repo_name == "web"

    def test_reads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / "deploy.env"
        env_file.write_text("GH_AUTH_USERNAME=file-user\nDEPLOYMENT_CONTEXT=ci/preview\n")

        settings = Settings.from_env(env_file=str(env_file))

        assert settings.github_username == "file-user"
        assert settings.deployment_context == "ci/preview"

    def test_unknown_override(self, clean_env):
        with pytest.raises(ConfigError):
            Settings.from_env(not_an_option="x")

    def test_reads_env_file_from_working_directory(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("REPO_NAME=from-dotenv\nGH_AUTH_TOKEN=file-token\n")

        settings = Settings.from_env()

        assert settings.repo_name == "from-dotenv"
        assert settings.github_token == "file-token"

    @pytest.mark.parametrize("env_var, value, config_key", [
        ("TIMEOUT_SECONDS", "soon", "timeout_seconds"),
        ("MAX_PARALLEL_REQUESTS", "2.5", "max_parallel_requests"),
    ])
    def test_non_numeric_value(self, clean_env, env_var, value, config_key):
        clean_env.setenv(env_var, value)

        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env()

        assert exc_info.value.details["config_key"] == config_key
