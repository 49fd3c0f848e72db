"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from stepqa.config import QAConfig, load_config, resolve_env_vars
from stepqa.core.models import FailFastScope
from stepqa.errors import ConfigValidationError


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for field_name in QAConfig.model_fields:
        monkeypatch.delenv(f"STEPQA_{field_name.upper()}", raising=False)


class TestQAConfig:
    def test_defaults(self) -> None:
        config = QAConfig()

        assert config.base_url == "http://localhost:8000"
        assert config.fail_fast is False
        assert config.fail_fast_scope == FailFastScope.SUITE
        assert config.fail_on_status_code is True
        assert config.login_path == "/auth/login"
        assert config.env == {}

    def test_base_url_validated(self) -> None:
        with pytest.raises(ValueError):
            QAConfig(base_url="ftp://example.com")

    def test_report_formats_from_string(self) -> None:
        assert QAConfig(report_formats="console, json").report_formats == ["console", "json"]

        with pytest.raises(ValueError):
            QAConfig(report_formats=["html"])


class TestResolveEnvVars:
    def test_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_USER", "emilys")

        assert resolve_env_vars({"user": "${API_USER}", "greeting": "hi ${API_USER}"}) == {
            "user": "emilys",
            "greeting": "hi emilys",
        }

    def test_default_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("API_PASS", raising=False)

        assert resolve_env_vars("${API_PASS:-secret}") == "secret"

    def test_unset_whole_value_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("API_PASS", raising=False)

        assert resolve_env_vars(["${API_PASS}", 3]) == [None, 3]


class TestLoadConfig:
    def test_loads_yaml_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PASS", "emilyspass")
        (tmp_path / "stepqa.yaml").write_text(
            "base_url: https://dummyjson.com\n"
            "fail_fast: true\n"
            "fail_fast_scope: run\n"
            "env:\n"
            "  username: emilys\n"
            "  password: ${API_PASS}\n",
            encoding="utf-8",
        )

        config = load_config()

        assert config.base_url == "https://dummyjson.com"
        assert config.fail_fast is True
        assert config.fail_fast_scope == FailFastScope.RUN
        assert config.env == {"username": "emilys", "password": "emilyspass"}

    def test_dotenv_feeds_references(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # registered with monkeypatch so the value load_dotenv sets is removed afterwards
        monkeypatch.setenv("STEPQA_TEST_TOKEN", "unset")
        monkeypatch.delenv("STEPQA_TEST_TOKEN")
        (tmp_path / ".env").write_text("STEPQA_TEST_TOKEN=from-dotenv\n", encoding="utf-8")
        (tmp_path / "stepqa.yaml").write_text("env:\n  token: ${STEPQA_TEST_TOKEN}\n", encoding="utf-8")

        config = load_config()

        assert config.env["token"] == "from-dotenv"

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "stepqa.yaml").write_text("base_url: http://file.test\n", encoding="utf-8")
        monkeypatch.setenv("STEPQA_BASE_URL", "http://env.test")

        assert load_config().base_url == "http://env.test"

    def test_environment_overrides_every_file_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "stepqa.yaml").write_text(
            "fail_on_status_code: true\n"
            "fail_fast_scope: suite\n"
            "fixtures_dir: fixtures\n"
            "login_path: /auth/login\n"
            "report_dir: reports\n"
            "report_formats: [console]\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("STEPQA_FAIL_ON_STATUS_CODE", "false")
        monkeypatch.setenv("STEPQA_FAIL_FAST_SCOPE", "run")
        monkeypatch.setenv("STEPQA_FIXTURES_DIR", "data")
        monkeypatch.setenv("STEPQA_LOGIN_PATH", "/api/login")
        monkeypatch.setenv("STEPQA_REPORT_DIR", "out")
        monkeypatch.setenv("STEPQA_REPORT_FORMATS", "console,json")

        config = load_config()

        assert config.fail_on_status_code is False
        assert config.fail_fast_scope == FailFastScope.RUN
        assert config.fixtures_dir == "data"
        assert config.login_path == "/api/login"
        assert config.report_dir == "out"
        assert config.report_formats == ["console", "json"]

    def test_file_value_kept_without_environment_variable(self, tmp_path: Path) -> None:
        (tmp_path / "stepqa.yaml").write_text("fail_on_status_code: false\n", encoding="utf-8")

        assert load_config().fail_on_status_code is False

    def test_invalid_environment_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STEPQA_TIMEOUT", "-3")

        with pytest.raises(ConfigValidationError, match="Invalid configuration"):
            load_config()

    def test_keyword_overrides_beat_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STEPQA_LOGIN_PATH", "/api/login")

        assert load_config(login_path="/v2/login").login_path == "/v2/login"

    def test_keyword_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "stepqa.yaml").write_text("timeout: 5\n", encoding="utf-8")

        assert load_config(timeout=9.0).timeout == 9.0

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "stepqa.yaml"
        path.write_text("base_url: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "stepqa.yaml"
        path.write_text("timeout: -1\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)
        assert exc_info.value.error_code.value == "E202"

    def test_no_file_uses_defaults(self) -> None:
        assert load_config().base_url == "http://localhost:8000"
