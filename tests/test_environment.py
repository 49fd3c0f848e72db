"""Tests for run-scoped environment state."""

from __future__ import annotations

import pytest

from stepqa.config import QAConfig
from stepqa.core.context import RunContext
from stepqa.core.environment import MISSING, Environment
from stepqa.errors import MissingCredentialError, MissingEnvironmentValueError


class TestEnvironment:
    def test_unset_key_returns_sentinel(self) -> None:
        env = Environment()

        assert env.get("token") is MISSING
        assert not env.get("token")
        assert env.get("token", "fallback") == "fallback"

    def test_set_and_require(self) -> None:
        env = Environment()
        env.set("token", "abc")

        assert env.require("token") == "abc"
        assert env["token"] == "abc"
        assert "token" in env

    def test_require_missing_raises(self) -> None:
        env = Environment()

        with pytest.raises(MissingEnvironmentValueError) as exc_info:
            env.require("token")

        assert exc_info.value.key == "token"
        assert exc_info.value.error_code.value == "E303"

    def test_require_credential_missing_raises(self) -> None:
        env = Environment({"password": ""})

        with pytest.raises(MissingCredentialError):
            env.require_credential("password")
        with pytest.raises(MissingCredentialError):
            env.require_credential("username")

    def test_credential_error_is_environment_error(self) -> None:
        assert issubclass(MissingCredentialError, MissingEnvironmentValueError)

    def test_reset_restores_seed(self) -> None:
        env = Environment({"username": "emilys"})
        env.set("token", "abc")
        env.set("username", "other")

        env.reset()

        assert env.snapshot() == {"username": "emilys"}

    def test_seed_survives_reset(self) -> None:
        env = Environment()
        env.seed({"base_url": "http://api.test"})
        env.reset()

        assert env.get("base_url") == "http://api.test"

    def test_unset(self) -> None:
        env = Environment({"token": "abc"})
        env.unset("token")
        env.unset("never-set")

        assert env.get("token") is MISSING

    def test_from_config(self) -> None:
        config = QAConfig(base_url="http://api.test/", login_path="/login", env={"username": "emilys"})

        env = Environment.from_config(config)

        assert env.get("base_url") == "http://api.test"
        assert env.get("login_path") == "/login"
        assert env.get("username") == "emilys"


class TestAuthHeaders:
    def test_bearer_header_from_token(self) -> None:
        ctx = RunContext(env=Environment({"token": "abc"}))

        assert ctx.auth_headers() == {"Authorization": "Bearer abc"}

    def test_missing_token_raises(self) -> None:
        ctx = RunContext()

        with pytest.raises(MissingCredentialError):
            ctx.auth_headers()
