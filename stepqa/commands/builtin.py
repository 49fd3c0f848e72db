"""Built-in commands: ``login`` and ``request``."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from stepqa.assertions import expect_status
from stepqa.core.models import Step
from stepqa.core.refs import Lazy
from stepqa.errors import AssertionFailed

if TYPE_CHECKING:
    from stepqa.commands.registry import CommandRegistry
    from stepqa.core.context import RunContext

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_PATH = "/auth/login"
TOKEN_FIELDS = ("token", "accessToken")


async def _send(ctx: RunContext, method: str, url: str, **kwargs: Any) -> Any:
    response = ctx.request(method, url, **kwargs)
    if inspect.isawaitable(response):
        response = await response
    return response


async def login_action(
    client: Any,
    ctx: RunContext,
    path: str,
    username_key: str = "username",
    password_key: str = "password",
    token_fields: Sequence[str] = TOKEN_FIELDS,
    token_key: str = "token",
    expected_status: int = 200,
) -> Any:
    """POST credentials from the environment and store the returned token.

    The token is written to the environment inside this step, so every step
    that runs afterwards (in this suite or a later one) sees it.
    """
    username = ctx.env.require_credential(username_key)
    password = ctx.env.require_credential(password_key)

    response = await _send(
        ctx,
        "POST",
        path,
        json={"username": username, "password": password},
        fail_on_status_code=False,
    )
    expect_status(response, expected_status)

    body = response.body if isinstance(response.body, dict) else {}
    token = next((body[f] for f in token_fields if body.get(f)), None)
    if not token:
        raise AssertionFailed(
            f"Login response carries no token (looked for {', '.join(token_fields)})",
            expected=list(token_fields),
            actual=sorted(body),
            path="body",
        )

    ctx.env.set(token_key, token)
    logger.info(f"Logged in as {username}")
    return response


async def request_action(
    client: Any,
    ctx: RunContext,
    method: str,
    url: str,
    json: Any = None,
    headers: dict[str, str] | None = None,
    auth: bool = False,
    fail_on_status_code: bool | None = None,
    expected_status: int | list[int] | None = None,
) -> Any:
    """One HTTP call, optionally checking its status code."""
    kwargs: dict[str, Any] = {"headers": headers, "auth": auth}
    if json is not None:
        kwargs["json"] = json
    if expected_status is not None and fail_on_status_code is None:
        fail_on_status_code = False
    response = await _send(ctx, method, url, fail_on_status_code=fail_on_status_code, **kwargs)
    if expected_status is not None:
        expect_status(response, expected_status)
    return response


def _configured_login_path(ctx: RunContext) -> str:
    return ctx.env.get("login_path", None) or DEFAULT_LOGIN_PATH


def login(
    commands: CommandRegistry,
    *,
    path: str | None = None,
    username_key: str = "username",
    password_key: str = "password",
    token_fields: Sequence[str] = TOKEN_FIELDS,
    token_key: str = "token",
    expected_status: int = 200,
    alias: str = "login",
) -> Step:
    """Log in with environment credentials and store the token as ``token``."""
    return Step(
        name="login",
        action=login_action,
        alias=alias,
        description=f"POST credentials and store {token_key}",
        args={
            "path": path if path is not None else Lazy(_configured_login_path),
            "username_key": username_key,
            "password_key": password_key,
            "token_fields": tuple(token_fields),
            "token_key": token_key,
            "expected_status": expected_status,
        },
    )


def request(
    commands: CommandRegistry,
    method: str,
    url: Any,
    *,
    alias: str | None = None,
    name: str | None = None,
    json: Any = None,
    fixture: str | None = None,
    headers: dict[str, str] | None = None,
    auth: bool = False,
    fail_on_status_code: bool | None = None,
    expected_status: int | list[int] | None = None,
    expect_failure: bool = False,
) -> Step:
    """A single HTTP request step.

    ``url``, ``json`` and ``headers`` may hold deferred tokens. With
    ``fixture`` the body is the named fixture, loaded when the step runs.
    """
    if fixture is not None and json is not None:
        raise ValueError("Pass either json or fixture, not both")
    body = Lazy(lambda ctx: ctx.fixture(fixture)) if fixture is not None else json
    return Step(
        name=name or f"{method.upper()} {url if isinstance(url, str) else '<deferred url>'}",
        action=request_action,
        alias=alias,
        expect_failure=expect_failure,
        args={
            "method": method.upper(),
            "url": url,
            "json": body,
            "headers": headers,
            "auth": auth,
            "fail_on_status_code": fail_on_status_code,
            "expected_status": expected_status,
        },
    )


def register_builtins(registry: CommandRegistry) -> CommandRegistry:
    registry.register("login", login, replace=True)
    registry.register("request", request, replace=True)
    return registry
