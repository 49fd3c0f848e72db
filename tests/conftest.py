"""Pytest fixtures for stepqa tests."""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
import pytest

from stepqa.commands import default_registry
from stepqa.config import QAConfig
from stepqa.core.aliases import AliasStore
from stepqa.core.context import RunContext
from stepqa.core.environment import Environment
from stepqa.errors import UnexpectedStatusError
from stepqa.fixtures import InMemoryFixtureLoader
from stepqa.http import Client, RequestRecord, Response
from stepqa.runner.queue import TaskQueue

BASE_URL = "http://api.test"


class MockClient:
    """Scripted HTTP client for testing.

    Responses are served in order; once the script runs out every request
    gets an empty 200. Status checking follows the real client.
    """

    def __init__(self, base_url: str = BASE_URL, fail_on_status_code: bool = True) -> None:
        self.base_url = base_url
        self.fail_on_status_code = fail_on_status_code
        self.history: list[RequestRecord] = []
        self._responses: list[tuple[int, Any]] = []
        self._connected = False

    def set_responses(self, responses: list[tuple[int, Any]]) -> None:
        self._responses = list(responses)

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        fail_on_status_code: bool | None = None,
        **kwargs: Any,
    ) -> Response:
        status, body = self._responses.pop(0) if self._responses else (200, None)
        response = Response(status=status, body=body, method=method.upper(), url=f"{self.base_url}{url}")
        self.history.append(
            RequestRecord(
                method=method.upper(),
                url=response.url,
                request_body=json,
                response_status=status,
                response_body=body,
                headers=dict(headers or {}),
                duration_ms=1.0,
            )
        )
        check = self.fail_on_status_code if fail_on_status_code is None else fail_on_status_code
        if check and not response.ok:
            raise UnexpectedStatusError(response)
        return response

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.request("POST", url, **kwargs)

    def last_request(self) -> RequestRecord | None:
        return self.history[-1] if self.history else None


class FakeUsersAPI:
    """In-memory users API served through httpx.MockTransport.

    Mirrors the endpoints the suites talk to: ``POST /auth/login``,
    ``POST /users/add`` (bearer token required) and ``GET /users/{id}``.
    """

    USERNAME = "emilys"
    PASSWORD = "emilyspass"
    TOKEN = "tok-emilys"

    def __init__(self, token_field: str = "accessToken") -> None:
        self.token_field = token_field
        self.users: dict[int, dict[str, Any]] = {
            1: {"id": 1, "firstName": "Emily", "lastName": "Johnson", "age": 28},
        }
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        payload = json.loads(request.content) if request.content else None

        if request.method == "POST" and path == "/auth/login":
            if payload == {"username": self.USERNAME, "password": self.PASSWORD}:
                return httpx.Response(200, json={"id": 1, "username": self.USERNAME, self.token_field: self.TOKEN})
            return httpx.Response(400, json={"message": "Invalid credentials"})

        if request.method == "POST" and path == "/users/add":
            if request.headers.get("authorization") != f"Bearer {self.TOKEN}":
                return httpx.Response(401, json={"message": "Unauthorized"})
            user = {"id": max(self.users) + 1, **(payload or {})}
            self.users[user["id"]] = user
            return httpx.Response(201, json=user)

        match = re.fullmatch(r"/users/(\w+)", path)
        if request.method == "GET" and match:
            key = match.group(1)
            if key.isdigit() and int(key) in self.users:
                return httpx.Response(200, json=self.users[int(key)])
            return httpx.Response(404, json={"message": f"User with id '{key}' not found"})

        return httpx.Response(404, json={"message": "Not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def mock_client() -> MockClient:
    """Create a scripted mock HTTP client."""
    return MockClient()


@pytest.fixture
def context(mock_client: MockClient) -> RunContext:
    """Create a fresh run context around the mock client."""
    return RunContext(
        env=Environment({"username": FakeUsersAPI.USERNAME, "password": FakeUsersAPI.PASSWORD}),
        aliases=AliasStore(),
        client=mock_client,
        fixtures=InMemoryFixtureLoader({"newUser": {"firstName": "Ada", "lastName": "Lovelace", "age": 36}}),
        commands=default_registry(),
    )


@pytest.fixture
def queue(context: RunContext) -> TaskQueue:
    """Create an empty queue bound to the context."""
    return TaskQueue(context, name="suite")


@pytest.fixture
def users_api() -> FakeUsersAPI:
    return FakeUsersAPI()


@pytest.fixture
def api_client(users_api: FakeUsersAPI) -> Client:
    """A real Client wired to the fake users API."""
    return Client(BASE_URL, transport=users_api.transport())


@pytest.fixture
def config() -> QAConfig:
    return QAConfig(
        base_url=BASE_URL,
        env={"username": FakeUsersAPI.USERNAME, "password": FakeUsersAPI.PASSWORD},
    )
