"""HTTP clients with request history and status-code checking."""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

from stepqa.errors import TransportError, TransportTimeoutError, UnexpectedStatusError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """Immutable response representation handed to steps and aliases.

    Attributes:
        status: HTTP status code.
        headers: Response headers (lower-cased names).
        body: Parsed JSON body, raw text when the body is not JSON, or None.
        method: Request method.
        url: Full request URL.
        elapsed_ms: Round-trip time in milliseconds.
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    method: str = "GET"
    url: str = ""
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    @property
    def status_code(self) -> int:
        return self.status

    def json(self) -> Any:
        return self.body

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "headers": dict(self.headers), "body": self.body}

    @classmethod
    def from_httpx(cls, response: httpx.Response, elapsed_ms: float = 0.0) -> Response:
        return cls(
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=_parse_body(response),
            method=response.request.method,
            url=str(response.request.url),
            elapsed_ms=elapsed_ms,
        )


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass
class RequestRecord:
    """Record of an HTTP request/response."""

    method: str
    url: str
    request_body: Any | None
    response_status: int
    response_body: Any | None
    headers: dict[str, str]
    duration_ms: float
    timestamp: datetime = field(default_factory=datetime.now)
    error: str | None = None

    def request_summary(self) -> dict[str, Any]:
        return {"method": self.method, "url": self.url, "body": self.request_body}

    def response_summary(self) -> dict[str, Any] | None:
        if self.error:
            return None
        return {"status": self.response_status, "body": self.response_body}


class _ClientBase:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        default_headers: dict[str, str] | None = None,
        fail_on_status_code: bool = True,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = default_headers or {}
        self.fail_on_status_code = fail_on_status_code
        self.history: list[RequestRecord] = []
        self._transport = transport
        self._auth_token: str | None = None

    def set_auth_token(self, token: str, scheme: str = "Bearer") -> None:
        """Set authentication token for subsequent requests."""
        self._auth_token = f"{scheme} {token}"

    def clear_auth(self) -> None:
        self._auth_token = None

    def _build_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}{url}" if url.startswith("/") else f"{self.base_url}/{url}"

    def _prepare_headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        merged = dict(headers or {})
        if self._auth_token and not any(k.lower() == "authorization" for k in merged):
            merged["Authorization"] = self._auth_token
        return merged

    def _record_response(
        self, method: str, url: str, body: Any, headers: dict[str, str], response: Response
    ) -> None:
        self.history.append(
            RequestRecord(
                method=method,
                url=url,
                request_body=copy.deepcopy(body),
                response_status=response.status,
                response_body=copy.deepcopy(response.body),
                headers=dict(headers),
                duration_ms=response.elapsed_ms,
            )
        )

    def _record_error(
        self, method: str, url: str, body: Any, headers: dict[str, str], error: Exception
    ) -> None:
        self.history.append(
            RequestRecord(
                method=method,
                url=url,
                request_body=body,
                response_status=0,
                response_body=None,
                headers=dict(headers),
                duration_ms=0.0,
                error=str(error),
            )
        )

    def _check_status(self, response: Response, fail_on_status_code: bool | None) -> Response:
        check = self.fail_on_status_code if fail_on_status_code is None else fail_on_status_code
        if check and not response.ok:
            logger.debug(f"{response.method} {response.url} -> {response.status} (rejected)")
            raise UnexpectedStatusError(response)
        return response

    def _translate(self, error: httpx.RequestError, method: str, url: str) -> TransportError:
        if isinstance(error, httpx.TimeoutException):
            return TransportTimeoutError(
                f"{method} {url} timed out after {self.timeout}s", method=method, url=url, cause=error
            )
        return TransportError(f"{method} {url} failed: {error}", method=method, url=url, cause=error)

    def get_history(self) -> list[RequestRecord]:
        return self.history.copy()

    def clear_history(self) -> None:
        self.history.clear()

    def last_request(self) -> RequestRecord | None:
        return self.history[-1] if self.history else None


class Client(_ClientBase):
    """Synchronous HTTP client for steps.

    Every call settles exactly once: it returns a Response, or raises
    TransportError (no response at all) or UnexpectedStatusError (non-2xx/3xx
    while ``fail_on_status_code`` is on).

    Example:
        >>> with Client("https://dummyjson.com") as client:
        ...     response = client.get("/users/1")
        ...     response.status
        200
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._client: httpx.Client | None = None

    def connect(self) -> None:
        """Initialize the HTTP client."""
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self.default_headers,
            transport=self._transport,
        )
        logger.info(f"HTTP client connected to {self.base_url}")

    def disconnect(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> Client:
        self.connect()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.disconnect()

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        fail_on_status_code: bool | None = None,
        **kwargs: Any,
    ) -> Response:
        """Send one request and return its Response."""
        if not self._client:
            self.connect()

        method = method.upper()
        headers = self._prepare_headers(headers)
        full_url = self._build_url(url)
        request_body = json if json is not None else kwargs.get("data") or kwargs.get("content")

        try:
            start_time = time.perf_counter()
            raw = self._client.request(method, full_url, headers=headers, json=json, **kwargs)
            duration_ms = (time.perf_counter() - start_time) * 1000
        except httpx.RequestError as e:
            logger.error(f"Request error: {method} {full_url}: {e}")
            self._record_error(method, full_url, request_body, headers, e)
            raise self._translate(e, method, full_url) from e

        response = Response.from_httpx(raw, duration_ms)
        self._record_response(method, full_url, request_body, headers, response)
        logger.debug(f"{method} {full_url} -> {response.status} ({duration_ms:.1f}ms)")
        return self._check_status(response, fail_on_status_code)

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Response:
        return self.request("DELETE", url, **kwargs)


class AsyncClient(_ClientBase):
    """Async counterpart of Client for ``async def`` step actions."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self.default_headers,
            transport=self._transport,
        )
        logger.info(f"Async HTTP client connected to {self.base_url}")

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AsyncClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect()

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        fail_on_status_code: bool | None = None,
        **kwargs: Any,
    ) -> Response:
        if not self._client:
            await self.connect()

        method = method.upper()
        headers = self._prepare_headers(headers)
        full_url = self._build_url(url)
        request_body = json if json is not None else kwargs.get("data") or kwargs.get("content")

        try:
            start_time = time.perf_counter()
            raw = await self._client.request(method, full_url, headers=headers, json=json, **kwargs)
            duration_ms = (time.perf_counter() - start_time) * 1000
        except httpx.RequestError as e:
            logger.error(f"Request error: {method} {full_url}: {e}")
            self._record_error(method, full_url, request_body, headers, e)
            raise self._translate(e, method, full_url) from e

        response = Response.from_httpx(raw, duration_ms)
        self._record_response(method, full_url, request_body, headers, response)
        return self._check_status(response, fail_on_status_code)

    async def get(self, url: str, **kwargs: Any) -> Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        return await self.request("DELETE", url, **kwargs)
