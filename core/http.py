"""Bounded, fixed-delay retry wrapper around ``httpx.AsyncClient`` requests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import httpx
import structlog

from config.settings import settings
from core.errors import HttpStatusError, ResponseDecodeError, RetriesExceededError

logger = structlog.get_logger("core.http")

RetryPredicate = Callable[[Exception], bool]


def always_retry(exc: Exception) -> bool:
    return True


def no_retry_on_status(*status_codes: int) -> RetryPredicate:
    """Build a predicate that gives up immediately on the given HTTP statuses."""

    def _should_retry(exc: Exception) -> bool:
        if isinstance(exc, HttpStatusError):
            return exc.status_code not in status_codes
        return True

    return _should_retry


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    json_body: Any = None,
    content: Optional[str | bytes] = None,
    headers: Optional[dict[str, str]] = None,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
    should_retry: RetryPredicate = always_retry,
) -> httpx.Response:
    """Send a request, retrying failed attempts after a fixed delay.

    Parameters
    ----------
    client:
        Open ``httpx.AsyncClient``.
    method, url:
        Request line.  ``url`` may be relative to the client's base URL.
    params, json_body, content, headers:
        Forwarded to ``client.request``.  Pass ``content`` when the exact
        body bytes matter (e.g. they are covered by an HMAC signature).
    max_retries:
        Total number of attempts.  Defaults to ``settings.HTTP_MAX_RETRIES``.
    retry_delay:
        Seconds to wait between attempts.  Defaults to
        ``settings.HTTP_RETRY_DELAY_SECONDS``.
    should_retry:
        Called with the failure of each attempt; returning ``False`` raises
        that failure immediately.

    Returns
    -------
    httpx.Response
        The first 2xx response.

    Raises
    ------
    HttpStatusError
        Non-2xx response rejected by ``should_retry``.
    RetriesExceededError
        Every attempt failed.
    """
    attempts = max_retries if max_retries is not None else settings.HTTP_MAX_RETRIES
    delay = retry_delay if retry_delay is not None else settings.HTTP_RETRY_DELAY_SECONDS
    last_exc: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json_body,
                content=content,
                headers=headers,
            )
            if response.is_success:
                return response
            raise HttpStatusError(
                method,
                str(response.request.url),
                response.status_code,
                response.text,
            )
        except (httpx.TransportError, HttpStatusError) as exc:
            if not should_retry(exc):
                raise
            last_exc = exc
            if attempt < attempts:
                logger.warning(
                    "http.retrying",
                    method=method,
                    url=url,
                    attempt=attempt,
                    delay=delay,
                    error=str(exc)[:200],
                )
                await asyncio.sleep(delay)

    logger.error("http.retries_exceeded", method=method, url=url, attempts=attempts)
    raise RetriesExceededError(method, url, attempts) from last_exc


async def send_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> Any:
    """:func:`request_with_retries`, returning the decoded JSON body.

    Returns ``None`` for an empty body.

    Raises
    ------
    ResponseDecodeError
        2xx response whose body is not valid JSON.
    """
    response = await request_with_retries(client, method, url, **kwargs)
    return decode_json(response)


def decode_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise ResponseDecodeError(str(response.request.url), response.text) from exc


class ApiClient:
    """Lifecycle shared by the CLOB, relayer and gamma clients.

    Parameters
    ----------
    base_url:
        Service root; request paths are relative to it.
    timeout:
        Per-request timeout in seconds.  Defaults to
        ``settings.HTTP_TIMEOUT_SECONDS``.
    transport:
        Optional ``httpx`` transport (e.g. ``httpx.MockTransport`` in tests).
    """

    _name = "api_client"

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ── Lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        """Create the underlying HTTP client.  Idempotent."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
            logger.info(f"{self._name}.started", base_url=self._base_url)

    async def stop(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info(f"{self._name}.stopped")

    async def __aenter__(self) -> ApiClient:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ── Requests ─────────────────────────────────────────────────

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} not started — call start() first")
        return self._client

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        return await send_with_retries(self.http, method, path, **kwargs)
