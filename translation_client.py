"""
translation_client.py
──────────────────────────────────────────────────────────
Single-line client for a LibreTranslate-compatible ``/translate`` endpoint.

One call to ``TranslationClient.translate`` is one best-effort POST: no retry,
no cache. Failures come back as ``TranslationFailure`` subclasses.
"""

from __future__ import annotations

import json
import logging

import httpx

from api_types import (
    Format,
    Query,
    ResponseShapeError,
    Translation,
    TranslationError,
    decode_translation_result,
)

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────
#  HTTP Configuration
# ─────────────────────────────────────────────────────────
DEFAULT_ENDPOINT = "http://localhost:5000/translate"
API_TIMEOUT = 60.0
MAX_KEEPALIVE_CONNECTIONS = 20
MAX_CONNECTIONS = 100


def pool_limits(concurrency: int) -> httpx.Limits:
    """Pool large enough that a full chunk never waits for a free connection"""
    return httpx.Limits(
        max_keepalive_connections=min(MAX_KEEPALIVE_CONNECTIONS, concurrency),
        max_connections=max(MAX_CONNECTIONS, concurrency),
    )


# ─────────────────────────────────────────────────────────
#  Errors
# ─────────────────────────────────────────────────────────
class TranslationFailure(Exception):
    """Base class for every failure to translate a line"""


class TransportError(TranslationFailure):
    """Talking to the endpoint failed: connection, timeout, HTTP status or undecodable body"""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class MalformedResponseError(TransportError):
    """The body was JSON but neither a translation nor an error"""


class RemoteError(TranslationFailure):
    """The service answered with an explicit ``error`` for the line"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ─────────────────────────────────────────────────────────
#  Client
# ─────────────────────────────────────────────────────────
class TranslationClient:
    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        api_key: str | None = None,
        *,
        alternatives: int = 0,
        fmt: Format | None = None,
        timeout: float = API_TIMEOUT,
        max_connections: int = MAX_CONNECTIONS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.alternatives = alternatives
        self.fmt = fmt
        self.timeout = timeout
        self.max_connections = max_connections
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TranslationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client with connection pooling"""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=pool_limits(self.max_connections),
                headers={"Accept-Encoding": "gzip, deflate"},
                transport=self._transport,
            )
        return self._http_client

    async def aclose(self) -> None:
        """Close the shared HTTP client"""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    def build_query(self, text: str, source: str, target: str) -> Query:
        return Query(
            q=text,
            source=source,
            target=target,
            alternatives=self.alternatives,
            format=self.fmt,
            api_key=self.api_key,
        )

    async def translate(self, text: str, source: str, target: str) -> Translation:
        # Blank cues never reach the service
        if not text:
            return Translation(translated_text="")

        query = self.build_query(text, source, target)
        body = query.to_json()
        if logger.isEnabledFor(logging.DEBUG):
            shown = dict(body, api_key="***") if "api_key" in body else body
            logger.debug("Sending: %s", json.dumps(shown, ensure_ascii=False))

        client = self._get_http_client()
        try:
            response = await client.post(self.endpoint, json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request to {self.endpoint} failed: {type(e).__name__}: {e}", e) from e

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                f"Undecodable response from {self.endpoint} (HTTP {response.status_code}): {response.text[:200]!r}",
                e,
            ) from e

        try:
            result = decode_translation_result(data)
        except ResponseShapeError as e:
            raise MalformedResponseError(f"Unexpected response structure from {self.endpoint}: {e}", e) from e
        logger.debug("Response: %r", result)

        # LibreTranslate reports most failures as {"error": ...} with a 4xx/5xx
        if isinstance(result, TranslationError):
            raise RemoteError(result.error)
        if response.is_error:
            raise TransportError(f"HTTP {response.status_code} from {self.endpoint} without an error message")
        return result
