"""
HTTP fetcher for government pages and feeds.

Retrieves the document behind one (source, data type) endpoint:
- Identifying User-Agent plus browser-like Accept headers
- Redirects followed, hard per-request timeout
- Any non-2xx response is a retryable failure
- Exponential backoff between attempts (base * 2^(attempt-1)) with optional jitter
- 429 responses honour Retry-After when it asks for a longer wait

The fetcher holds no mutable state between calls; the httpx client and the
sleep function are injectable so tests can run without network or real delays.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from core.config import settings
from core.exceptions import FetchError, FetchErrorKind
from ingestion.registry import SourceDescriptor
from models.base import DataType
import logging

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

_FEED_MARKERS = ("<rss", "<feed", "<rdf:rdf")


class RawDocument(BaseModel):
    """A fetched document, before any parsing"""

    source_name: str
    data_type: DataType
    url: str
    status_code: int
    text: str
    content_type: str = ""
    fetched_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def is_feed(self) -> bool:
        """RSS/Atom document, judged by content type or leading markup"""
        content_type = self.content_type.lower()
        if "rss" in content_type or "atom" in content_type:
            return True

        head = self.text.lstrip()[:512].lower()
        if head.startswith("<?xml"):
            return any(marker in head for marker in _FEED_MARKERS)
        return head.startswith(_FEED_MARKERS)


class Fetcher:
    """
    Fetch endpoint documents with retry and backoff.

    Attributes:
        max_retries: Total number of attempts per fetch (default: 5)
        base_delay: Backoff base in seconds (default: 2.0)
        jitter: Upper bound of uniform random jitter added to each delay; 0 disables
        timeout: Request timeout in seconds (default: 30.0)
        user_agent: Identification string sent with every request
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        jitter: Optional[float] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        sleep: SleepFunc = asyncio.sleep
    ):
        self.max_retries = max(1, max_retries if max_retries is not None else settings.FETCH_MAX_RETRIES)
        self.base_delay = base_delay if base_delay is not None else settings.FETCH_BACKOFF_BASE_SECONDS
        self.jitter = jitter if jitter is not None else settings.FETCH_BACKOFF_JITTER_SECONDS
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.FETCH_USER_AGENT
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the HTTP client if this fetcher created it"""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-CA,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Cache-Control": "no-cache",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt"""
        delay = self.base_delay * (2 ** (attempt - 1))
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if not value:
            return None
        try:
            return max(0.0, float(value))
        except ValueError:
            # HTTP-date form is not honoured
            return None

    async def fetch(self, source: SourceDescriptor, data_type: DataType) -> RawDocument:
        """
        Fetch the document for one source endpoint.

        Args:
            source: Source descriptor
            data_type: Which endpoint of the source to fetch

        Returns:
            RawDocument with the response body

        Raises:
            FetchError: After max_retries failed attempts (kind timeout, http_status or network),
                or after the first attempt when the URL is invalid
            ConfigurationError: If the source has no endpoint for data_type
        """
        url = source.endpoint_url(data_type)
        client = self._get_client()
        context = {"source_name": source.name, "data_type": DataType(data_type).value}

        last_kind = FetchErrorKind.NETWORK
        last_status: Optional[int] = None
        last_exception: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            retry_after = None
            try:
                logger.debug(f"GET {url} (attempt {attempt}/{self.max_retries})")

                response = await client.get(
                    url,
                    headers=self.headers,
                    timeout=self.timeout,
                    follow_redirects=True
                )

                if 200 <= response.status_code < 300:
                    return RawDocument(
                        source_name=source.name,
                        data_type=data_type,
                        url=str(response.url),
                        status_code=response.status_code,
                        text=response.text,
                        content_type=response.headers.get("Content-Type", ""),
                        fetched_at=datetime.now(timezone.utc),
                    )

                last_kind = FetchErrorKind.HTTP_STATUS
                last_status = response.status_code
                last_exception = None
                if response.status_code == 429:
                    retry_after = self._retry_after(response)
                reason = f"HTTP {response.status_code}"

            except httpx.InvalidURL as e:
                # Not retryable
                raise FetchError(
                    f"Invalid URL {url}: {e}",
                    kind=FetchErrorKind.NETWORK,
                    attempts=attempt,
                    url=url,
                    context=context,
                    original_exception=e
                )

            except httpx.TimeoutException as e:
                last_kind = FetchErrorKind.TIMEOUT
                last_status = None
                last_exception = e
                reason = f"timeout after {self.timeout}s"

            except httpx.HTTPError as e:
                last_kind = FetchErrorKind.NETWORK
                last_status = None
                last_exception = e
                reason = f"{type(e).__name__}: {e}"

            if attempt < self.max_retries:
                delay = self.backoff_delay(attempt)
                if retry_after is not None:
                    delay = max(delay, retry_after)
                logger.warning(
                    f"Fetch of {url} failed ({reason}). "
                    f"Retrying in {delay:.1f} seconds (attempt {attempt}/{self.max_retries})"
                )
                await self._sleep(delay)

        raise FetchError(
            f"Giving up on {url} after {self.max_retries} attempts",
            kind=last_kind,
            attempts=self.max_retries,
            url=url,
            status_code=last_status,
            context=context,
            original_exception=last_exception
        )
