"""
Secure remote page fetching.

Fetches a web page only after the SSRF guard has validated its host, pins
the connection to the validated address, bounds the transfer in time and
size, and extracts the readable content with BeautifulSoup.

Dependencies: httpx, beautifulsoup4, content_ingestion.core.document_processing.tasks.network_guard
System role: Remote URL source for the extraction stage
"""

import asyncio
import logging
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from content_ingestion.core.document_processing.models import FetchedPage
from content_ingestion.core.document_processing.tasks.network_guard import (
    Resolver,
    ValidatedTarget,
    default_resolver,
    validate_url,
)
from content_ingestion.core.exceptions import (
    ExtractionError,
    ExtractionReason,
    SecurityBlockedError,
)

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"text/html", "application/xhtml+xml", "text/plain"}
HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}

# Elements that never carry primary content
BOILERPLATE_TAGS = [
    "script", "style", "noscript", "nav", "header", "footer",
    "aside", "iframe", "form", "svg",
]


def extract_readable_html(html: str) -> tuple[str, str | None]:
    """
    Extract primary readable text and a title from HTML.

    Prefers <main>, then <article>, then <body>.

    Args:
        html: HTML document

    Returns:
        tuple[str, str | None]: Text with one block per line, and the title
    """
    soup = BeautifulSoup(html, "html.parser")

    title = None
    if soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    if title is None:
        h1 = soup.find("h1")
        if h1:
            title = h1.get_text(" ", strip=True) or None

    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()

    root = soup.find("main") or soup.find("article") or soup.body or soup
    text = root.get_text(separator="\n", strip=True)
    return text, title


class SecureFetcher:
    """Fetch web pages behind the SSRF guard."""

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        max_bytes: int = 5 * 1024 * 1024,
        max_redirects: int = 0,
        user_agent: str = "content-ingestion/0.1",
        resolver: Resolver = default_resolver,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            timeout_seconds: Wall-clock limit for the whole transfer
            max_bytes: Maximum response body size
            max_redirects: Redirects to follow after re-validation (0 = none)
            user_agent: User-Agent header value
            resolver: Async hostname resolver used by the guard
            transport: httpx transport override (tests use httpx.MockTransport)
        """
        self._timeout = timeout_seconds
        self._max_bytes = max_bytes
        self._max_redirects = max_redirects
        self._user_agent = user_agent
        self._resolver = resolver
        self._transport = transport

    async def validate(self, url: str) -> ValidatedTarget:
        """Run the SSRF guard without fetching."""
        return await validate_url(url, self._resolver)

    async def fetch_text(self, url: str) -> FetchedPage:
        """
        Fetch a page and extract its readable text.

        Args:
            url: https URL

        Returns:
            FetchedPage: Extracted text, title and final URL

        Raises:
            SecurityBlockedError: When the URL or a redirect target is disallowed
            ExtractionError: When the fetch fails or the content is unusable
        """
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"Fetching {url} timed out after {self._timeout:g}s",
                reason=ExtractionReason.FETCH_FAILED,
            ) from e

    async def _fetch(self, url: str) -> FetchedPage:
        current_url = url
        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=False,
            timeout=self._timeout,
            trust_env=False,
        ) as client:
            for hop in range(self._max_redirects + 1):
                target = await validate_url(current_url, self._resolver)
                request = client.build_request(
                    "GET",
                    target.pinned_url(),
                    headers={
                        "Host": target.host_header,
                        "User-Agent": self._user_agent,
                        "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9",
                    },
                    extensions={"sni_hostname": target.hostname},
                )

                try:
                    response = await client.send(request, stream=True)
                except httpx.HTTPError as e:
                    raise ExtractionError(
                        f"Failed to fetch {current_url}: {type(e).__name__}",
                        reason=ExtractionReason.FETCH_FAILED,
                    ) from e

                try:
                    if response.is_redirect:
                        location = response.headers.get("location")
                        if hop >= self._max_redirects or not location:
                            raise SecurityBlockedError(
                                "Redirects are not followed",
                                url=current_url,
                                details={"status_code": response.status_code},
                            )
                        current_url = urljoin(current_url, location)
                        logger.info(
                            f"{__name__}:_fetch - Following redirect after re-validation",
                            extra={"hop": hop + 1},
                        )
                        continue

                    body = await self._read_body(response, current_url)
                    return self._to_page(url, current_url, response, body)
                finally:
                    await response.aclose()

        raise SecurityBlockedError("Too many redirects", url=url)

    async def _read_body(self, response: httpx.Response, url: str) -> bytes:
        if not response.is_success:
            raise ExtractionError(
                f"Fetching {url} returned HTTP {response.status_code}",
                reason=ExtractionReason.FETCH_FAILED,
                details={"status_code": response.status_code},
            )

        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if media_type not in ALLOWED_CONTENT_TYPES:
            raise ExtractionError(
                f"Unsupported content type: {media_type or 'unknown'}",
                reason=ExtractionReason.UNSUPPORTED_CONTENT,
            )

        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self._max_bytes:
            raise ExtractionError(
                f"Response too large: {declared} bytes exceeds {self._max_bytes}",
                reason=ExtractionReason.TOO_LARGE,
            )

        received = bytearray()
        try:
            async for chunk in response.aiter_bytes():
                received.extend(chunk)
                if len(received) > self._max_bytes:
                    raise ExtractionError(
                        f"Response exceeded {self._max_bytes} bytes",
                        reason=ExtractionReason.TOO_LARGE,
                    )
        except httpx.HTTPError as e:
            raise ExtractionError(
                f"Failed to read {url}: {type(e).__name__}",
                reason=ExtractionReason.FETCH_FAILED,
            ) from e
        return bytes(received)

    def _to_page(
        self,
        url: str,
        final_url: str,
        response: httpx.Response,
        body: bytes,
    ) -> FetchedPage:
        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        encoding = response.charset_encoding or "utf-8"
        try:
            decoded = body.decode(encoding, errors="replace")
        except LookupError:
            decoded = body.decode("utf-8", errors="replace")

        if media_type in HTML_CONTENT_TYPES:
            text, title = extract_readable_html(decoded)
        else:
            text, title = decoded, None

        logger.info(
            f"{__name__}:_to_page - Fetched page",
            extra={"bytes": len(body), "content_type": media_type},
        )
        return FetchedPage(
            url=url,
            final_url=final_url,
            title=title,
            text=text,
            content_type=media_type,
        )
