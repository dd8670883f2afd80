"""
src/agent/collector.py
Gather linked pages and image attachments for one issue, concurrently.
Exports: extract_urls, fetch_external_content, process_images, collect_context
"""

import asyncio
import base64
import logging
import re
from urllib.parse import urlparse

import httpx

from src.agent.types import FetchedContent, ProcessedImage
from src.common.text_extract import char_budget, html_to_text, truncate_text
from src.tracker.types import Attachment

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://[^\s<>\"]+", re.IGNORECASE)
USER_AGENT = "LinearFirstDraftAgent/1.0"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp")
DEFAULT_IMAGE_MIME = "image/jpeg"
LINEAR_UPLOAD_HOST = "uploads.linear.app"


def extract_urls(text: str) -> list[str]:
    """
    Find every http(s) URL in free text.

    Args:
        text: Issue description or other plain text.
    Returns:
        URLs in order of first occurrence, deduplicated, with trailing `)`, `.`
        and `,` removed.
    """
    seen: dict[str, None] = {}
    for match in URL_RE.findall(text or ""):
        url = match.rstrip(").,")
        if url and url not in seen:
            seen[url] = None
    return list(seen)


async def _fetch_one(client: httpx.AsyncClient, url: str, max_chars: int) -> FetchedContent:
    response = await client.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)
    if not response.is_success:
        return FetchedContent(url=url, error=f"HTTP {response.status_code}")
    content_type = response.headers.get("content-type", "").lower()
    if "text" not in content_type and "json" not in content_type:
        return FetchedContent(url=url, error="Non-text content type")
    text = response.text
    if "html" in content_type:
        text = html_to_text(text)
    text, truncated = truncate_text(text, max_chars)
    return FetchedContent(url=url, content=text, truncated=truncated)


async def _fetch_with_timeout(
    client: httpx.AsyncClient, url: str, max_chars: int, timeout: float
) -> FetchedContent:
    try:
        return await asyncio.wait_for(_fetch_one(client, url, max_chars), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Link fetch timed out after %ss: %s", timeout, url)
        return FetchedContent(url=url, error=f"Timed out after {timeout:g}s")
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Link fetch failed for %s: %s", url, exc)
        return FetchedContent(url=url, error=str(exc) or type(exc).__name__)


async def fetch_external_content(
    client: httpx.AsyncClient,
    urls: list[str],
    max_tokens: int,
    timeout: float,
) -> list[FetchedContent]:
    """
    Fetch all URLs concurrently, each under its own timeout.

    Args:
        client: Shared async HTTP client.
        urls: URLs to fetch.
        max_tokens: Token budget per page; converted to characters.
        timeout: Per-URL timeout in seconds.
    Returns:
        One FetchedContent per URL, in input order. Failures carry `error`
        and never cancel sibling fetches.
    """
    if not urls:
        return []
    max_chars = char_budget(max_tokens)
    results = await asyncio.gather(*(_fetch_with_timeout(client, url, max_chars, timeout) for url in urls))
    failed = [item.url for item in results if item.error]
    if failed:
        logger.warning("Could not fetch %d of %d link(s): %s", len(failed), len(urls), ", ".join(failed))
    return list(results)


def is_image_url(url: str) -> bool:
    path = urlparse(url).path.lower()
    return path.endswith(IMAGE_EXTENSIONS)


def _image_headers(url: str, auth_token: str | None) -> dict[str, str]:
    headers = {"User-Agent": USER_AGENT}
    if auth_token and urlparse(url).hostname == LINEAR_UPLOAD_HOST:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


async def _download_image(
    client: httpx.AsyncClient, url: str, max_bytes: int, auth_token: str | None
) -> ProcessedImage | None:
    payload = bytearray()
    try:
        async with client.stream(
            "GET", url, headers=_image_headers(url, auth_token), follow_redirects=True
        ) as response:
            if not response.is_success:
                logger.warning("Image download returned HTTP %s: %s", response.status_code, url)
                return None
            mime_type = response.headers.get("content-type", "").split(";")[0].strip() or DEFAULT_IMAGE_MIME
            # Stop reading as soon as the limit is crossed.
            async for chunk in response.aiter_bytes():
                payload.extend(chunk)
                if len(payload) > max_bytes:
                    logger.warning("Image larger than %d bytes, skipping: %s", max_bytes, url)
                    return None
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Image download failed for %s: %s", url, exc)
        return None
    return ProcessedImage(
        url=url,
        base64=base64.b64encode(payload).decode("ascii"),
        mime_type=mime_type,
        size=len(payload),
    )


async def process_images(
    client: httpx.AsyncClient,
    attachments: list[Attachment],
    max_bytes: int,
    auth_token: str | None = None,
) -> list[ProcessedImage]:
    """
    Download allow-listed image attachments and encode them as base64.

    Oversized or unfetchable images are skipped with a warning.

    Args:
        client: Shared async HTTP client.
        attachments: Issue attachments.
        max_bytes: Maximum accepted image size.
        auth_token: Workspace token sent only to Linear upload URLs.
    Returns:
        Surviving images, in attachment order.
    """
    urls = [item.url for item in attachments if item.url and is_image_url(item.url)]
    if not urls:
        return []
    downloads = await asyncio.gather(*(_download_image(client, url, max_bytes, auth_token) for url in urls))
    return [image for image in downloads if image is not None]


async def collect_context(
    client: httpx.AsyncClient,
    *,
    description: str,
    attachments: list[Attachment],
    max_link_tokens: int,
    max_image_bytes: int,
    link_timeout: float,
    auth_token: str | None = None,
) -> tuple[list[ProcessedImage], list[FetchedContent]]:
    """Run the image batch and the link batch concurrently; return `(images, external_content)`."""
    images, external = await asyncio.gather(
        process_images(client, attachments, max_image_bytes, auth_token),
        fetch_external_content(client, extract_urls(description), max_link_tokens, link_timeout),
    )
    logger.info("Collected %d image(s) and %d link result(s).", len(images), len(external))
    return images, external
