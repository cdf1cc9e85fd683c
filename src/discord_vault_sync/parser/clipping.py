"""Web clipping: fetch a page and convert it to Markdown."""

from __future__ import annotations

import json

import httpx
import trafilatura

from discord_vault_sync.constants import REQUEST_TIMEOUT, URL_FETCH_USER_AGENT
from discord_vault_sync.errors import ConversionError
from discord_vault_sync.logging import get_logger

log = get_logger("discord_vault_sync.parser.clipping")


async def fetch_url_content(url: str, *, timeout: float = REQUEST_TIMEOUT) -> str:
    """Fetch a page's HTML.

    Never raises: on failure an HTML comment describing the error is
    returned, which later fails conversion for that message only.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": URL_FETCH_USER_AGENT})
            response.raise_for_status()
            return response.text
    except httpx.HTTPError as exc:
        log.warning("url_fetch_failed", url=url, error=str(exc))
        return f"<!-- Failed to fetch content from {url}: {exc} -->"


def build_front_matter(fields: dict[str, str]) -> str:
    """Render a YAML front matter block, skipping empty values."""
    lines = [
        f"{key}: {json.dumps(value, ensure_ascii=False)}" for key, value in fields.items() if value
    ]
    if not lines:
        return ""
    return "---\n" + "\n".join(lines) + "\n---\n\n"


def clip_url(url: str, html: str) -> str:
    """Convert fetched HTML into a Markdown clipping with front matter.

    Raises:
        ConversionError: No main content could be extracted.
    """
    body = trafilatura.extract(
        html,
        url=url,
        output_format="markdown",
        include_comments=False,
        include_tables=True,
        include_links=True,
    )
    if not body:
        raise ConversionError(f"No content extracted from {url}")

    title = ""
    metadata = trafilatura.extract_metadata(html)
    if metadata is not None:
        title = metadata.title or ""

    return build_front_matter({"title": title, "source": url}) + body.strip() + "\n"
