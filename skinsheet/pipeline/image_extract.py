"""
SkinSheet — Steam Image Extraction

Best-effort recovery of an item image URL from a Steam Market search
response. The response shape drifts, so extraction is layered:

- Strategy A: walk the nested ``assets`` tree for ``icon_url_large`` /
  ``icon_url`` (first hit wins, stack order).
- Strategy B: scrape ``<img src>`` out of ``results_html``, preferring
  steamstatic-hosted images.

Whichever strategy yields a URL first is used; the two are never compared.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from skinsheet.config import settings

logger = structlog.get_logger(__name__)

ICON_KEYS = ("icon_url_large", "icon_url")

# Traversal bounds for pathological payloads
MAX_DEPTH = 32
MAX_NODES = 10_000

_SIZE_TOKEN_RE = re.compile(r"/\d+fx\d+f")
_IMG_STEAMSTATIC_RE = re.compile(r"<img[^>]+src=\"([^\"]+steamstatic[^\"]+)\"[^>]*>", re.IGNORECASE)
_IMG_ANY_RE = re.compile(r"<img[^>]+src=\"([^\"]+)\"[^>]*>", re.IGNORECASE)


def find_icon_url(
    root: Any,
    keys: tuple[str, ...] = ICON_KEYS,
    max_depth: int = MAX_DEPTH,
    max_nodes: int = MAX_NODES,
) -> str | None:
    """
    Depth-first search for the first string-valued icon key.

    Each visited mapping is checked for ``keys`` in order (large icon first),
    then its children are pushed. The most recently pushed branch is visited
    next, so which of two icons at different depths wins is not specified.

    Args:
        root: Decoded JSON value (dict / list / scalar).
        keys: Field names to look for, in preference order.
        max_depth: Children deeper than this are not pushed.
        max_nodes: Give up after visiting this many containers.

    Returns:
        The icon value, or None.
    """
    stack: list[tuple[Any, int]] = [(root, 0)]
    visited = 0

    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = list(node.values())
            for key in keys:
                value = node.get(key)
                if isinstance(value, str) and value:
                    return value
        elif isinstance(node, list):
            children = node
        else:
            continue

        visited += 1
        if visited >= max_nodes:
            logger.warning("steam_icon_search_node_limit", max_nodes=max_nodes)
            return None
        if depth >= max_depth:
            continue
        for child in children:
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))

    return None


def scrape_results_html(html: str) -> str | None:
    """
    First ``<img src>`` on a steamstatic host, else the first ``<img src>``.

    ``&amp;`` in the extracted URL is unescaped.
    """
    if not html:
        return None
    match = _IMG_STEAMSTATIC_RE.search(html) or _IMG_ANY_RE.search(html)
    if not match:
        return None
    return match.group(1).replace("&amp;", "&")


def absolutize(url: str, base_url: str | None = None) -> str:
    """Prefix icon hashes with the economy image CDN base."""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    base = base_url or settings.STEAM_IMAGE_BASE_URL
    return f"{base.rstrip('/')}/{url.lstrip('/')}"


def upgrade_image_size(url: str | None, size: str | None = None) -> str | None:
    """
    Rewrite the CDN size token to the larger variant.

    Examples:
        >>> upgrade_image_size("https://x/economy/image/abc/62fx62f")
        'https://x/economy/image/abc/360fx360f'
    """
    if not url:
        return url
    token = size or settings.STEAM_IMAGE_SIZE
    return _SIZE_TOKEN_RE.sub(f"/{token}", url)


def extract_image_url(data: Any) -> str | None:
    """
    Resolve an image URL from a decoded search/render response.

    Returns:
        Absolute, size-upgraded URL, or None when neither strategy matches.
    """
    if not isinstance(data, dict):
        return None

    icon = None
    assets = data.get("assets")
    if assets:
        icon = find_icon_url(assets)
    if icon:
        return upgrade_image_size(absolutize(icon))

    html = data.get("results_html")
    scraped = scrape_results_html(html) if isinstance(html, str) else None
    if scraped:
        return upgrade_image_size(absolutize(scraped))

    return None
