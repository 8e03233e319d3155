"""
Request and response shaping for the Wallapop API.

Builds search query parameters, resolves item URLs and digs the values
the client needs out of API responses and scraped item pages.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, TypedDict, Union

from .config import DEFAULT_SEARCH_LIMIT, ORDER_BY_VALUES, WEB_BASE_URL
from .exceptions import WallaproxyParsingError
from .utils import clean_text

logger = logging.getLogger(__name__)

NEXT_DATA_PATTERN = re.compile(
    r'<script\s+id="__NEXT_DATA__"\s+type="application/json">([^<]+)</script>'
)

# Optional search filters, in the order they are added to the query string
SEARCH_FILTERS = [
    "keywords",
    "min_sale_price",
    "max_sale_price",
    "distance",
    "latitude",
    "longitude",
    "category_id",
    "subcategory_ids",
    "order_by",
]


class SearchParams(TypedDict, total=False):
    keywords: str
    min_sale_price: float
    max_sale_price: float
    distance: int
    latitude: float
    longitude: float
    category_id: int
    subcategory_ids: str  # comma-separated
    order_by: str
    limit: int
    next_page: str  # opaque pagination token from meta.next_page


def build_search_query(params: SearchParams) -> Dict[str, Union[str, int, float]]:
    """
    Turns search parameters into the query string the /search endpoint expects.

    `step=1` and `source=keywords` are always sent. When paginating with a
    `next_page` token the token carries the whole search, so the filters are
    left out.

    Args:
        params: Search parameters. Unset (None or empty) values are skipped.

    Returns:
        A dict of query parameters, in insertion order.
    """
    limit = params.get("limit")
    query: Dict[str, Union[str, int, float]] = {
        "step": 1,
        "source": "keywords",
        "limit": limit if limit is not None else DEFAULT_SEARCH_LIMIT,
    }

    next_page = params.get("next_page")
    if next_page:
        query["next_page"] = next_page
        return query

    for key in SEARCH_FILTERS:
        value = params.get(key)
        if value is None or value == "":
            continue
        if key == "keywords":
            value = clean_text(value)
        elif key == "order_by" and value not in ORDER_BY_VALUES:
            logger.warning(f"Invalid order_by value '{value}'. Ignoring it.")
            continue
        query[key] = value

    logger.debug(f"Search query: {query}")
    return query


def resolve_item_url(url_or_slug: str) -> str:
    """
    Returns the full item page URL for a URL, a scheme-less URL or a bare slug.

    >>> resolve_item_url("consola-ps4-123")
    'https://es.wallapop.com/item/consola-ps4-123'
    """
    if url_or_slug.startswith("http"):
        return url_or_slug
    if "wallapop.com/" in url_or_slug:
        return f"https://{url_or_slug}"
    return f"{WEB_BASE_URL}/item/{url_or_slug}"


def extract_next_data_item_id(html: str) -> str:
    """
    Reads the internal item ID from the Next.js data blob of an item page.

    Raises:
        WallaproxyParsingError: If the blob is missing, is not JSON or
            has no item ID.
    """
    match = NEXT_DATA_PATTERN.search(html)
    if not match:
        raise WallaproxyParsingError("Could not find __NEXT_DATA__ in page")

    try:
        next_data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise WallaproxyParsingError(f"Invalid __NEXT_DATA__ JSON: {e}") from e

    item_id = None
    if isinstance(next_data, dict):
        item = next_data.get("props", {}).get("pageProps", {}).get("item") or {}
        if isinstance(item, dict):
            item_id = item.get("id")
    if not item_id:
        raise WallaproxyParsingError("Could not extract item ID from page data")
    return str(item_id)


def search_items(data: Any) -> Optional[List[Dict[str, Any]]]:
    """Returns data.section.payload.items of a search response, or None."""
    if not isinstance(data, dict):
        return None
    data_section = data.get("data")
    if not isinstance(data_section, dict):
        return None
    section = data_section.get("section")
    if not isinstance(section, dict):
        return None
    payload = section.get("payload")
    if not isinstance(payload, dict):
        return None
    items = payload.get("items")
    if not isinstance(items, list):
        return None
    return items


def next_page_token(data: Any) -> Optional[str]:
    """Returns the meta.next_page pagination token of a search response."""
    if not isinstance(data, dict):
        return None
    meta = data.get("meta")
    if not isinstance(meta, dict):
        return None
    return meta.get("next_page") or None
