__version__ = "0.1.0"

from typing import Any, Dict, Optional

from .client import WallapopClient
from .exceptions import (
    WallaproxyException,
    WallaproxyRequestError,
    WallaproxyParsingError,
    WallaproxyConfigurationError,
)
from .fetch_api import SearchParams
from .filters import (
    filter_continental_spain,
    filter_search_response,
    is_in_continental_spain,
)
from .utils import set_verbosity

_default_client: Optional[WallapopClient] = None


def _get_default_client() -> WallapopClient:
    # Created lazily so PROXY_URL & co. can still be set after import
    global _default_client
    if _default_client is None:
        _default_client = WallapopClient()
    return _default_client


def search(
    keywords: Optional[str] = None,
    continental: bool = False,
    verbose: int = 0,
    **params: Any,
) -> Dict[str, Any]:
    """
    Searches Wallapop using default configurations.

    This is a convenience function that uses a pre-configured WallapopClient.
    For custom configurations (proxy, base URL, timeout), instantiate
    WallapopClient directly.

    Args:
        keywords: Search terms.
        continental: Keep only items located in continental Spain.
            Defaults to False.
        verbose: Controls logging verbosity (0=WARN, 1=INFO, 2=DEBUG).
        **params: Other search parameters (min_sale_price, max_sale_price,
            latitude, longitude, distance, category_id, subcategory_ids,
            order_by, limit, next_page).

    Returns:
        The raw search response.

    Raises:
        WallaproxyConfigurationError: If input parameters like price range are invalid.
        WallaproxyRequestError: If the API request fails.
        WallaproxyParsingError: If the API response cannot be parsed.
    """
    set_verbosity(verbose)
    data = _get_default_client().search(keywords=keywords, **params)
    if continental:
        data = filter_search_response(data)
    return data


__all__ = [
    "WallapopClient",
    "SearchParams",
    "search",
    "is_in_continental_spain",
    "filter_continental_spain",
    "filter_search_response",
    "WallaproxyException",
    "WallaproxyRequestError",
    "WallaproxyParsingError",
    "WallaproxyConfigurationError",
]
