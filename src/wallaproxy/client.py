"""
Client for the Wallapop private REST API.

Every operation is a single GET against the API (or, for item ID lookup,
against the public item page) and returns the decoded JSON untouched.
"""

import logging
from typing import Any, Dict, Optional

from . import config  # Import the whole module to access defaults
from .exceptions import WallaproxyConfigurationError
from .fetch_api import (
    SearchParams,
    build_search_query,
    extract_next_data_item_id,
    next_page_token,
    resolve_item_url,
    search_items,
)
from .request_handler import build_session, parse_json, safe_request
from .utils import validate_prices

logger = logging.getLogger(__name__)
if not logger.hasHandlers():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class WallapopClient:
    """
    Client for the Wallapop API.

    Public endpoints are called with the fixed header fingerprint from
    config.HEADERS and nothing else. All API traffic (public and inbox)
    goes through the HTTP proxy when one is configured.
    """

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initializes the client with custom or default configurations.

        Args:
            proxy_url: HTTP proxy URL. Defaults to config.PROXY_URL; pass ""
                to disable the proxy.
            base_url: Base URL for the API. Defaults to config.API_BASE_URL.
            timeout: Request timeout in seconds. Defaults to config.REQUEST_TIMEOUT.
            headers: Headers for public API calls. Defaults to config.HEADERS.
        """
        self.proxy_url = proxy_url if proxy_url is not None else config.PROXY_URL
        self.base_url = (base_url if base_url is not None else config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.headers = dict(headers if headers is not None else config.HEADERS)

        self.session = build_session(self.headers, self.proxy_url)
        self.bff_session = build_session(config.INBOX_HEADERS, self.proxy_url)
        self.web_session = build_session({"User-Agent": config.SCRAPE_USER_AGENT})

        logger.debug(
            f"WallapopClient initialized with: base_url={self.base_url}, "
            f"proxy={'yes' if self.proxy_url else 'no'}, timeout={self.timeout}"
        )

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = safe_request(
            self.session, f"{self.base_url}{path}", params=params, timeout=self.timeout
        )
        return parse_json(response)

    # --- Search ---

    def search(self, params: Optional[SearchParams] = None, **kwargs: Any) -> Dict[str, Any]:
        """
        Searches items by keywords, price, location and category.

        Args:
            params: Search parameters (see fetch_api.SearchParams). Keyword
                arguments are merged on top of it.

        Returns:
            The raw search response: items under data.section.payload.items,
            the pagination token under meta.next_page.

        Raises:
            WallaproxyConfigurationError: If the price range is invalid.
            WallaproxyRequestError: If the request fails.
            WallaproxyParsingError: If the response is not JSON.
        """
        merged: SearchParams = {**(params or {}), **kwargs}  # type: ignore[misc]
        if not merged.get("next_page"):
            validate_prices(merged.get("min_sale_price"), merged.get("max_sale_price"))

        query = build_search_query(merged)
        logger.info(f"Searching Wallapop for '{merged.get('keywords', '')}'")
        data = self._get("/search", params=query)

        items = search_items(data)
        if items is not None:
            logger.info(
                f"Search returned {len(items)} items"
                f"{' (more pages available)' if next_page_token(data) else ''}."
            )
        else:
            logger.warning("Search response has no data.section.payload.items list.")
        return data

    # --- Items ---

    def get_item(self, item_id: str) -> Dict[str, Any]:
        """Item details. Prices here are in cents, unlike /search."""
        return self._get(f"/items/{item_id}")

    def extract_item_id(self, url_or_slug: str) -> str:
        """
        Finds the internal item ID behind an item URL or slug.

        Web URLs use slugs but the API needs the internal ID, which is
        only exposed in the item page's __NEXT_DATA__ blob.
        """
        full_url = resolve_item_url(url_or_slug)
        logger.debug(f"Scraping item page {full_url}")
        response = safe_request(self.web_session, full_url, timeout=config.SCRAPE_TIMEOUT)
        return extract_next_data_item_id(response.text)

    # --- Users ---

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._get(f"/users/{user_id}")

    def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        """Ratings (out of 100) and counters (sold, reviews...) of a seller."""
        return self._get(f"/users/{user_id}/stats")

    def get_user_items(
        self,
        user_id: str,
        limit: Optional[int] = None,
        next_page: Optional[str] = None,
    ) -> Any:
        params: Dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if next_page:
            params["next_page"] = next_page
        return self._get(f"/users/{user_id}/items", params=params or None)

    # --- Categories ---

    def get_categories(self) -> Dict[str, Any]:
        return self._get("/categories")

    # --- Messaging (auth required) ---

    def get_inbox(
        self,
        bearer_token: str,
        page_size: Optional[int] = None,
        max_messages: Optional[int] = None,
    ) -> Any:
        """
        Messaging inbox of the user owning `bearer_token`.

        The token is forwarded as is; it can be copied from the
        Authorization header of any authenticated request in the web app.
        """
        if not bearer_token:
            raise WallaproxyConfigurationError("Bearer token is required")

        params = {
            "page_size": page_size if page_size is not None else config.DEFAULT_INBOX_PAGE_SIZE,
            "max_messages": (
                max_messages if max_messages is not None else config.DEFAULT_INBOX_MAX_MESSAGES
            ),
        }
        response = safe_request(
            self.bff_session,
            f"{config.BFF_BASE_URL}/messaging/inbox",
            params=params,
            headers={"Authorization": f"Bearer {bearer_token}"},
            timeout=self.timeout,
        )
        return parse_json(response)
