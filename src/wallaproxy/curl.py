"""
Copy-pasteable curl commands for every client operation.

Each function mirrors a WallapopClient method: same URL, same query
parameters and the same headers, so the commands can be run without
Python (or the server) installed.
"""

from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from . import config
from .fetch_api import SearchParams, build_search_query, resolve_item_url

# Characters encodeURIComponent leaves as they are
_UNRESERVED = "-_.!~*'()"


def _header_flags(headers: Mapping[str, str]) -> str:
    return " \\\n  ".join(f"-H '{key}: {value}'" for key, value in headers.items())


def _query_string(params: Mapping[str, Any]) -> str:
    entries = [(key, value) for key, value in params.items() if value is not None]
    if not entries:
        return ""
    return "?" + "&".join(
        f"{quote(str(key), safe=_UNRESERVED)}={quote(str(value), safe=_UNRESERVED)}"
        for key, value in entries
    )


def _with_proxy(cmd: str, proxy_url: Optional[str] = None) -> str:
    proxy_url = proxy_url if proxy_url is not None else config.PROXY_URL
    if proxy_url:
        return f"{cmd} \\\n  --proxy '{proxy_url}'"
    return cmd


def _api_get(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    url = f"{config.API_BASE_URL}{path}{_query_string(params or {})}"
    return _with_proxy(f"curl -s \\\n  {_header_flags(config.HEADERS)} \\\n  '{url}'")


def curl_search(params: SearchParams) -> str:
    return _api_get("/search", build_search_query(params))


def curl_item(item_id: str) -> str:
    return _api_get(f"/items/{item_id}")


def curl_user(user_id: str) -> str:
    return _api_get(f"/users/{user_id}")


def curl_user_stats(user_id: str) -> str:
    return _api_get(f"/users/{user_id}/stats")


def curl_user_items(
    user_id: str, limit: Optional[int] = None, next_page: Optional[str] = None
) -> str:
    params: Dict[str, Any] = {}
    if limit:
        params["limit"] = limit
    if next_page:
        params["next_page"] = next_page
    return _api_get(f"/users/{user_id}/items", params)


def curl_categories() -> str:
    return _api_get("/categories")


def curl_inbox(
    bearer_token: str,
    page_size: Optional[int] = None,
    max_messages: Optional[int] = None,
) -> str:
    params = {
        "page_size": page_size if page_size is not None else config.DEFAULT_INBOX_PAGE_SIZE,
        "max_messages": (
            max_messages if max_messages is not None else config.DEFAULT_INBOX_MAX_MESSAGES
        ),
    }
    headers = {
        "Accept": config.INBOX_HEADERS["Accept"],
        "Authorization": f"Bearer {bearer_token}",
        "Referer": config.INBOX_HEADERS["Referer"],
        "Accept-Language": config.INBOX_HEADERS["Accept-Language"],
    }
    url = f"{config.BFF_BASE_URL}/messaging/inbox{_query_string(params)}"
    return _with_proxy(f"curl -s \\\n  {_header_flags(headers)} \\\n  '{url}'")


def curl_extract_item_id(url_or_slug: str) -> str:
    """curl | grep | sed | python3 pipeline printing the item ID of a page."""
    full_url = resolve_item_url(url_or_slug)
    return (
        f"curl -s \\\n"
        f"  -H 'User-Agent: {config.SCRAPE_USER_AGENT}' \\\n"
        f"  '{full_url}' \\\n"
        f"  | grep -o '__NEXT_DATA__[^<]*' \\\n"
        f"  | sed 's/__NEXT_DATA__\" type=\"application\\/json\">//' \\\n"
        f"  | python3 -c \"import sys,json; "
        f"print(json.loads(sys.stdin.read())['props']['pageProps']['item']['id'])\""
    )
