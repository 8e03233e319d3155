"""
HTTP plumbing shared by the client: session setup, single GET requests
and JSON decoding, with failures mapped onto wallaproxy exceptions.
"""

import logging
from typing import Any, Dict, Optional

import requests
from urllib3.util import SKIP_HEADER

from .config import REQUEST_TIMEOUT
from .exceptions import WallaproxyParsingError, WallaproxyRequestError

logger = logging.getLogger(__name__)


def proxies_for(proxy_url: Optional[str]) -> Dict[str, str]:
    """Returns a requests-style proxies mapping, empty when no proxy is set."""
    if not proxy_url:
        return {}
    return {"http": proxy_url, "https": proxy_url}


def build_session(
    headers: Dict[str, str], proxy_url: Optional[str] = None
) -> requests.Session:
    """
    Creates a session that sends exactly `headers` on every request.

    requests adds its own defaults (User-Agent, Accept, Accept-Encoding,
    Connection) and urllib3 adds User-Agent and Accept-Encoding again when
    they are missing. Both layers are silenced so the header fingerprint
    stays the one the API expects.
    """
    session = requests.Session()
    session.headers.clear()
    session.headers.update(
        {"User-Agent": SKIP_HEADER, "Accept-Encoding": SKIP_HEADER}
    )
    session.headers.update(headers)
    session.proxies.update(proxies_for(proxy_url))
    if proxy_url:
        logger.debug("Session configured to use an HTTP proxy")
    return session


def upstream_error_message(response: requests.Response) -> str:
    """Extracts `error.message` from an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Request failed with status code {response.status_code}"


def safe_request(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> requests.Response:
    """
    Performs a single GET request.

    Args:
        session: Session (headers and proxies) to send the request with.
        url: Absolute URL to fetch.
        params: Query parameters. Defaults to None.
        headers: Extra per-request headers. Defaults to None.
        timeout: Timeout in seconds. Defaults to config.REQUEST_TIMEOUT.

    Returns:
        The response, always with status code 200.

    Raises:
        WallaproxyRequestError: On transport errors or non-200 responses.
    """
    logger.debug(f"GET {url} params={params}")
    try:
        response = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.exceptions.RequestException as e:
        error_msg = f"Request to {url} failed: {e}"
        logger.error(error_msg)
        raise WallaproxyRequestError(error_msg) from e

    if response.status_code != 200:
        message = upstream_error_message(response)
        logger.error(
            f"Upstream request failed. Status Code: {response.status_code}. URL: {url}"
        )
        logger.debug(f"Response body: {response.text[:500]}...")
        raise WallaproxyRequestError(message, status_code=response.status_code)

    return response


def parse_json(response: requests.Response) -> Any:
    """Decodes a JSON response body."""
    try:
        return response.json()
    except ValueError as e:
        decode_error_msg = (
            f"Error decoding JSON response from {response.url}: {e}. "
            f"Response text: {response.text[:500]}..."
        )
        logger.error(decode_error_msg)
        raise WallaproxyParsingError(decode_error_msg) from e
