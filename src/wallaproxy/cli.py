"""
Command line interface: `wallaproxy <command> [options]`.

Every command calls one client operation and prints the JSON response.
With --curl the equivalent curl command is printed instead and nothing
is sent.
"""

import argparse
import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional

from fuzzywuzzy import process

from . import config
from .client import WallapopClient
from .curl import (
    curl_categories,
    curl_extract_item_id,
    curl_inbox,
    curl_item,
    curl_search,
    curl_user,
    curl_user_items,
    curl_user_stats,
)
from .curl_md import generate_curl_md
from .exceptions import (
    WallaproxyConfigurationError,
    WallaproxyException,
    WallaproxyRequestError,
)
from .fetch_api import SearchParams
from .filters import filter_search_response
from .utils import parse_number, set_verbosity

logger = logging.getLogger(__name__)

USAGE = """
Usage: wallaproxy <command> [options]

Commands:
  search <keywords>          Search items
  item <itemId>              Get item details
  item-id <url>              Extract item ID from URL
  user <userId>              Get user profile
  user-stats <userId>        Get user stats
  user-items <userId>        Get user items
  categories                 List all categories
  inbox <bearerToken>        Get messaging inbox (auth required)
  curl-md                    Print the curl cheatsheet (Markdown)
  serve                      Start HTTP server

Search options:
  --min-price <n>            Minimum price (EUR)
  --max-price <n>            Maximum price (EUR)
  --lat <n>                  Latitude
  --lon <n>                  Longitude
  --distance <n>             Distance in meters
  --category <id>            Category ID
  --subcategories <ids>      Subcategory IDs (comma-separated)
  --order <order>            newest|price_low_to_high|price_high_to_low|distance
  --limit <n>                Results per page (max 40)
  --next-page <token>        Pagination token
  --continental              Keep only items in continental Spain

Inbox options:
  --page-size <n>            Conversations per page (default 100)
  --max-messages <n>         Messages per conversation (default 1)

General:
  --curl                     Print the equivalent curl command instead
  --json                     Raw JSON output (default: formatted)
  --port <n>                 Port for `serve` (default 4000)
  --output <file>            Output file for `curl-md`
  -v, --verbose              More logging (repeat for debug)
  --help                     Show this help

Examples:
  wallaproxy search "iphone 13" --min-price 200 --max-price 500
  wallaproxy search "bike" --lat 41.38 --lon 2.17 --distance 5000
  wallaproxy search "sofa" --continental
  wallaproxy search --next-page "eyJhbGci..."
  wallaproxy item nz047v45rrjo
  wallaproxy user-stats qjwy4weydwzo
  wallaproxy categories --curl
  wallaproxy serve
"""


class CliArgumentParser(argparse.ArgumentParser):
    """Reports bad options as configuration errors instead of exiting with 2."""

    def error(self, message):
        raise WallaproxyConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    """Options shared by all commands; usage is printed by hand."""
    parser = CliArgumentParser(prog="wallaproxy", add_help=False)
    parser.add_argument("args", nargs="*")
    parser.add_argument("--min-price")
    parser.add_argument("--max-price")
    parser.add_argument("--lat")
    parser.add_argument("--lon")
    parser.add_argument("--distance")
    parser.add_argument("--category")
    parser.add_argument("--subcategories")
    parser.add_argument("--order")
    parser.add_argument("--limit")
    parser.add_argument("--next-page")
    parser.add_argument("--continental", action="store_true")
    parser.add_argument("--page-size")
    parser.add_argument("--max-messages")
    parser.add_argument("--port")
    parser.add_argument("--output")
    parser.add_argument("--curl", action="store_true")
    parser.add_argument("--json", action="store_true")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("--help", action="store_true")
    return parser


def _first_arg(opts: argparse.Namespace, what: str) -> str:
    if not opts.args:
        raise WallaproxyConfigurationError(f"{what} required")
    return opts.args[0]


def _search_params(opts: argparse.Namespace) -> SearchParams:
    return {
        "keywords": opts.args[0] if opts.args else None,
        "min_sale_price": parse_number(opts.min_price, "--min-price"),
        "max_sale_price": parse_number(opts.max_price, "--max-price"),
        "latitude": parse_number(opts.lat, "--lat"),
        "longitude": parse_number(opts.lon, "--lon"),
        "distance": parse_number(opts.distance, "--distance", integer=True),
        "category_id": parse_number(opts.category, "--category", integer=True),
        "subcategory_ids": opts.subcategories,
        "order_by": opts.order,
        "limit": parse_number(opts.limit, "--limit", integer=True),
        "next_page": opts.next_page,
    }


# --- Command handlers: return JSON-able data, or a curl command string ---


def _cmd_search(opts: argparse.Namespace) -> Any:
    params = _search_params(opts)
    if opts.curl:
        return curl_search(params)
    if not params["keywords"] and not params["next_page"]:
        raise WallaproxyConfigurationError("keywords or --next-page required")
    data = WallapopClient().search(params)
    if opts.continental:
        data = filter_search_response(data)
    return data


def _cmd_item(opts: argparse.Namespace) -> Any:
    item_id = _first_arg(opts, "item ID")
    return curl_item(item_id) if opts.curl else WallapopClient().get_item(item_id)


def _cmd_item_id(opts: argparse.Namespace) -> Any:
    url = _first_arg(opts, "URL")
    if opts.curl:
        return curl_extract_item_id(url)
    return {"itemId": WallapopClient().extract_item_id(url)}


def _cmd_user(opts: argparse.Namespace) -> Any:
    user_id = _first_arg(opts, "user ID")
    return curl_user(user_id) if opts.curl else WallapopClient().get_user(user_id)


def _cmd_user_stats(opts: argparse.Namespace) -> Any:
    user_id = _first_arg(opts, "user ID")
    if opts.curl:
        return curl_user_stats(user_id)
    return WallapopClient().get_user_stats(user_id)


def _cmd_user_items(opts: argparse.Namespace) -> Any:
    user_id = _first_arg(opts, "user ID")
    limit = parse_number(opts.limit, "--limit", integer=True)
    if opts.curl:
        return curl_user_items(user_id, limit=limit, next_page=opts.next_page)
    return WallapopClient().get_user_items(user_id, limit=limit, next_page=opts.next_page)


def _cmd_categories(opts: argparse.Namespace) -> Any:
    return curl_categories() if opts.curl else WallapopClient().get_categories()


def _cmd_inbox(opts: argparse.Namespace) -> Any:
    token = _first_arg(opts, "bearer token")
    page_size = parse_number(opts.page_size, "--page-size", integer=True)
    max_messages = parse_number(opts.max_messages, "--max-messages", integer=True)
    if opts.curl:
        return curl_inbox(token, page_size=page_size, max_messages=max_messages)
    return WallapopClient().get_inbox(token, page_size=page_size, max_messages=max_messages)


COMMANDS: Dict[str, Callable[[argparse.Namespace], Any]] = {
    "search": _cmd_search,
    "item": _cmd_item,
    "item-id": _cmd_item_id,
    "user": _cmd_user,
    "user-stats": _cmd_user_stats,
    "user-items": _cmd_user_items,
    "categories": _cmd_categories,
    "inbox": _cmd_inbox,
}

OTHER_COMMANDS = ["curl-md", "serve", "help"]


def suggest_command(command: str, threshold: int = 60) -> Optional[str]:
    """Closest known command name, if it is close enough."""
    match = process.extractOne(command, list(COMMANDS) + OTHER_COMMANDS)
    if match and match[1] >= threshold:
        return match[0]
    return None


def output(data: Any, raw: bool) -> None:
    if raw:
        sys.stdout.write(json.dumps(data, ensure_ascii=False) + "\n")
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    command = argv[0] if argv else "help"

    if command in ("help", "--help", "-h"):
        print(USAGE)
        return 0

    if command not in COMMANDS and command not in OTHER_COMMANDS:
        print(f"Unknown command: {command}", file=sys.stderr)
        suggestion = suggest_command(command)
        if suggestion:
            print(f"Did you mean '{suggestion}'?", file=sys.stderr)
        print(USAGE)
        return 1

    try:
        opts, unknown = build_parser().parse_known_args(argv[1:])
    except WallaproxyConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE)
        return 1
    if unknown:
        logger.warning(f"Ignoring unknown options: {' '.join(unknown)}")
    if opts.help:
        print(USAGE)
        return 0
    set_verbosity(opts.verbose)

    try:
        if command == "serve":
            # Imported here so plain CLI commands don't load Flask
            from .server import run_server

            port = parse_number(opts.port, "--port", integer=True)
            run_server(port=port if port is not None else config.PORT)
            return 0

        if command == "curl-md":
            markdown = generate_curl_md()
            if opts.output:
                with open(opts.output, "w", encoding="utf-8") as f:
                    f.write(markdown)
                logger.info(f"Cheatsheet written to {opts.output}")
            else:
                sys.stdout.write(markdown)
            return 0

        result = COMMANDS[command](opts)
    except WallaproxyRequestError as e:
        status = f" ({e.status_code})" if e.status_code else ""
        print(f"Error{status}: {e.message}", file=sys.stderr)
        return 1
    except WallaproxyException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if opts.curl:
        print(result)
    else:
        output(result, opts.json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
