"""
HTTP server exposing the client operations as a small JSON API.

Routes live under /api/v1 and pass upstream JSON through unchanged, except
for /search with `continental=true`, which drops items outside
continental Spain.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import config
from .client import WallapopClient
from .exceptions import (
    WallaproxyConfigurationError,
    WallaproxyException,
    WallaproxyRequestError,
)
from .fetch_api import SearchParams
from .filters import filter_search_response
from .utils import parse_number

logger = logging.getLogger(__name__)

DEFAULT_COUNTERS = {"views": 0, "favorites": 0, "conversations": 0}


def _number_arg(name: str, integer: bool = False):
    return parse_number(request.args.get(name), name, integer=integer)


def create_app(client: Optional[WallapopClient] = None) -> Flask:
    """
    Builds the Flask app.

    Args:
        client: Client used for upstream calls. A new one (configured from
            config / environment) is created when omitted.
    """
    app = Flask(__name__)
    wallapop = client if client is not None else WallapopClient()

    CORS(app)

    @app.errorhandler(WallaproxyException)
    def handle_wallaproxy_error(err: WallaproxyException):
        if isinstance(err, WallaproxyRequestError) and err.status_code:
            status = err.status_code
        elif isinstance(err, WallaproxyConfigurationError):
            status = 400
        else:
            status = 500
        message = str(err) or "Internal server error"
        logger.error(f"[{status}] {message}")
        return jsonify({"error": message}), status

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Search ---

    @app.route("/api/v1/search")
    def search():
        params: SearchParams = {
            "keywords": request.args.get("keywords"),
            "min_sale_price": _number_arg("min_sale_price"),
            "max_sale_price": _number_arg("max_sale_price"),
            "distance": _number_arg("distance", integer=True),
            "latitude": _number_arg("latitude"),
            "longitude": _number_arg("longitude"),
            "category_id": _number_arg("category_id", integer=True),
            "subcategory_ids": request.args.get("subcategory_ids"),
            "order_by": request.args.get("order_by"),
            "limit": _number_arg("limit", integer=True),
            "next_page": request.args.get("next_page"),
        }

        if not params["keywords"] and not params["next_page"]:
            return jsonify({"error": "keywords or next_page is required"}), 400

        data = wallapop.search(params)

        # Post-filter: continental Spain only if requested
        if request.args.get("continental") == "true":
            data = filter_search_response(data)

        return jsonify(data)

    # --- Items ---

    @app.route("/api/v1/items/<item_id>")
    def item(item_id: str):
        return jsonify(wallapop.get_item(item_id))

    @app.route("/api/v1/items/<item_id>/counters")
    def item_counters(item_id: str):
        data = wallapop.get_item(item_id)
        counters = data.get("counters") if isinstance(data, dict) else None
        return jsonify(counters if counters is not None else DEFAULT_COUNTERS)

    @app.route("/api/v1/itemId")
    def item_id_from_url():
        url = request.args.get("url")
        if not url:
            return jsonify({"error": "url query parameter is required"}), 400
        return jsonify({"itemId": wallapop.extract_item_id(url)})

    # --- Users ---

    @app.route("/api/v1/users/<user_id>")
    def user(user_id: str):
        return jsonify(wallapop.get_user(user_id))

    @app.route("/api/v1/users/<user_id>/stats")
    def user_stats(user_id: str):
        return jsonify(wallapop.get_user_stats(user_id))

    @app.route("/api/v1/users/<user_id>/items")
    def user_items(user_id: str):
        data = wallapop.get_user_items(
            user_id,
            limit=_number_arg("limit", integer=True),
            next_page=request.args.get("next_page"),
        )
        return jsonify(data)

    # --- Categories ---

    @app.route("/api/v1/categories")
    def categories():
        return jsonify(wallapop.get_categories())

    # --- Messaging inbox ---

    @app.route("/api/v1/inbox")
    def inbox():
        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer "):
            return jsonify({"error": "Bearer token required in Authorization header"}), 401
        data = wallapop.get_inbox(
            auth[len("Bearer "):],
            page_size=_number_arg("page_size", integer=True),
            max_messages=_number_arg("max_messages", integer=True),
        )
        return jsonify(data)

    return app


def run_server(host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    port = port if port is not None else config.PORT
    app = create_app()
    print(f"Wallapop API running on http://localhost:{port}")
    print(f"   Proxy: {'configured' if config.PROXY_URL else 'not configured'}")
    app.run(host=host, port=port)


if __name__ == "__main__":
    run_server()
