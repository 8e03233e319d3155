"""
Geographic filters for Wallapop search results.

Continental Spain = the peninsula, without Canarias (35xxx, 38xxx),
Baleares (07xxx), Ceuta (51xxx) and Melilla (52xxx).

An item is classified from its `location` object, using the upstream
snake_case keys as they come from the API. The signals are checked in a
fixed order: country code, postal code, coordinates. Anything missing or
malformed counts as "not continental"; these functions never raise.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, TypeVar

from .fetch_api import search_items

logger = logging.getLogger(__name__)

# Postal code prefixes (provinces) that are NOT continental Spain
NON_CONTINENTAL_PREFIXES = {
    "07",  # Baleares
    "35",  # Las Palmas (Canarias)
    "38",  # Santa Cruz de Tenerife (Canarias)
    "51",  # Ceuta
    "52",  # Melilla
}

# Bounding box for continental Spain (generous).
# It also contains Mallorca and bits of Portugal/France near the borders;
# callers rely on this, do not tighten it.
CONTINENTAL_BBOX = {
    "lat_min": 35.9,  # Southern tip (Tarifa)
    "lat_max": 43.85,  # Northern tip (Galicia/Asturias)
    "lon_min": -9.4,  # Western tip (Portugal border)
    "lon_max": 3.4,  # Eastern tip (Cap de Creus)
}

T = TypeVar("T", bound=Mapping[str, Any])


def _coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _postal_code_match(postal: str) -> bool:
    prefix = postal[:2]
    if not prefix.isascii():
        return False
    try:
        num = int(prefix, 10)
    except ValueError:
        return False
    if num < 1 or num > 52:
        return False
    return prefix not in NON_CONTINENTAL_PREFIXES


def is_in_continental_spain(item: Mapping[str, Any]) -> bool:
    """
    Checks whether an item is located in continental Spain.

    Priority: country_code -> postal code -> bounding box.
    A country code other than "ES" rejects the item (Portugal, Italy,
    France...), but "ES" alone does not accept it. A usable postal code
    decides on its own; coordinates are only consulted without one.

    Args:
        item: Any mapping with an optional `location` mapping holding
            `postal_code`, `city`, `latitude`, `longitude`, `country_code`.

    Returns:
        True if the item is in continental Spain, False otherwise
        (including when there is not enough data to tell).
    """
    loc = item.get("location") if isinstance(item, Mapping) else None
    if not loc or not isinstance(loc, Mapping):
        return False

    country_code = loc.get("country_code")
    if country_code and country_code != "ES":
        return False

    postal = loc.get("postal_code")
    if isinstance(postal, str):
        postal = postal.strip()
        if len(postal) >= 2:
            return _postal_code_match(postal)

    lat = _coordinate(loc.get("latitude"))
    lon = _coordinate(loc.get("longitude"))
    if lat is not None and lon is not None:
        return (
            CONTINENTAL_BBOX["lat_min"] <= lat <= CONTINENTAL_BBOX["lat_max"]
            and CONTINENTAL_BBOX["lon_min"] <= lon <= CONTINENTAL_BBOX["lon_max"]
        )

    # No usable location data
    return False


def filter_continental_spain(items: Iterable[T]) -> List[T]:
    """Keeps only the items in continental Spain, in their original order."""
    return [item for item in items if is_in_continental_spain(item)]


def filter_search_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applies the continental filter to the items of a /search response.

    The items list under data.section.payload is replaced by the filtered
    one; the items themselves are left untouched. Responses without an
    items list are returned as they are.
    """
    items = search_items(data)
    if items is None:
        return data

    filtered = filter_continental_spain(items)
    logger.info(
        f"Continental filter kept {len(filtered)} of {len(items)} items."
    )
    data["data"]["section"]["payload"]["items"] = filtered
    return data
