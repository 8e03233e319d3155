"""
Small helpers shared by the client, the CLI and the HTTP server.
"""

import logging
import math
import re
from typing import Any, Optional, Union

from .exceptions import WallaproxyConfigurationError

Number = Union[int, float]


def clean_text(text: Optional[str]) -> str:
    """Collapses runs of whitespace and strips the ends."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", str(text)).strip()


def parse_number(
    value: Any, name: str = "value", integer: bool = False
) -> Optional[Number]:
    """
    Converts a CLI flag or query-string value into a number.

    Empty values mean "not set" and return None. Integral values come back
    as int so they are rendered without a trailing ".0" in URLs.
    With `integer=True` fractional values are rejected (counts, IDs, ports).

    Raises:
        WallaproxyConfigurationError: If the value is not a finite number.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise WallaproxyConfigurationError(f"Invalid number for {name}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError as e:
        raise WallaproxyConfigurationError(f"Invalid number for {name}: {value!r}") from e
    if not math.isfinite(number):
        raise WallaproxyConfigurationError(f"Invalid number for {name}: {value!r}")
    if number.is_integer():
        return int(number)
    if integer:
        raise WallaproxyConfigurationError(f"Expected an integer for {name}: {value!r}")
    return number


def validate_prices(min_price: Optional[Number], max_price: Optional[Number]) -> None:
    """Checks that the price range is non-negative and not inverted."""
    if min_price is not None and min_price < 0:
        raise WallaproxyConfigurationError("Minimum price cannot be negative")
    if max_price is not None and max_price < 0:
        raise WallaproxyConfigurationError("Maximum price cannot be negative")
    if min_price is not None and max_price is not None and min_price > max_price:
        raise WallaproxyConfigurationError(
            f"Minimum price ({min_price}) is greater than maximum price ({max_price})"
        )


def set_verbosity(verbose: int) -> int:
    """
    Sets the package log level from a verbosity count
    (0=WARNING, 1=INFO, 2+=DEBUG) and returns the level.
    """
    if verbose <= 0:
        log_level = logging.WARNING
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = logging.DEBUG

    package_logger = logging.getLogger("wallaproxy")
    package_logger.setLevel(log_level)
    for handler in package_logger.handlers or logging.getLogger().handlers:
        handler.setLevel(log_level)
    return log_level
