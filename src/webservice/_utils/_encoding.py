"""Parameter encoding for query strings and request bodies."""

import json
import logging
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

logger = logging.getLogger(__name__)


def percent_encode(value: Any) -> str:
    """Percent encode the string form of ``value``.

    Every character outside the unreserved set (letters, digits and ``-_.~``)
    is escaped, including ``!*'();:@&=+$,/?%#[]``, so encoded names and values
    can never be confused with query punctuation.
    """
    return quote(str(value), safe="")


def percent_encoded_query_string(parameters: Mapping[str, Any]) -> str:
    """Return ``name=value`` pairs joined with ``&``.

    Pair order follows the mapping's iteration order and carries no meaning.
    """
    return "&".join(
        f"{percent_encode(name)}={percent_encode(value)}"
        for name, value in parameters.items()
    )


def append_percent_encoded_query(url: str, query: str) -> Optional[str]:
    """Append an already encoded query to ``url``, keeping any existing query.

    Returns ``None`` when ``url`` cannot be parsed.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        logger.debug(f"Unable to parse URL for query encoding: {url}")
        return None

    if not query:
        return url

    combined = f"{parts.query}&{query}" if parts.query else query
    return urlunsplit(parts._replace(query=combined))


def encode_url(url: str, parameters: Mapping[str, Any]) -> Optional[str]:
    """Encode ``parameters`` as a query string appended to ``url``."""
    return append_percent_encoded_query(url, percent_encoded_query_string(parameters))


def encode_percent_body(parameters: Mapping[str, Any]) -> Optional[bytes]:
    return percent_encoded_query_string(parameters).encode("utf-8")


def encode_json_body(parameters: Mapping[str, Any]) -> Optional[bytes]:
    """Serialize ``parameters`` as compact JSON.

    A mapping that cannot be serialized, including one holding NaN or
    infinite floats, yields ``None`` instead of raising;
    callers treat that as "no parameters were encoded".
    """
    try:
        return json.dumps(
            parameters, separators=(",", ":"), allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        logger.debug(f"Unable to JSON encode request parameters: {e}")
        return None
