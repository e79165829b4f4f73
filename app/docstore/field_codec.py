"""
Reversible encoding of property names the store refuses.

MongoDB rejects ``.`` anywhere and ``$`` at the start of a field name.
Such names are stored as ``Base64:<readable>:<payload>`` where the readable
part is only a hint and the payload is the base64 of the original name.
"""

import base64
import binascii
import logging
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

ENCODED_PREFIX = "Base64:"
# The payload never contains ":", so it is whatever follows the last colon.
ENCODED_PATTERN = re.compile(r"Base64:.*:([^:]*)", re.DOTALL)


def _needs_encoding(name: str) -> bool:
    return "." in name or name.startswith("$") or bool(ENCODED_PATTERN.fullmatch(name))


def sanitize(name: str | None) -> str | None:
    """
    Encode a property name so the store accepts it.

    Names without ``.`` and without a leading ``$`` are returned unchanged.
    Names that already look encoded are encoded again so that
    ``desanitize(sanitize(name)) == name`` always holds.

    Args:
        name: Property name

    Returns:
        Store-safe property name

    """
    if not name or not _needs_encoding(name):
        return name

    readable = name.lstrip("$").replace(".", "_")
    payload = base64.b64encode(name.encode("utf-8")).decode("ascii")
    return f"{ENCODED_PREFIX}{readable}:{payload}"


def desanitize(name: str | None) -> str | None:
    """
    Decode a property name produced by :func:`sanitize`.

    Args:
        name: Stored property name

    Returns:
        The original property name

    """
    if not name:
        return name

    match = ENCODED_PATTERN.fullmatch(name)
    if not match:
        return name

    try:
        return base64.b64decode(match.group(1), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.warning("Field name '%s' looks encoded but is not valid base64", name)
        return name


def _transform_value(value: object, transform: Callable[[str], str]) -> object:
    if isinstance(value, dict):
        return _transform_keys(value, transform)
    if isinstance(value, list):
        return [_transform_value(item, transform) for item in value]
    return value


def _transform_keys(row: dict, transform: Callable[[str], str]) -> dict:
    return {
        transform(key): _transform_value(value, transform) for key, value in row.items()
    }


def sanitize_fields(row: dict[str, object] | None) -> dict[str, object] | None:
    """Sanitize every key of a mapping, recursing into nested maps."""
    if row is None:
        return None
    return _transform_keys(row, sanitize)


def desanitize_fields(row: dict[str, object] | None) -> dict[str, object] | None:
    """Desanitize every key of a mapping, recursing into nested maps."""
    if row is None:
        return None
    return _transform_keys(row, desanitize)


def sanitize_value(value: object) -> object:
    """Sanitize the keys of any maps held in a value."""
    return _transform_value(value, sanitize)


def desanitize_value(value: object) -> object:
    """Desanitize the keys of any maps held in a value."""
    return _transform_value(value, desanitize)
