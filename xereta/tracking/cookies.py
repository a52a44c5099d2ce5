"""
Cookie header parsing.

Malformed cookie strings are common on real traffic, so every parser
here reports failure by returning ``None`` or skipping the segment
rather than raising.
"""

from __future__ import annotations

from xereta.models import tracking
from xereta.utils import logger

log = logger.create_logger("CookieParser")


def _split_pair(segment: str) -> tuple[str, str | None]:
    """Split ``key=value`` on the first ``=``; ``value`` is ``None`` when absent."""
    key, sep, value = segment.partition("=")
    return key.strip(), (value.strip() if sep else None)


def parse_request_cookie_header(header_value: str) -> list[tuple[str, str]]:
    """Parse a ``Cookie`` request header into ``(name, value)`` pairs.

    Segments without a name (``"; ;"`` or ``"=x"``) are dropped.
    A segment with no ``=`` is kept with an empty value.
    """
    pairs: list[tuple[str, str]] = []
    for segment in header_value.split(";"):
        name, value = _split_pair(segment.strip())
        if not name:
            continue
        pairs.append((name, value or ""))
    return pairs


def parse_set_cookie_header(header_value: str, now: int) -> tracking.CookieRecord | None:
    """Parse one ``Set-Cookie`` header value into a response-sourced record.

    Args:
        header_value: e.g. ``"id=42; Path=/; Secure; SameSite=None"``.
        now: Observation time in epoch milliseconds, used for both
            ``first_seen`` and ``last_seen``.

    Returns:
        The record, with attribute keys lower-cased and valueless
        attributes set to ``True``; ``None`` if the header has no
        usable ``name=value`` part.
    """
    if not isinstance(header_value, str) or not header_value.strip():
        return None

    name_value, *attribute_segments = header_value.split(";")
    name, value = _split_pair(name_value)
    if not name or value is None:
        log.debug("Dropping unparseable Set-Cookie", {"header": header_value})
        return None

    attributes: dict[str, str | bool] = {}
    for segment in attribute_segments:
        key, attr_value = _split_pair(segment)
        if not key:
            continue
        attributes[key.lower()] = attr_value if attr_value else True

    return tracking.CookieRecord(
        name=name,
        value=value,
        attributes=attributes,
        source="response",
        first_seen=now,
        last_seen=now,
    )


def parse_document_cookies(cookie_string: str) -> list[str]:
    """Split ``document.cookie`` into trimmed ``name=value`` strings."""
    return [c.strip() for c in cookie_string.split(";") if c.strip()]


def cookie_name(raw_cookie: str) -> str:
    """Name part of a raw ``name=value`` cookie string."""
    return raw_cookie.partition("=")[0].strip()
