"""
First- versus third-party classification of request hosts.

The base domain is the last two dot-separated labels of a hostname.
Multi-label public suffixes such as ``co.uk`` are therefore treated
as the base domain itself, so ``a.co.uk`` and ``b.co.uk`` count as
the same party.  Scoring weights are calibrated against this rule.
"""

from __future__ import annotations

from urllib import parse


def extract_host(url: str | None) -> str | None:
    """Return the lower-cased hostname of *url*, or ``None`` if it has none.

    Never raises: malformed URLs simply yield ``None``.
    """
    if not url:
        return None
    try:
        host = parse.urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def base_domain(hostname: str) -> str:
    """Return the last two labels of *hostname* (``a.b.example.com`` -> ``example.com``)."""
    parts = hostname.split(".")
    return ".".join(parts[-2:]) if len(parts) > 2 else hostname


def is_third_party(request_host: str | None, tab_host: str | None, self_origin: str | None = None) -> bool:
    """Decide whether a request to *request_host* from a tab on *tab_host* is third-party.

    Args:
        request_host: Hostname the request goes to.
        tab_host: Hostname of the tab's top-level document.
        self_origin: The analyzer's own origin identifier; requests
            to it are never third-party.

    Returns:
        ``False`` when either host is missing or the request targets
        *self_origin*, otherwise whether the base domains differ.
    """
    if not request_host or not tab_host:
        return False
    if self_origin and request_host == self_origin:
        return False
    return base_domain(request_host) != base_domain(tab_host)
