"""
Third-party tracker: folds a tab's network events into its activity.

Each event is classified by comparing the request host against the
host of the initiating document.  Third-party traffic adds the
request host to the tab's domain set; cookies carried in ``Cookie``
request headers and ``Set-Cookie`` response headers are attributed to
the requested host, not to the tab.

Handlers only read the event.  They never return a value the host
could use to block or rewrite traffic.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Literal

from xereta.models import tracking
from xereta.tracking import cookies, domains
from xereta.tracking import store as store_mod
from xereta.utils import logger

log = logger.create_logger("Tracker")

EventKind = Literal["beforeRequest", "beforeSendHeaders", "headersReceived"]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _headers_named(headers: list[tracking.HttpHeader] | None, name: str) -> list[str]:
    """Non-empty values of every header called *name* (case-insensitive)."""
    if not headers:
        return []
    wanted = name.lower()
    return [h.value for h in headers if h.name.lower() == wanted and h.value]


class ThirdPartyTracker:
    """Per-tab aggregator of third-party domains and cookies.

    Args:
        store: Activity store to mutate; a fresh one by default.
        clock: Returns the current time in epoch milliseconds.
        self_origin: The analyzer's own origin; never third-party.
    """

    def __init__(
        self,
        store: store_mod.TabActivityStore | None = None,
        clock: Callable[[], int] | None = None,
        self_origin: str | None = None,
    ) -> None:
        self._store = store if store is not None else store_mod.TabActivityStore()
        self._clock = clock or _now_ms
        self._self_origin = self_origin or None

    @property
    def store(self) -> store_mod.TabActivityStore:
        return self._store

    def _third_party_host(self, event: tracking.NetworkEvent) -> str | None:
        """The request host when *event* is third-party, else ``None``."""
        request_host = domains.extract_host(event.url)
        if request_host is None:
            log.debug("Dropping event with unparseable URL", {"url": event.url})
            return None
        tab_host = domains.extract_host(event.initiator_url)
        if domains.is_third_party(request_host, tab_host, self._self_origin):
            return request_host
        return None

    # ==========================================================================
    # Event handlers
    # ==========================================================================

    def on_event(self, kind: EventKind, event: tracking.NetworkEvent) -> None:
        """Dispatch *event* to the handler for *kind*."""
        handler = {
            "beforeRequest": self.on_before_request,
            "beforeSendHeaders": self.on_before_send_headers,
            "headersReceived": self.on_headers_received,
        }.get(kind)
        if handler is None:
            log.debug("Ignoring unknown event kind", {"kind": kind})
            return
        handler(event)

    def on_before_request(self, event: tracking.NetworkEvent) -> None:
        """Record the request host if it is third-party (top-level navigations excluded)."""
        if event.type == "main_frame":
            return
        host = self._third_party_host(event)
        if host is None:
            return
        activity = self._store.get_or_create(event.tab_id)
        if host not in activity.third_party_domains:
            log.debug("Third-party domain", {"tabId": event.tab_id, "domain": host})
        activity.add_domain(host)

    def on_before_send_headers(self, event: tracking.NetworkEvent) -> None:
        """Upsert every cookie sent to a third-party host.

        A repeat sighting only refreshes ``last_seen`` and bumps
        ``request_count``; value, attributes and ``first_seen`` keep
        their original values.
        """
        host = self._third_party_host(event)
        if host is None:
            return
        header_values = _headers_named(event.request_headers, "cookie")
        if not header_values:
            return

        domain_cookies = self._store.get_or_create(event.tab_id).domain_cookies(host)
        for header_value in header_values:
            for name, value in cookies.parse_request_cookie_header(header_value):
                now = self._clock()
                existing = domain_cookies.get(name)
                if existing is not None:
                    existing.last_seen = max(existing.last_seen, now)
                    existing.request_count = (existing.request_count or 0) + 1
                    continue
                domain_cookies[name] = tracking.CookieRecord(
                    name=name,
                    value=value,
                    source="request",
                    first_seen=now,
                    last_seen=now,
                    request_count=1,
                )

    def on_headers_received(self, event: tracking.NetworkEvent) -> None:
        """Store each cookie a third-party host sets.

        The parsed ``Set-Cookie`` replaces any earlier record for the
        same name, but inherits its ``first_seen`` and
        ``request_count``.  Unparseable headers are skipped.
        """
        host = self._third_party_host(event)
        if host is None:
            return
        header_values = _headers_named(event.response_headers, "set-cookie")
        if not header_values:
            return

        domain_cookies = self._store.get_or_create(event.tab_id).domain_cookies(host)
        for header_value in header_values:
            record = cookies.parse_set_cookie_header(header_value, self._clock())
            if record is None:
                continue
            existing = domain_cookies.get(record.name)
            if existing is not None:
                record.first_seen = min(existing.first_seen, record.first_seen)
                record.request_count = existing.request_count
            domain_cookies[record.name] = record

    def on_tab_removed(self, tab_id: int) -> None:
        """Forget everything recorded for *tab_id*."""
        if self._store.remove(tab_id):
            log.debug("Tab activity removed", {"tabId": tab_id})

    # ==========================================================================
    # Queries
    # ==========================================================================

    def snapshot(self, tab_id: int) -> tracking.ThirdPartyData:
        """Current domains and cookies for *tab_id*; empty if none recorded."""
        return self._store.snapshot(tab_id)
