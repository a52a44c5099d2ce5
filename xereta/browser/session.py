"""
Playwright host adapter.

Drives a Chromium context and turns its events into the tracker's
network-event intake: each page is a tab with its own id, every
request yields a before-request and a before-send-headers event, every
response yields a headers-received event, and closing a page removes
the tab.  The canvas init script is installed on the context so every
page is instrumented before its own scripts run.
"""

from __future__ import annotations

import asyncio
import itertools

from playwright import async_api

from xereta import config
from xereta.canvas import script as canvas_script
from xereta.models import tracking
from xereta.tracking import tracker as tracker_mod
from xereta.utils import logger

log = logger.create_logger("BrowserSession")

# Playwright resource types renamed to the host event vocabulary.
_RESOURCE_TYPES = {
    "xhr": "xmlhttprequest",
    "fetch": "xmlhttprequest",
    "eventsource": "xmlhttprequest",
    "texttrack": "media",
    "manifest": "other",
}


def resource_type(request: async_api.Request) -> str:
    """Map a Playwright request to a host resource type (``main_frame`` for top-level navigations)."""
    kind = request.resource_type
    if kind == "document":
        try:
            frame = request.frame
            return "main_frame" if frame.parent_frame is None else "sub_frame"
        except async_api.Error:
            return "sub_frame"
    return _RESOURCE_TYPES.get(kind, kind)


def _headers(raw: list[dict[str, str]]) -> list[tracking.HttpHeader]:
    return [tracking.HttpHeader(name=h["name"], value=h.get("value")) for h in raw]


class BrowserSession:
    """One browser context whose pages feed a :class:`ThirdPartyTracker`."""

    def __init__(
        self,
        tracker: tracker_mod.ThirdPartyTracker,
        settings: config.Settings | None = None,
    ) -> None:
        self._tracker = tracker
        self._settings = settings or config.get_settings()
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None
        self._context: async_api.BrowserContext | None = None
        self._page: async_api.Page | None = None
        self._tab_ids: dict[async_api.Page, int] = {}
        self._next_tab_id = itertools.count(1)

    # ==========================================================================
    # State
    # ==========================================================================

    @property
    def page(self) -> async_api.Page:
        if self._page is None:
            raise RuntimeError("No browser session active")
        return self._page

    @property
    def tab_id(self) -> int:
        """Tab id of the main page."""
        return self._tab_ids[self.page]

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def launch(self) -> None:
        """Start Chromium, install the canvas script and open the main page."""
        log.info("Launching browser", {"headless": self._settings.headless})
        self._playwright = await async_api.async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self._settings.headless)
        self._context = await self._browser.new_context(java_script_enabled=True)
        await self._context.add_init_script(canvas_script.CANVAS_INIT_SCRIPT)
        self._context.on("page", self._attach_page)
        self._page = await self._context.new_page()
        if self._page not in self._tab_ids:
            self._attach_page(self._page)

    def _attach_page(self, page: async_api.Page) -> None:
        if page in self._tab_ids:
            return
        tab_id = next(self._next_tab_id)
        self._tab_ids[page] = tab_id
        page.on("request", lambda request: self._on_request(tab_id, page, request))
        page.on("response", lambda response: self._on_response(tab_id, page, response))
        page.on("close", lambda _page: self._on_close(tab_id, page))
        log.debug("Tab attached", {"tabId": tab_id})

    async def navigate_to(self, url: str) -> bool:
        """Load *url* in the main page; ``False`` on navigation failure."""
        try:
            response = await self.page.goto(
                url, wait_until="load", timeout=self._settings.navigation_timeout_ms
            )
        except async_api.Error as exc:
            log.warn("Navigation error", {"url": url, "error": str(exc)})
            return False
        if response is not None and response.status >= 400:
            log.warn("Navigation returned error status", {"url": url, "status": response.status})
        return True

    async def settle(self) -> None:
        """Give late-loading trackers time to fire."""
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self._settings.navigation_timeout_ms)
        except async_api.Error:
            log.debug("Network idle timeout")
        await asyncio.sleep(self._settings.settle_ms / 1000)

    async def close(self) -> None:
        """Close the browser.  Teardown errors are logged and ignored."""
        if self._context is not None:
            try:
                await self._context.close()
            except async_api.Error as exc:
                log.debug("Context close error (non-fatal)", {"error": str(exc)})
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except async_api.Error as exc:
                log.debug("Browser close error (non-fatal)", {"error": str(exc)})
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None
        log.debug("Browser session closed")

    # ==========================================================================
    # Event intake
    # ==========================================================================

    async def _on_request(self, tab_id: int, page: async_api.Page, request: async_api.Request) -> None:
        event = tracking.NetworkEvent(
            tab_id=tab_id,
            url=request.url,
            initiator_url=page.url,
            type=resource_type(request),
        )
        self._tracker.on_event("beforeRequest", event)
        try:
            raw_headers = await request.headers_array()
        except async_api.Error as exc:
            log.debug("Request headers unavailable", {"url": request.url, "error": str(exc)})
            return
        # tab closed while the headers were awaited
        if self._tab_ids.get(page) != tab_id:
            return
        event.request_headers = _headers(raw_headers)
        self._tracker.on_event("beforeSendHeaders", event)

    async def _on_response(self, tab_id: int, page: async_api.Page, response: async_api.Response) -> None:
        try:
            raw_headers = await response.headers_array()
        except async_api.Error as exc:
            log.debug("Response headers unavailable", {"url": response.url, "error": str(exc)})
            return
        if self._tab_ids.get(page) != tab_id:
            return
        self._tracker.on_event(
            "headersReceived",
            tracking.NetworkEvent(
                tab_id=tab_id,
                url=response.url,
                initiator_url=page.url,
                type=resource_type(response.request),
                response_headers=_headers(raw_headers),
            ),
        )

    def _on_close(self, tab_id: int, page: async_api.Page) -> None:
        self._tab_ids.pop(page, None)
        self._tracker.on_tab_removed(tab_id)
