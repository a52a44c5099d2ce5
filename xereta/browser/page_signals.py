"""
Readings taken inside the page: localStorage size, first-party cookies
and the canvas snapshot collected by the init script.
"""

from __future__ import annotations

from typing import Any

from playwright import async_api

from xereta.canvas import script as canvas_script
from xereta.models import analysis
from xereta.tracking import cookies
from xereta.utils import logger

log = logger.create_logger("PageSignals")

# localStorage size is the UTF-8 length of its JSON form minus the
# enclosing braces.
_READ_PAGE_EXPRESSION = f"""() => {{
    let localStorageUsage = 0;
    try {{
        localStorageUsage = new TextEncoder().encode(JSON.stringify(window.localStorage)).length - 2;
    }} catch (e) {{}}
    let cookieString = '';
    try {{ cookieString = document.cookie; }} catch (e) {{}}
    return {{
        localStorageUsage,
        canvasElements: document.getElementsByTagName('canvas').length,
        cookieString,
        canvas: ({canvas_script.SNAPSHOT_EXPRESSION})(),
    }};
}}"""


def page_signals_from_raw(raw: dict[str, Any]) -> analysis.PageSignals:
    """Build :class:`PageSignals` from the in-page reading."""
    page_cookies = cookies.parse_document_cookies(str(raw.get("cookieString") or ""))
    return analysis.PageSignals(
        local_storage_usage=max(int(raw.get("localStorageUsage") or 0), 0),
        canvas_elements=int(raw.get("canvasElements") or 0),
        cookie_count=len(page_cookies),
        cookies=page_cookies,
        canvas_fingerprinting=canvas_script.fingerprint_from_page(raw.get("canvas")),
    )


async def collect_page_signals(page: async_api.Page) -> analysis.PageSignals:
    """Read the page; an unreadable page yields empty signals."""
    try:
        raw = await page.evaluate(_READ_PAGE_EXPRESSION)
    except async_api.Error as exc:
        log.warn("Failed to read page signals", {"error": str(exc)})
        return analysis.PageSignals()
    signals = page_signals_from_raw(raw)
    log.debug(
        "Page signals",
        {
            "localStorage": signals.local_storage_usage,
            "cookies": signals.cookie_count,
            "canvases": signals.canvas_elements,
            "suspicion": signals.canvas_fingerprinting.suspicious_score,
        },
    )
    return signals
