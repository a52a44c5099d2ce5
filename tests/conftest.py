"""Shared fixtures for the test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from xereta.models import analysis, tracking
from xereta.tracking import tracker as tracker_mod

TAB = 7
PAGE_URL = "https://www.example.com/article"


class FakeClock:
    """Deterministic millisecond clock; each call advances by ``step``."""

    def __init__(self, start: int = 1_000, step: int = 10) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


def _headers(raw: Any) -> list[tracking.HttpHeader] | None:
    if raw is None:
        return None
    pairs = raw.items() if isinstance(raw, dict) else raw
    return [tracking.HttpHeader(name=k, value=v) for k, v in pairs]


# ── Tracker ─────────────────────────────────────────────────────


@pytest.fixture()
def tab_id() -> int:
    """Tab every ``make_event`` event belongs to by default."""
    return TAB


@pytest.fixture()
def page_url() -> str:
    """Top-level document URL used as the default initiator."""
    return PAGE_URL


@pytest.fixture()
def make_event() -> Callable[..., tracking.NetworkEvent]:
    """Factory for network events on the default tab, initiated by the default page."""

    def factory(
        url: str,
        *,
        tab_id: int = TAB,
        initiator: str | None = PAGE_URL,
        type: str = "script",
        request_headers: dict[str, str] | list[tuple[str, str]] | None = None,
        response_headers: list[tuple[str, str]] | None = None,
    ) -> tracking.NetworkEvent:
        return tracking.NetworkEvent(
            tab_id=tab_id,
            url=url,
            initiator_url=initiator,
            type=type,
            request_headers=_headers(request_headers),
            response_headers=_headers(response_headers),
        )

    return factory


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tracker(clock: FakeClock) -> tracker_mod.ThirdPartyTracker:
    return tracker_mod.ThirdPartyTracker(clock=clock, self_origin="xereta-extension-id")


# ── Scoring ─────────────────────────────────────────────────────


@pytest.fixture()
def cookie_table() -> list[analysis.CookieMetadata]:
    """Small classification table with one row per bucket."""
    return [
        analysis.CookieMetadata(name="_fbp", platform="Facebook", category="Marketing"),
        analysis.CookieMetadata(name="IDE", platform="DoubleClick", category="Advertising"),
        analysis.CookieMetadata(name="_ga", platform="Google Analytics", category="Analytics"),
        analysis.CookieMetadata(name="_hjid", platform="Hotjar", category="Statistics"),
        analysis.CookieMetadata(name="PHPSESSID", platform="PHP", category="Functional"),
    ]
