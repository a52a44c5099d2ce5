"""Models for network events, cookie records, and per-tab snapshots."""

from __future__ import annotations

from typing import Literal

import pydantic

from xereta.models.base import WireModel

CookieSource = Literal["request", "response"]


class CookieRecord(WireModel):
    """A cookie seen on traffic to one third-party domain.

    ``first_seen`` and ``last_seen`` are epoch milliseconds.
    ``source`` is how the cookie was first observed, except that a
    ``Set-Cookie`` for a request-seen cookie replaces it with
    ``"response"``.
    """

    name: str
    value: str = ""
    attributes: dict[str, str | bool] = pydantic.Field(default_factory=dict)
    source: CookieSource
    first_seen: int
    last_seen: int
    request_count: int | None = None


class HttpHeader(WireModel):
    name: str
    value: str | None = None


class NetworkEvent(WireModel):
    """One network observation delivered by the host.

    ``type`` follows the host's resource-type names; ``"main_frame"``
    marks a top-level navigation.
    """

    tab_id: int
    url: str
    initiator_url: str | None = None
    type: str = "other"
    request_headers: list[HttpHeader] | None = None
    response_headers: list[HttpHeader] | None = None


class ThirdPartyData(WireModel):
    """Snapshot returned for a tab: domains contacted and their cookies."""

    domains: list[str] = pydantic.Field(default_factory=list)
    cookies: dict[str, dict[str, CookieRecord]] = pydantic.Field(default_factory=dict)
