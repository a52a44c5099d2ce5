"""
The two cross-context queries and their payload types.

- ``getThirdPartyData``: ``{tabId}`` -> :class:`ThirdPartyData`
- ``getPageSignals``: no payload -> :class:`PageSignals`
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from xereta.messaging import channel as channel_mod
from xereta.models import analysis, tracking
from xereta.models.base import WireModel
from xereta.tracking import tracker as tracker_mod

GET_THIRD_PARTY_DATA = "getThirdPartyData"
GET_PAGE_SIGNALS = "getPageSignals"


class GetThirdPartyDataRequest(WireModel):
    tab_id: int


def serve_third_party_data(channel: channel_mod.MessageChannel, tracker: tracker_mod.ThirdPartyTracker) -> None:
    """Answer ``getThirdPartyData`` from *tracker*'s current state."""

    def handle(payload: object) -> dict:
        request = GetThirdPartyDataRequest.model_validate(payload)
        return tracker.snapshot(request.tab_id).to_wire()

    channel.register(GET_THIRD_PARTY_DATA, handle)


def serve_page_signals(
    channel: channel_mod.MessageChannel,
    collect: Callable[[], Awaitable[analysis.PageSignals]],
) -> None:
    """Answer ``getPageSignals`` by running *collect* inside the page context."""

    async def handle(_payload: object) -> dict:
        return (await collect()).to_wire()

    channel.register(GET_PAGE_SIGNALS, handle)


async def request_third_party_data(channel: channel_mod.MessageChannel, tab_id: int) -> tracking.ThirdPartyData:
    response = await channel.request(GET_THIRD_PARTY_DATA, GetThirdPartyDataRequest(tab_id=tab_id).to_wire())
    return tracking.ThirdPartyData.model_validate(response)


async def request_page_signals(channel: channel_mod.MessageChannel) -> analysis.PageSignals:
    response = await channel.request(GET_PAGE_SIGNALS)
    return analysis.PageSignals.model_validate(response)
