"""
Per-tab third-party activity.

A :class:`TabActivityStore` is an ordinary object, so each tracker
(and each test) owns its own; nothing here is process-global.
"""

from __future__ import annotations

import dataclasses

from xereta.models import tracking


@dataclasses.dataclass
class TabActivity:
    """Third-party domains contacted by one tab and the cookies exchanged with them.

    ``third_party_domains`` is a dict used as an insertion-ordered set.
    """

    third_party_domains: dict[str, None] = dataclasses.field(default_factory=dict)
    cookies_by_domain: dict[str, dict[str, tracking.CookieRecord]] = dataclasses.field(default_factory=dict)

    def add_domain(self, domain: str) -> None:
        self.third_party_domains.setdefault(domain, None)

    def domain_cookies(self, domain: str) -> dict[str, tracking.CookieRecord]:
        """Cookie table for *domain*, created on first use."""
        return self.cookies_by_domain.setdefault(domain, {})


class TabActivityStore:
    """Mapping of tab id to :class:`TabActivity`, with lazy creation."""

    def __init__(self) -> None:
        self._tabs: dict[int, TabActivity] = {}

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._tabs

    def __len__(self) -> int:
        return len(self._tabs)

    def get(self, tab_id: int) -> TabActivity | None:
        return self._tabs.get(tab_id)

    def get_or_create(self, tab_id: int) -> TabActivity:
        activity = self._tabs.get(tab_id)
        if activity is None:
            activity = self._tabs[tab_id] = TabActivity()
        return activity

    def remove(self, tab_id: int) -> bool:
        """Drop everything recorded for *tab_id*; return whether it existed."""
        return self._tabs.pop(tab_id, None) is not None

    def snapshot(self, tab_id: int) -> tracking.ThirdPartyData:
        """Copy of the tab's state as plain collections.

        A tab with no recorded activity yields the empty shape.
        Records are copied so later events do not alter a snapshot
        already handed out.
        """
        activity = self._tabs.get(tab_id)
        if activity is None:
            return tracking.ThirdPartyData()
        return tracking.ThirdPartyData(
            domains=list(activity.third_party_domains),
            cookies={
                domain: {name: record.model_copy(deep=True) for name, record in cookies.items()}
                for domain, cookies in activity.cookies_by_domain.items()
            },
        )
