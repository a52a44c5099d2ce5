"""
URL analysis pipeline.

1. Launch a browser session whose network events feed a fresh
   tracker, and download the reference datasets concurrently.
2. Load the URL and let late trackers fire.
3. Ask the tracker and the page for their readings through a
   :class:`MessageChannel`, exactly as a presenter would.
4. Assemble the observation bundle and score it.
"""

from __future__ import annotations

import asyncio

from xereta import config
from xereta.analysis import scoring
from xereta.browser import page_signals
from xereta.browser import session as browser_session
from xereta.data import loader
from xereta.messaging import channel as channel_mod
from xereta.messaging import queries
from xereta.models import analysis, tracking
from xereta.tracking import domains
from xereta.tracking import tracker as tracker_mod
from xereta.utils import logger

log = logger.create_logger("Analyze")


class AnalysisError(Exception):
    """The page could not be loaded, so nothing was observed."""


def build_observation_bundle(
    signals: analysis.PageSignals,
    third_party: tracking.ThirdPartyData,
    reference: analysis.ReferenceData,
) -> analysis.ObservationBundle:
    """Combine page, tracker and reference readings into one scoring input."""
    return analysis.ObservationBundle(
        local_storage_usage=signals.local_storage_usage,
        cookies=signals.cookies,
        cookie_count=signals.cookie_count,
        canvas_fingerprint=signals.canvas_fingerprinting,
        third_party_domains=third_party.domains,
        third_party_cookies=third_party.cookies,
        commonly_blocked_domains=reference.commonly_blocked_domains,
        cookie_classification_table=reference.cookie_database,
    )


def build_report(url: str, bundle: analysis.ObservationBundle) -> analysis.PrivacyReport:
    """Score *bundle* and attach the per-category drill-down."""
    categories = scoring.score_categories(bundle)
    return analysis.PrivacyReport(
        url=url,
        score=scoring.calculate_privacy_score(bundle, categories),
        categories=categories,
        observations=bundle,
    )


async def analyze_url(
    url: str,
    settings: config.Settings | None = None,
    reference: analysis.ReferenceData | None = None,
) -> analysis.PrivacyReport:
    """Load *url* in a fresh browser and return its privacy report.

    Args:
        url: Page to analyse.
        settings: Overrides the environment settings.
        reference: Pre-loaded reference data; downloaded when omitted.

    Raises:
        AnalysisError: The page failed to load.
    """
    settings = settings or config.get_settings()
    logger.clear_log_buffer()
    logger.start_log_file(domains.extract_host(url) or "analysis")
    log.section(f"Analyzing {url}")
    log.start_timer("analysis")

    tracker = tracker_mod.ThirdPartyTracker(self_origin=settings.self_origin)
    channel = channel_mod.MessageChannel("analysis")
    session = browser_session.BrowserSession(tracker, settings)

    reference_task = None
    if reference is None:
        reference_task = asyncio.create_task(loader.fetch_reference_data(settings))

    try:
        await session.launch()
        queries.serve_third_party_data(channel, tracker)
        queries.serve_page_signals(channel, lambda: page_signals.collect_page_signals(session.page))

        if not await session.navigate_to(url):
            raise AnalysisError(f"Could not load {url}")
        await session.settle()

        third_party, signals = await asyncio.gather(
            queries.request_third_party_data(channel, session.tab_id),
            queries.request_page_signals(channel),
        )
        if reference_task is not None:
            reference = await reference_task
            reference_task = None

        log.info(
            "Observations collected",
            {
                "thirdPartyDomains": len(third_party.domains),
                "thirdPartyCookieDomains": len(third_party.cookies),
                "firstPartyCookies": signals.cookie_count,
                "localStorage": signals.local_storage_usage,
            },
        )
        report = build_report(url, build_observation_bundle(signals, third_party, reference))
        log.end_timer("analysis", "Analysis complete")
    finally:
        if reference_task is not None:
            reference_task.cancel()
        await session.close()
        logger.end_log_file()
    return report
