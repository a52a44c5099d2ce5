"""
Loader for the two reference datasets the scorer reads.

- The domain blocklist, in Adblock Plus syntax (``||example.com^``),
  reduced to a set of domains.
- The Open Cookie Database CSV, reduced to
  :class:`~xereta.models.analysis.CookieMetadata` rows.

Parsing is pure.  :func:`fetch_reference_data` downloads both with one
shared ``aiohttp`` session; a dataset that cannot be downloaded is
logged and replaced by an empty collection so scoring falls back to
default weights.
"""

from __future__ import annotations

import asyncio
import csv
import io

import aiohttp

from xereta import config
from xereta.models import analysis
from xereta.utils import logger

log = logger.create_logger("ReferenceData")

# Open Cookie Database column -> CookieMetadata field
COOKIE_DATABASE_COLUMNS = {
    "Cookie / Data Key name": "name",
    "Domain": "domain",
    "Platform": "platform",
    "Category": "category",
    "Description": "description",
    "Retention period": "retention",
    "Data Controller": "controller",
    "User Privacy & GDPR Rights Portals": "privacy",
    "Wildcard match": "wildcard",
}

_FETCH_HEADERS = {"User-Agent": "xereta/0.1 (+privacy analysis)"}


# ============================================================================
# Parsing
# ============================================================================


def parse_blocklist(text: str) -> set[str]:
    """Extract domains from an ABP-format blocklist.

    Comment (``!``) and header (``[...]``) lines are ignored; ``||``
    prefixes and everything from ``^`` on are stripped.
    """
    domains: set[str] = set()
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("!", "[", "#")):
            continue
        domain = line.removeprefix("||").split("^", 1)[0].strip().lower()
        if domain and not any(ch.isspace() for ch in domain):
            domains.add(domain)
    return domains


def parse_cookie_database(text: str) -> list[analysis.CookieMetadata]:
    """Parse the Open Cookie Database CSV; rows without a cookie name are skipped."""
    reader = csv.DictReader(io.StringIO(text))
    rows: list[analysis.CookieMetadata] = []
    skipped = 0
    for raw in reader:
        fields = {
            target: (raw.get(column) or "").strip()
            for column, target in COOKIE_DATABASE_COLUMNS.items()
        }
        if not fields["name"]:
            skipped += 1
            continue
        rows.append(analysis.CookieMetadata(**fields))
    if skipped:
        log.debug("Skipped cookie database rows without a name", {"skipped": skipped})
    return rows


# ============================================================================
# Download
# ============================================================================


async def _fetch_text(http_session: aiohttp.ClientSession, url: str) -> str | None:
    """GET *url*; ``None`` on any HTTP or transport failure."""
    try:
        async with http_session.get(url, headers=_FETCH_HEADERS) as response:
            if response.status >= 400:
                log.warn("Reference data download failed", {"url": url, "status": response.status})
                return None
            return await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        log.warn("Reference data download failed", {"url": url, "error": str(exc)})
        return None


async def fetch_reference_data(settings: config.Settings | None = None) -> analysis.ReferenceData:
    """Download and parse the blocklist and cookie database concurrently."""
    settings = settings or config.get_settings()
    log.start_timer("reference-data")
    timeout = aiohttp.ClientTimeout(total=settings.download_timeout_s)
    async with aiohttp.ClientSession(timeout=timeout) as http_session:
        blocklist_text, cookie_csv = await asyncio.gather(
            _fetch_text(http_session, settings.blocklist_url),
            _fetch_text(http_session, settings.cookie_database_url),
        )

    data = analysis.ReferenceData(
        commonly_blocked_domains=parse_blocklist(blocklist_text) if blocklist_text else set(),
        cookie_database=parse_cookie_database(cookie_csv) if cookie_csv else [],
    )
    log.end_timer("reference-data", "Reference data loaded")
    log.info(
        "Reference data",
        {"blockedDomains": len(data.commonly_blocked_domains), "cookieRows": len(data.cookie_database)},
    )
    return data
