"""
Station fetcher — pulls the latest raw METAR for an ICAO station.
Uses the NOAA per-station text files (free, no key needed).

Flow:
  decode_station(icao) → fetch_station_lines(icao) → checks in-memory cache
                       → fetches if stale → ReportParser.from_station → record

A station file is two lines:
  2025/07/01 08:00
  VOBG 010800Z 27008KT 9999 FEW050 25/14 Q1013
"""
import logging
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from metar_decoder import config
from metar_decoder.errors import FetchError
from metar_decoder.models import ParsedReport
from metar_decoder.weather.parser import ReportParser

logger = logging.getLogger(__name__)

STATION_RE = re.compile(r"^[A-Z0-9]{4}$")


@dataclass
class CachedPayload:
    lines: list[str]
    fetched_at: datetime

    def is_stale(self) -> bool:
        age = datetime.now(timezone.utc) - self.fetched_at
        return age > timedelta(minutes=config.CACHE_TTL_MINUTES)


# ── In-memory cache ───────────────────────────────────────────────────────────

_cache: dict[str, CachedPayload] = {}


def clear_cache():
    _cache.clear()


def normalise_station(icao: str) -> str:
    code = icao.strip().upper()
    if not STATION_RE.match(code):
        raise ValueError(f"station code must be 4 letters or digits, got {icao!r}")
    return code


# ── Fetcher ───────────────────────────────────────────────────────────────────

def fetch_station_lines(icao: str, timeout: Optional[float] = None) -> list[str]:
    """
    Return the station file split into lines (header first, report second).
    Served from cache while fresh. Raises FetchError if the source can't be
    reached.
    """
    code = normalise_station(icao)

    cached = _cache.get(code)
    if cached and not cached.is_stale():
        logger.debug("cache hit for %s", code)
        return list(cached.lines)

    url = f"{config.METAR_SOURCE_URL}/{code}.TXT"
    logger.info("fetching METAR: %s", url)
    req = urllib.request.Request(url, headers={"User-Agent": "metar-decoder/1.0"})
    try:
        with urllib.request.urlopen(req, timeout=timeout or config.FETCH_TIMEOUT) as resp:
            body = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        logger.warning("fetch failed for %s: HTTP %s", code, e.code)
        raise FetchError(f"METAR source returned HTTP {e.code} for {code}") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.warning("fetch failed for %s: %s", code, e)
        raise FetchError(f"could not reach METAR source for {code}: {e}") from e

    lines = body.splitlines()
    _cache[code] = CachedPayload(lines=lines, fetched_at=datetime.now(timezone.utc))
    return list(lines)


def decode_station(icao: str,
                   fetch: Optional[Callable[[str], list[str]]] = None,
                   reference_date: Optional[datetime] = None) -> ParsedReport:
    """Main entry point. Fetches the station's latest report and decodes it."""
    code = normalise_station(icao)
    parser = ReportParser.from_station(
        code,
        fetch=fetch or fetch_station_lines,
        reference_date=reference_date,
    )
    return parser.to_record()


# ── Mock for testing (no internet needed) ────────────────────────────────────

MOCK_HEADER = "2025/07/01 08:00"

MOCK_REPORTS = {
    "good":        "{icao} 010800Z 27008KT 9999 FEW050 25/14 Q1013",
    "low_ceiling": "{icao} 010800Z 27006KT 8000 OVC008 18/16 Q1008",
    "low_vis":     "{icao} 010800Z 27005KT 3200 BKN030 20/18 Q1010",
    "high_wind":   "{icao} 010800Z 27025G38KT 240V300 9999 FEW040 22/12 A2992",
    "cavok":       "{icao} 010800Z 09004KT CAVOK 24/10 Q1022 NOSIG",
    "metric_wind": "{icao} 010800Z 31010G20MPS 6000 SCT015CB BKN040 M02/M05 Q0998",
}


def fetch_mock(icao: str, scenario: str = "good") -> list[str]:
    """
    Returns a deterministic station payload for testing.
    scenario: "good" | "low_ceiling" | "low_vis" | "high_wind" | "cavok"
              | "metric_wind" | "malformed"
    """
    code = normalise_station(icao)
    if scenario == "malformed":
        return [MOCK_HEADER]
    template = MOCK_REPORTS.get(scenario, MOCK_REPORTS["good"])
    return [MOCK_HEADER, template.format(icao=code)]
