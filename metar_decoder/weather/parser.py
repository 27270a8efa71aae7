"""
METAR decoder — turns one raw report line into a ParsedReport.

Flow:
  ReportParser(raw) → get(field) → cache hit? return
                                 → else run the field's extractor, cache every
                                   field it produced, return

Each extractor scans the raw text once with its own pattern. Temperature and
dewpoint come from one token, as do cloud and cloud_ceiling, so their
extractors fill both fields in one pass. A token that is not in the report
gives None for its field, never an exception.

Units are normalised on the way out:
  - pressures in millibars (A group converted from hundredths of inHg)
  - speeds in knots (MPS converted)
  - temperatures in Celsius
  - cloud heights in feet
"""
import logging
import math
import re
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from metar_decoder.errors import MalformedSourceData, UnknownField
from metar_decoder.models import (
    CEILING_COVERAGE, COVERAGE_CODES, FIELDS,
    CloudLayer, CloudSummary, CloudType, ParsedReport, Wind,
)

logger = logging.getLogger(__name__)

INHG_TO_MB = 33.86
MPS_TO_KT = 0.868976242

# All patterns start with a literal space so tokens never match mid-word.
ALTIMETER_RE  = re.compile(r" (A|Q)([0-9]{4})")
CLOUD_RE      = re.compile(r" (FEW|SCT|BKN|OVC)([0-9]{3})(CU|CB|TCU|CI)?")
TEMP_RE       = re.compile(r" (M?[0-9]{2})/(M?[0-9]{2})")
TIME_RE       = re.compile(r" ([0-3][0-9])([0-2][0-9])([0-5][0-9])Z")
VISIBILITY_RE = re.compile(r" ([0-9]{4}) ")
WIND_RE       = re.compile(r" ([0-9]{3})([0-9]{2,3})(?:G([0-9]{2,3}))?(KT|MPS)")
VARIATION_RE  = re.compile(r" ([0-9]{3})V([0-9]{3})")

Extractor = Callable[[str, datetime], dict]


def _round(value: float) -> int:
    """Round half away from zero (values here are never negative)."""
    return int(math.floor(value + 0.5))


def _signed(token: str) -> int:
    # M05 → -05
    return int(token.replace("M", "-"))


# ── Extractors ────────────────────────────────────────────────────────────────
# Each takes (raw, reference_date) and returns {field_name: value}.

def parse_altimeter(raw: str, reference_date: datetime) -> dict:
    match = ALTIMETER_RE.search(raw)
    if not match:
        return {"altimeter": None}

    unit, value = match.group(1), int(match.group(2))
    if unit == "A":
        # A2992 = 29.92 inHg
        return {"altimeter": _round(value * INHG_TO_MB / 100)}
    return {"altimeter": value}


def parse_cavok(raw: str, reference_date: datetime) -> dict:
    return {"cavok": "CAVOK" in raw}


def parse_cloud(raw: str, reference_date: datetime) -> dict:
    """
    Cloud layers in report order, plus the ceiling: the lowest broken or
    overcast layer.
    """
    layers = [
        CloudLayer(
            coverage=COVERAGE_CODES[code],
            height=int(height) * 100,
            type=CloudType(kind) if kind else None,
        )
        for code, height, kind in CLOUD_RE.findall(raw)
    ]

    if not layers:
        if " NSC" in raw:
            cloud = CloudSummary.NO_SIGNIFICANT_CLOUD
        elif " NCD" in raw:
            cloud = CloudSummary.NO_CLOUD_DETECTED
        else:
            cloud = None
        return {"cloud": cloud, "cloud_ceiling": None}

    ceiling_heights = [layer.height for layer in layers if layer.coverage in CEILING_COVERAGE]
    return {
        "cloud": layers,
        "cloud_ceiling": min(ceiling_heights) if ceiling_heights else None,
    }


def parse_icao_code(raw: str, reference_date: datetime) -> dict:
    # Assume the first 4 chars are the station
    return {"icao_code": raw[:4]}


def parse_temperature(raw: str, reference_date: datetime) -> dict:
    match = TEMP_RE.search(raw)
    if not match:
        return {"temperature": None, "dewpoint": None}
    return {
        "temperature": _signed(match.group(1)),
        "dewpoint": _signed(match.group(2)),
    }


def parse_time(raw: str, reference_date: datetime) -> dict:
    """
    Observation time. The report only carries day/hour/minute, so year and
    month come from reference_date.
    """
    match = TIME_RE.search(raw)
    if not match:
        return {"time": None}

    day, hour, minute = (int(g) for g in match.groups())
    try:
        observed = datetime(
            reference_date.year, reference_date.month, day, hour, minute,
            tzinfo=timezone.utc,
        )
    except ValueError:
        logger.debug("time group %s is not a valid instant", match.group(0).strip())
        return {"time": None}
    return {"time": observed}


def parse_visibility(raw: str, reference_date: datetime) -> dict:
    match = VISIBILITY_RE.search(raw)
    return {"visibility": int(match.group(1)) if match else None}


def parse_wind(raw: str, reference_date: datetime) -> dict:
    match = WIND_RE.search(raw)
    if not match:
        return {"wind": None}

    direction, speed, gusting, unit = match.groups()
    speed = int(speed)
    gusting = int(gusting) if gusting else None

    if unit == "MPS":
        speed = _round(speed * MPS_TO_KT)
        if gusting is not None:
            gusting = _round(gusting * MPS_TO_KT)

    variation = VARIATION_RE.search(raw)
    return {
        "wind": Wind(
            direction=int(direction),
            speed=speed,
            gusting=gusting,
            variation=(int(variation.group(1)), int(variation.group(2))) if variation else None,
        )
    }


EXTRACTORS: dict[str, Extractor] = {
    "altimeter":     parse_altimeter,
    "cavok":         parse_cavok,
    "cloud":         parse_cloud,
    "cloud_ceiling": parse_cloud,
    "dewpoint":      parse_temperature,
    "icao_code":     parse_icao_code,
    "temperature":   parse_temperature,
    "time":          parse_time,
    "visibility":    parse_visibility,
    "wind":          parse_wind,
}


# ── Parser ────────────────────────────────────────────────────────────────────

class ReportParser:
    """
    Lazy, memoised decoder for one raw METAR.

        parser = ReportParser("EGLL 121250Z 24012KT 9999 FEW030 14/08 Q1021")
        parser.get("altimeter")    # 1021
        parser.to_record()         # ParsedReport with all ten fields

    A field is computed at most once per instance, including when it comes
    back None.
    """

    def __init__(self,
                 raw: str,
                 reference_date: Optional[datetime] = None,
                 extractors: Optional[dict[str, Extractor]] = None):
        self._raw = raw
        self._reference_date = reference_date or datetime.now(timezone.utc)
        self._extractors = dict(EXTRACTORS if extractors is None else extractors)
        self._parsed: dict = {}
        self._lock = threading.Lock()

    @classmethod
    def from_station(cls,
                     code: str,
                     fetch: Optional[Callable[[str], list[str]]] = None,
                     reference_date: Optional[datetime] = None) -> "ReportParser":
        """
        Fetch the latest report for a 4-char station code and wrap it.
        The payload's first line is the source's timestamp header, the
        second is the report itself.
        """
        if fetch is None:
            from metar_decoder.weather.fetcher import fetch_station_lines
            fetch = fetch_station_lines

        lines = fetch(code)
        if len(lines) < 2 or not lines[0].strip() or not lines[1].strip():
            raise MalformedSourceData(code)

        return cls(lines[1].strip(), reference_date=reference_date)

    @property
    def raw(self) -> str:
        return self._raw

    def get(self, name: str):
        if name not in FIELDS or name not in self._extractors:
            raise UnknownField(name)

        with self._lock:
            if name not in self._parsed:
                logger.debug("parsing %s from %r", name, self._raw)
                produced = self._extractors[name](self._raw, self._reference_date)
                for key, value in produced.items():
                    self._parsed.setdefault(key, value)
            return self._parsed[name]

    __getitem__ = get

    def to_record(self) -> ParsedReport:
        return ParsedReport(**{name: self.get(name) for name in FIELDS})

    def __repr__(self):
        return f"ReportParser({self._raw!r})"
