from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Union
import enum


# ── Enums ────────────────────────────────────────────────────────────────────

class Coverage(str, enum.Enum):
    FEW = "few"
    SCATTERED = "scattered"
    BROKEN = "broken"
    OVERCAST = "overcast"

class CloudType(str, enum.Enum):
    CU = "CU"       # cumulus
    CB = "CB"       # cumulonimbus
    TCU = "TCU"     # towering cumulus
    CI = "CI"       # cirrus

class CloudSummary(str, enum.Enum):
    """Reported in place of cloud layers when none are given."""
    NO_SIGNIFICANT_CLOUD = "no significant cloud"
    NO_CLOUD_DETECTED = "no cloud detected"


# code in the report → Coverage
COVERAGE_CODES = {
    "FEW": Coverage.FEW,
    "SCT": Coverage.SCATTERED,
    "BKN": Coverage.BROKEN,
    "OVC": Coverage.OVERCAST,
}

# layers at or above these count towards the ceiling
CEILING_COVERAGE = (Coverage.BROKEN, Coverage.OVERCAST)


# ── Report parts ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Wind:
    direction: int                              # degrees true, 000 = calm/variable
    speed: int                                  # knots
    gusting: Optional[int] = None               # knots
    variation: Optional[tuple[int, int]] = None # (from, to) degrees


@dataclass(frozen=True)
class CloudLayer:
    coverage: Coverage
    height: int                                 # feet
    type: Optional[CloudType] = None


Cloud = Union[list[CloudLayer], CloudSummary, None]


# ── Full record ───────────────────────────────────────────────────────────────

FIELDS = (
    "altimeter",
    "cavok",
    "cloud",
    "cloud_ceiling",
    "dewpoint",
    "icao_code",
    "temperature",
    "time",
    "visibility",
    "wind",
)


@dataclass(frozen=True)
class ParsedReport:
    """
    Every field of a decoded METAR. None means the report did not carry it.

    - pressures in millibars
    - speeds in knots
    - temperatures in Celsius
    - heights in feet
    """
    altimeter: Optional[int]
    cavok: bool
    cloud: Cloud
    cloud_ceiling: Optional[int]
    dewpoint: Optional[int]
    icao_code: str
    temperature: Optional[int]
    time: Optional[datetime]
    visibility: Optional[int]
    wind: Optional[Wind]

    def as_dict(self) -> dict:
        return asdict(self)
