"""
Chainage parsing and matching.

A chainage is a distance along the road alignment written as
``<prefix><km>+<m>``, e.g. ``K23+066`` = 23 066 m. Accepted forms:

- single point: ``K35+897``, ``K5+100``, ``K05+560``
- side marker (ignored for comparison): ``K35+897-RHS``, ``K36+987 LHS``
- any alphabetic prefix: ``SCK0+260``, ``DZ2+440``, ``ZK27+612``, ``KM35+500``
- decimal metres (truncated): ``CK0+189.220``, ``K14+036.00``
- range: ``K35+560-K36+120``, ``K36+500 to K37+000``, ``K35+500~K36+500``
- list: ``K35+897, K36+987, K40+200-RHS``

Parsing never raises; anything it cannot read becomes ``None`` and is
treated as "no match" by the matchers.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Range = Tuple[int, int]

# largest value the INTEGER chainage columns hold
MAX_METERS = 2**31 - 1
MAX_CLEANED_LENGTH = 64

SIDE_MARKERS = ("RHS", "LHS", "LEFT", "RIGHT", "SR", "TR", "CL", "CENTER", "CENTRE", "R", "L")

_SIDE_RE = re.compile(
    r"[\-\s]*(" + "|".join(SIDE_MARKERS) + r")\s*$",
    re.IGNORECASE,
)
_PREFIX_RE = re.compile(r"^[A-Z]+")
_KM_PLUS_M_RE = re.compile(r"^(\d+)\+(\d+)(?:\.(\d+))?$")
_KM_DOT_M_RE = re.compile(r"^(\d+)\.(\d{3})$")
_KM_ONLY_RE = re.compile(r"^(\d+)$")

_POINT = r"[A-Z]*\s*\d+\s*[+.]\s*\d+(?:\.\d+)?"
_RANGE_RE = re.compile(
    r"^(" + _POINT + r")\s*(?:[\-–—~]|\bTO\b)\s*(" + _POINT + r")",
    re.IGNORECASE,
)
_LIST_SPLIT_RE = re.compile(r"\s*[,;\n]\s*")


@dataclass(frozen=True)
class ChainageLocation:
    """Parsed RFI location: a point (end is None) or an ordered range."""
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def is_range(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_valid(self) -> bool:
        return self.start is not None


# -------------------------------------------------
# Parsing
# -------------------------------------------------
def _clean(chainage: str) -> str:
    cleaned = chainage.strip().upper()
    cleaned = _SIDE_RE.sub("", cleaned)
    cleaned = re.sub(r"\s+", "", cleaned)
    return _PREFIX_RE.sub("", cleaned)


def parse_chainage(chainage: Optional[str]) -> Optional[int]:
    """Chainage string to metres, ``None`` when it cannot be read or is out of range."""
    if not chainage or not isinstance(chainage, str):
        return None

    cleaned = _clean(chainage)
    if len(cleaned) > MAX_CLEANED_LENGTH:
        logger.debug("CHAINAGE_OUT_OF_RANGE: %r", chainage[:MAX_CLEANED_LENGTH])
        return None
    meters = _to_meters(cleaned)
    if meters is None:
        logger.debug("CHAINAGE_PARSE_SKIP: %r (cleaned %r)", chainage, cleaned)
        return None
    if meters > MAX_METERS:
        logger.debug("CHAINAGE_OUT_OF_RANGE: %r", chainage)
        return None
    return meters


def _to_meters(cleaned: str) -> Optional[int]:
    match = _KM_PLUS_M_RE.match(cleaned)
    if match:
        km = int(match.group(1))
        digits = match.group(2)
        meters = int(digits)
        # "+5" means 500 m, "+50" means 500 m
        if len(digits) == 1:
            meters *= 100
        elif len(digits) == 2:
            meters *= 10
        return km * 1000 + min(meters, 999)

    match = _KM_DOT_M_RE.match(cleaned)
    if match:
        return int(match.group(1)) * 1000 + min(int(match.group(2)), 999)

    match = _KM_ONLY_RE.match(cleaned)
    if match:
        return int(match.group(1)) * 1000

    return None


def extract_side(chainage: Optional[str]) -> Optional[str]:
    """Side marker stripped by parse_chainage (``RHS``, ``LHS``...), kept for display."""
    if not chainage:
        return None
    match = _SIDE_RE.search(chainage.strip())
    if not match:
        return None
    return match.group(1).upper()


def parse_range(text: Optional[str]) -> Optional[Range]:
    """``"K37+000 to K36+500"`` -> ``(36500, 37000)``; ``None`` unless both ends parse."""
    if not text or not isinstance(text, str):
        return None

    match = _RANGE_RE.match(text.strip())
    if not match:
        return None

    start = parse_chainage(match.group(1))
    end = parse_chainage(match.group(2))
    if start is None or end is None:
        return None
    if start > end:
        start, end = end, start
    return start, end


def parse_location(location: Optional[str]) -> ChainageLocation:
    """Point or range; an unreadable location has ``start is None``."""
    if not location or not isinstance(location, str):
        return ChainageLocation()

    span = parse_range(location)
    if span is not None:
        return ChainageLocation(start=span[0], end=span[1])

    if _RANGE_RE.match(location.strip()):
        # looked like a range but one end was unreadable
        return ChainageLocation()

    return ChainageLocation(start=parse_chainage(location))


def split_chainages(chainages: Optional[str]) -> List[str]:
    """Trimmed, non-empty raw entries of a comma separated chainage list."""
    if not chainages:
        return []
    return [part for part in _LIST_SPLIT_RE.split(chainages.strip()) if part.strip()]


def parse_multiple_chainages(chainages: Optional[str]) -> List[int]:
    """``"K35+897, K36+987"`` -> ``[35897, 36987]``; unreadable entries skipped, order kept."""
    seen = set()
    result = []
    for part in split_chainages(chainages):
        meters = parse_chainage(part)
        if meters is not None and meters not in seen:
            seen.add(meters)
            result.append(meters)
    return result


def normalize_chainage(chainage: Optional[str]) -> Optional[str]:
    """Canonical ``K##+###`` form."""
    meters = parse_chainage(chainage)
    if meters is None:
        return None
    return format_meters(meters)


def format_meters(meters: int) -> str:
    km, m = divmod(meters, 1000)
    return f"K{km:02d}+{m:03d}"


# -------------------------------------------------
# Matching
# -------------------------------------------------
def is_point_in_range(point: int, start: int, end: int) -> bool:
    if start > end:
        start, end = end, start
    return start <= point <= end


def ranges_overlap(first: Range, second: Range) -> bool:
    start1, end1 = sorted(first)
    start2, end2 = sorted(second)
    return max(start1, start2) <= min(end1, end2)


def objection_matches_location(
    specific_meters: Iterable[int],
    objection_range: Optional[Range],
    location: Optional[str],
) -> bool:
    """
    Does an objection (specific points and/or one range) touch an RFI location?

    point vs point -> equal, point vs range -> inclusive containment,
    range vs range -> overlap. Any hit is enough.
    """
    rfi = parse_location(location)
    if not rfi.is_valid:
        return False

    for meters in specific_meters:
        if rfi.is_range:
            if is_point_in_range(meters, rfi.start, rfi.end):
                return True
        elif meters == rfi.start:
            return True

    if objection_range is not None:
        if rfi.is_range:
            if ranges_overlap(objection_range, (rfi.start, rfi.end)):
                return True
        elif is_point_in_range(rfi.start, *objection_range):
            return True

    return False


def invalid_chainages(entries: Sequence[Optional[str]]) -> List[str]:
    """Entries that are present but unreadable (used to reject form input)."""
    return [
        entry for entry in entries
        if entry and entry.strip() and parse_chainage(entry) is None
    ]
