"""Graduation Year Codes — decode the record store's year choice codes into calendar years.

Invariants:
    - Codes 1-3 are historical buckets (Pre-1960, 1960s, 1970s) and decode to a
      single representative year that is always < current_year - 1
    - Codes 4-51 are the individual years 1980-2027; codes > 51 continue the
      sequence dynamically (52 = 2028, 53 = 2029, ...)
    - decode_graduation_year() never raises: unrecognized codes fall back to
      the current year and are flagged (recognized=False)

Design Decisions:
    - Fallback-with-flag over raising: a single bad row must not stop a sweep,
      but the sweep statistics still surface how many rows hit the fallback
    - A decoded year more than MAX_YEARS_AHEAD past the current year is treated
      as unrecognized (same bound the record validators apply on write)
"""

from dataclasses import dataclass

PRE_1960 = 1
DECADE_1960_1969 = 2
DECADE_1970_1979 = 3

FIRST_INDIVIDUAL_YEAR = 1980
FIRST_INDIVIDUAL_CODE = 4
LAST_STATIC_YEAR = 2027
LAST_STATIC_CODE = 51
MAX_YEARS_AHEAD = 10

_BUCKETS: dict[int, tuple[int, str]] = {
    PRE_1960: (1959, "Pre-1960"),
    DECADE_1960_1969: (1965, "1960-1969"),
    DECADE_1970_1979: (1975, "1970-1979"),
}


@dataclass(frozen=True)
class DecodedYear:
    """Calendar year for a code, plus whether the code was understood."""
    year: int
    recognized: bool
    is_bucket: bool = False


def is_decade_bucket(code: int | None) -> bool:
    """True for the multi-year historical codes."""
    return code in _BUCKETS


def decode_graduation_year(code: int | None, current_year: int) -> DecodedYear:
    """Map a year choice code to a calendar year. Pure, never raises."""
    if isinstance(code, bool) or not isinstance(code, int) or code < PRE_1960:
        return DecodedYear(year=current_year, recognized=False)

    if code in _BUCKETS:
        return DecodedYear(year=_BUCKETS[code][0], recognized=True, is_bucket=True)

    year = FIRST_INDIVIDUAL_YEAR + (code - FIRST_INDIVIDUAL_CODE)
    if year > current_year + MAX_YEARS_AHEAD:
        return DecodedYear(year=current_year, recognized=False)
    return DecodedYear(year=year, recognized=True)


def encode_graduation_year(year: int) -> int:
    """Inverse of decode for individual years (1980 onwards).

    Raises ValueError for years before 1980 — those only exist as buckets.
    """
    if year < FIRST_INDIVIDUAL_YEAR:
        raise ValueError(
            f"Years before {FIRST_INDIVIDUAL_YEAR} are stored as decade buckets",
        )
    return FIRST_INDIVIDUAL_CODE + (year - FIRST_INDIVIDUAL_YEAR)


def graduation_year_label(code: int | None) -> str:
    """Human-facing label: 'Pre-1960', '1960-1969', '1994', or 'Unknown'."""
    if code in _BUCKETS:
        return _BUCKETS[code][1]
    if isinstance(code, bool) or not isinstance(code, int) or code < PRE_1960:
        return "Unknown"
    return str(FIRST_INDIVIDUAL_YEAR + (code - FIRST_INDIVIDUAL_CODE))
