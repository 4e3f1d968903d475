"""Category Rules — derive an education record's category from its graduation year.

Invariants:
    - Rules evaluated in order, first match wins:
        1. year > current_year                                  -> STUDENT
        2. year in (current_year, current_year - 1)
           and membership_expires_on is set
           and today <= membership_expires_on                   -> NEW_GRADUATED
        3. year < current_year - 1                              -> GRADUATED
        4. otherwise (recent graduate, expiry absent or passed) -> GRADUATED
    - Decade buckets always resolve to GRADUATED
    - Same inputs always give the same category (today is an explicit input)
    - membership_expires_on is read-only input; never computed or cached here

Design Decisions:
    - NEW_GRADUATED gated on the admin-controlled membership expiry date, not on
      anything the member can edit: prevents self-declared new-graduate discounts
    - determine_category() returns a CategoryVerdict so the sweep can count
      unrecognized year codes; evaluate_category() is the plain contract
"""

from dataclasses import dataclass
from datetime import date

from education_lifecycle.core.domain_types import EducationCategory
from education_lifecycle.core.graduation_year import decode_graduation_year


@dataclass(frozen=True)
class CategoryVerdict:
    category: EducationCategory
    graduation_year: int
    year_recognized: bool


def determine_category(
    graduation_year_code: int | None,
    membership_expires_on: date | None = None,
    today: date | None = None,
    current_year: int | None = None,
) -> CategoryVerdict:
    """Evaluate the category rules and report how the year code was decoded."""
    today = today or date.today()
    current_year = current_year if current_year is not None else today.year
    decoded = decode_graduation_year(graduation_year_code, current_year)
    year = decoded.year

    if year > current_year:
        category = EducationCategory.STUDENT
    elif (
        year in (current_year, current_year - 1)
        and membership_expires_on is not None
        and today <= membership_expires_on
    ):
        category = EducationCategory.NEW_GRADUATED
    elif year < current_year - 1:
        category = EducationCategory.GRADUATED
    else:
        category = EducationCategory.GRADUATED

    return CategoryVerdict(
        category=category, graduation_year=year,
        year_recognized=decoded.recognized,
    )


def evaluate_category(
    graduation_year_code: int | None,
    membership_expires_on: date | None = None,
    today: date | None = None,
    current_year: int | None = None,
) -> EducationCategory:
    """Category for a graduation year code. Pure, never raises."""
    return determine_category(
        graduation_year_code, membership_expires_on, today, current_year,
    ).category
