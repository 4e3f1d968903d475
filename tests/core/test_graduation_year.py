"""Tests for graduation year choice codes — decode, encode, labels."""

import pytest

from education_lifecycle.core.graduation_year import (
    DECADE_1960_1969, DECADE_1970_1979, LAST_STATIC_CODE, LAST_STATIC_YEAR,
    PRE_1960, decode_graduation_year, encode_graduation_year,
    graduation_year_label, is_decade_bucket,
)


def test_buckets_decode_to_representative_years():
    assert decode_graduation_year(PRE_1960, 2026).year == 1959
    assert decode_graduation_year(DECADE_1960_1969, 2026).year == 1965
    assert decode_graduation_year(DECADE_1970_1979, 2026).year == 1975
    assert decode_graduation_year(DECADE_1960_1969, 2026).is_bucket


def test_first_individual_code_is_1980():
    decoded = decode_graduation_year(4, 2026)
    assert decoded.year == 1980
    assert decoded.recognized
    assert not decoded.is_bucket


def test_last_static_code_is_2027():
    assert decode_graduation_year(LAST_STATIC_CODE, 2026).year == LAST_STATIC_YEAR


def test_codes_past_static_table_keep_counting_years():
    assert decode_graduation_year(LAST_STATIC_CODE + 3, 2026).year == 2030


def test_code_more_than_ten_years_ahead_is_unrecognized():
    decoded = decode_graduation_year(encode_graduation_year(2037), 2026)
    assert decoded.recognized is False
    assert decoded.year == 2026


def test_code_exactly_ten_years_ahead_is_recognized():
    assert decode_graduation_year(encode_graduation_year(2036), 2026).recognized


def test_encode_rejects_years_before_1980():
    with pytest.raises(ValueError):
        encode_graduation_year(1975)


def test_encode_inverts_decode_for_individual_years():
    for year in (1980, 1999, 2026):
        assert decode_graduation_year(encode_graduation_year(year), 2026).year == year


def test_labels():
    assert graduation_year_label(PRE_1960) == "Pre-1960"
    assert graduation_year_label(DECADE_1970_1979) == "1970-1979"
    assert graduation_year_label(18) == "1994"
    assert graduation_year_label(None) == "Unknown"
    assert graduation_year_label(0) == "Unknown"


def test_is_decade_bucket():
    assert is_decade_bucket(DECADE_1960_1969)
    assert not is_decade_bucket(4)
    assert not is_decade_bucket(None)
