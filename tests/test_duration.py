import pytest

from skyforge.duration import decode_duration, encode_duration
from skyforge.errors import FormatError, ParseError


def test_encode_duration():
    assert encode_duration(500) == "500s"
    assert encode_duration(0) == "0s"


def test_decode_seconds():
    assert decode_duration("500s") == 500
    assert decode_duration("0s") == 0


def test_decode_other_units():
    assert decode_duration("5m") == 300
    assert decode_duration("1h30m") == 5400
    assert decode_duration("2m10s") == 130
    assert decode_duration("-5s") == -5


def test_decode_truncates_sub_second():
    assert decode_duration("1500ms") == 1
    assert decode_duration("999ms") == 0
    assert decode_duration("3s500ms") == 3


def test_decode_empty_is_format_error():
    with pytest.raises(FormatError):
        decode_duration("")


def test_decode_missing_unit_is_format_error():
    with pytest.raises(FormatError):
        decode_duration("500")
    with pytest.raises(FormatError):
        decode_duration("5m30")


def test_decode_unknown_unit_is_format_error():
    with pytest.raises(FormatError):
        decode_duration("5d")


def test_decode_bad_number_is_parse_error():
    with pytest.raises(ParseError):
        decode_duration("1.5s")
    with pytest.raises(ParseError):
        decode_duration("s")


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        decode_duration("")


@pytest.mark.parametrize("seconds", [0, 1, 59, 60, 61, 500, 3599, 3600, 86400, 10**9])
def test_encode_decode_round_trip(seconds):
    assert decode_duration(encode_duration(seconds)) == seconds
