import pytest
from pydantic import ValidationError

from chatdigest.errors import InvalidRangeError
from chatdigest.models import CountRange, MessageRangeAdapter, TimeRange
from chatdigest.ranges import describe_range, parse_range


@pytest.mark.parametrize(
    "arg, expected",
    [
        (None, TimeRange(value=24)),
        ("", TimeRange(value=24)),
        ("2h", TimeRange(value=2)),
        ("2H", TimeRange(value=2)),
        ("30m", TimeRange(value=0.5)),
        ("90m", TimeRange(value=1.5)),
        ("168h", TimeRange(value=168)),
        (" 50 ", CountRange(value=50)),
        ("10000", CountRange(value=10000)),
    ],
)
def test_parse_range_accepts(arg, expected):
    assert parse_range(arg) == expected


@pytest.mark.parametrize("arg", ["0h", "169h", "0", "10001", "-5", "abc", "2d", "1.5h"])
def test_parse_range_rejects(arg):
    with pytest.raises(InvalidRangeError):
        parse_range(arg)


def test_invalid_range_is_a_value_error():
    with pytest.raises(ValueError):
        parse_range("soon")


def test_ranges_are_immutable():
    r = CountRange(value=5)
    with pytest.raises(ValidationError):
        r.value = 6


def test_range_values_must_be_positive():
    with pytest.raises(ValidationError):
        TimeRange(value=0)
    with pytest.raises(ValidationError):
        CountRange(value=-1)


def test_discriminated_union_from_dict():
    assert MessageRangeAdapter.validate_python({"type": "count", "value": 50}) == CountRange(value=50)
    assert MessageRangeAdapter.validate_python({"type": "time", "value": 2}) == TimeRange(value=2)
    with pytest.raises(ValidationError):
        MessageRangeAdapter.validate_python({"type": "both", "value": 2})


def test_describe_range():
    assert describe_range(CountRange(value=1)) == "last 1 message"
    assert describe_range(CountRange(value=50)) == "last 50 messages"
    assert describe_range(TimeRange(value=0.5)) == "last 30 minutes"
    assert describe_range(TimeRange(value=1)) == "last 1 hour"
    assert describe_range(TimeRange(value=24)) == "last 24 hours"
    assert describe_range(TimeRange(value=1.5)) == "last 1.5 hours"
