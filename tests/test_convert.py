#
# Showval - Convert Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import base64
import datetime as dt

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from showval.convert import (
    Base64, Circular, Date, Duration, JSONBytes, JSONStr, Time, TimeOfDay, format_duration,
)


# Tests ----------------------------------------------------------------------------------------------------------------

class TestHelpers:
    def test_circular(self):
        assert Circular() is None
        assert Circular("a", 0) is None

    def test_base64(self):
        s = "random-text"
        assert Base64(base64.b64encode(s.encode()).decode()) == s.encode()

    def test_base64_rejects_non_str(self):
        with pytest.raises(TypeError):
            Base64(b"aa==")

    def test_time(self):
        now = dt.datetime.now(dt.timezone.utc)
        assert Time(now.isoformat()) == now

    def test_date_and_time_of_day(self):
        assert Date("2021-08-28") == dt.date(2021, 8, 28)
        assert TimeOfDay("08:36:36.807908") == dt.time(8, 36, 36, 807908)

    def test_json(self):
        assert JSONStr(None, "[1, 2]") == "[1, 2]"
        assert JSONBytes(None, "[1, 2]") == b"[1, 2]"


class TestDuration:
    @pytest.mark.parametrize(
        "text, expected",
        [
            pytest.param("10m", dt.timedelta(minutes=10), id="minutes"),
            pytest.param("1h30m0s", dt.timedelta(hours=1, minutes=30), id="compound"),
            pytest.param("1.5s", dt.timedelta(milliseconds=1500), id="fraction"),
            pytest.param("-10ms", dt.timedelta(milliseconds=-10), id="negative"),
            pytest.param("250µs", dt.timedelta(microseconds=250), id="micro-sign"),
            pytest.param("250us", dt.timedelta(microseconds=250), id="micro-ascii"),
            pytest.param("1500ns", dt.timedelta(microseconds=2), id="nanoseconds-rounded"),
            pytest.param("0", dt.timedelta(0), id="zero"),
        ],
    )
    def test_parse(self, text, expected):
        assert Duration(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            pytest.param("", id="empty"),
            pytest.param("10", id="no-unit"),
            pytest.param("1d", id="days-unsupported"),
            pytest.param("h", id="unit-only"),
            pytest.param("1h 2m", id="spaces"),
        ],
    )
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="invalid duration"):
            Duration(text)

    def test_type_error(self):
        with pytest.raises(TypeError):
            Duration(10)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "td, expected",
        [
            pytest.param(dt.timedelta(0), "0s", id="zero"),
            pytest.param(dt.timedelta(microseconds=250), "250µs", id="micro"),
            pytest.param(dt.timedelta(microseconds=1500), "1.5ms", id="milli"),
            pytest.param(dt.timedelta(milliseconds=1500), "1.5s", id="seconds"),
            pytest.param(dt.timedelta(minutes=2), "2m0s", id="minutes"),
            pytest.param(dt.timedelta(hours=1), "1h0m0s", id="hours"),
            pytest.param(dt.timedelta(days=1, seconds=1), "24h0m1s", id="days-folded-into-hours"),
            pytest.param(dt.timedelta(microseconds=-250), "-250µs", id="negative"),
        ],
    )
    def test_format(self, td, expected):
        assert format_duration(td) == expected

    @pytest.mark.parametrize(
        "td",
        [
            pytest.param(dt.timedelta(hours=3, minutes=4, seconds=5, microseconds=6), id="mixed"),
            pytest.param(dt.timedelta(seconds=-61), id="negative-minutes"),
            pytest.param(dt.timedelta(microseconds=999_999), id="just-below-second"),
        ],
    )
    def test_parses_back(self, td):
        assert Duration(format_duration(td)) == td
