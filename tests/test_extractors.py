"""Tests for coordinate, byte count and user agent extraction."""

import pytest

from logpipemetrics.extractors import RecordExtractor, extract_bytes, extract_coordinates
from logpipemetrics.models import CoordinateConvertError, CoordinateExtractError, LogRecord


def geo_record(latlon) -> LogRecord:
    return LogRecord({"geo": {"latlon": latlon}})


class TestExtractCoordinates:
    """Tests for extract_coordinates()."""

    def test_valid_pair(self) -> None:
        """A well-formed pair is parsed."""
        coords = extract_coordinates(geo_record("1.1,2.2"))
        assert coords.is_valid
        assert not coords.is_zero
        assert coords.raw_lat == "1.1"
        assert coords.raw_lon == "2.2"
        assert coords.lat == 1.1
        assert coords.lon == 2.2

    def test_parts_are_trimmed(self) -> None:
        """Whitespace around each part is ignored."""
        coords = extract_coordinates(geo_record(" -33.86010 , 151.21010 "))
        assert coords.is_valid
        assert coords.raw_lat == "-33.86010"
        assert coords.raw_lon == "151.21010"

    def test_empty_record(self) -> None:
        """Without geo both missing flags are set."""
        coords = extract_coordinates(LogRecord())
        assert coords.missing_geo
        assert coords.missing_latlon
        assert not coords.is_valid
        assert coords.is_zero

    def test_none_record(self) -> None:
        """A missing record is treated like an empty one."""
        coords = extract_coordinates(None)
        assert coords.missing_geo and coords.missing_latlon

    def test_geo_not_an_object(self) -> None:
        """A scalar geo value counts as missing."""
        coords = extract_coordinates(LogRecord({"geo": "1.1,2.2"}))
        assert coords.missing_geo and coords.missing_latlon

    def test_empty_geo_object(self) -> None:
        """An empty geo object is missing only latlon."""
        coords = extract_coordinates(LogRecord({"geo": {}}))
        assert not coords.missing_geo
        assert coords.missing_latlon
        assert not coords.is_valid

    def test_latlon_not_a_string(self) -> None:
        """A non-string latlon is missing."""
        coords = extract_coordinates(geo_record([1.1, 2.2]))
        assert coords.missing_latlon
        assert not coords.missing_geo

    @pytest.mark.parametrize("latlon", ["-33.86010", ",-33.86010", "1.1,", " , ", ",", "1,2,3", ""])
    def test_extract_errors(self, latlon: str) -> None:
        """Anything but two non-blank parts is an extraction error."""
        coords = extract_coordinates(geo_record(latlon))
        assert isinstance(coords.extract_error, CoordinateExtractError)
        assert coords.convert_error is None
        assert not coords.is_valid

    @pytest.mark.parametrize(
        "latlon",
        ["-,-", "-k,+a", "1.1,east", "nan,1", "1,inf", "91,0", "0,181", "-90.5,10", "1e308,-1e308"],
    )
    def test_convert_errors(self, latlon: str) -> None:
        """Parts that are not floats within latitude and longitude range are a conversion error."""
        coords = extract_coordinates(geo_record(latlon))
        assert isinstance(coords.convert_error, CoordinateConvertError)
        assert coords.extract_error is None
        assert not coords.is_valid


class TestExtractBytes:
    """Tests for extract_bytes()."""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"bytes": "5"}, 5),
            ({"bytes_sent": "5"}, 5),
            ({"bytes": 7}, 7),
            ({"bytes": "-"}, 0),
            ({}, 0),
            ({"bytes_sent": "-1"}, 0),
            ({"bytes": "-3"}, 0),
            ({"bytes": "10", "bytes_sent": "20"}, 10),
            ({"bytes": "-", "bytes_sent": "20"}, 20),
            ({"bytes": "0", "bytes_sent": "20"}, 20),
            ({"bytes": "abc"}, 0),
            ({"bytes": 1.5}, 0),
            ({"bytes": True}, 0),
        ],
    )
    def test_resolution(self, fields, expected: int) -> None:
        """bytes is preferred, bytes_sent is the fallback, invalid is 0."""
        assert extract_bytes(LogRecord(fields)) == expected


class TestRecordExtractor:
    """Tests for user agent based classification."""

    @pytest.fixture
    def extractor(self) -> RecordExtractor:
        return RecordExtractor()

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({}, ""),
            ({"request": {}}, ""),
            ({"request": {"http_user_agent": 13}}, ""),
            ({"request": "GET / HTTP/1.1"}, ""),
            ({"request": {"http_user_agent": "aee/v1"}}, "aee/v1"),
        ],
    )
    def test_extract_user_agent(self, extractor, fields, expected: str) -> None:
        """Only a string at request.http_user_agent is returned."""
        assert extractor.extract_user_agent(LogRecord(fields)) == expected

    @pytest.mark.parametrize(
        "agent,expected",
        [("aee/v27", True), ("aee/v", False), ("Mozilla/5.0 aee/v1", False), ("", False)],
    )
    def test_is_internal_agent(self, extractor, agent: str, expected: bool) -> None:
        """Only agents starting with aee/v and a version are internal."""
        record = LogRecord({"request": {"http_user_agent": agent}})
        assert extractor.is_internal_agent(record) is expected

    @pytest.mark.parametrize(
        "status,content_type,agent,expected",
        [
            ("200", "text/html", "aee/v27", False),
            ("200", "text/html", "Mozilla/5.0", True),
            ("201", "text/html", "Mozilla/5.0", True),
            ("200", "TEXT/HTML;charset=UTF-8", "Mozilla/5.0", True),
            ("200", "text/css", "Mozilla/5.0", False),
            ("404", "text/html", "Mozilla/5.0", False),
            ("404", "text/css", "aee/v27", False),
            (200, "text/html", "Mozilla/5.0", True),
        ],
    )
    def test_is_page_view(self, extractor, status, content_type, agent, expected) -> None:
        """2xx text/html requests from real agents are page views."""
        record = LogRecord(
            {
                "status": status,
                "content_type": content_type,
                "request": {"http_user_agent": agent},
            }
        )
        assert extractor.is_page_view(record) is expected

    def test_page_view_without_user_agent(self, extractor) -> None:
        """A missing user agent is not internal."""
        record = LogRecord({"status": "200", "content_type": "text/html"})
        assert extractor.is_page_view(record)
