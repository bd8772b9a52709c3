from datetime import datetime, timezone

import pytest

from header_parser.dates import DATE_REPAIRS, normalize_date, parse_date, repair_date
from header_parser.exceptions import DateParseError


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_plain_rfc2822_date():
    assert parse_date("Mon, 20 Nov 2017 20:31:31 +0000") == utc(2017, 11, 20, 20, 31, 31)


def test_result_is_timezone_aware():
    assert parse_date("20 Nov 2017 20:31:31").tzinfo is not None


def test_duplicated_invalid_timezone():
    assert parse_date("Thu, 8 Nov 2018 08:54:58 -0200 (-02)") == utc(2018, 11, 8, 10, 54, 58)


def test_ut_is_utc():
    assert parse_date("04 Jan 2018 10:12:47 UT") == parse_date("04 Jan 2018 10:12:47 UTC")
    assert parse_date("04 Jan 2018 10:12:47 UT") == utc(2018, 1, 4, 10, 12, 47)


def test_windows_double_timezone():
    assert parse_date("Mon, 20 Nov 2017 20:31:31 +0800 (GMT+8:00)") == utc(2017, 11, 20, 12, 31, 31)


def test_server_comment():
    assert parse_date("Thu, 31 May 2018 18:15:00 +0800 (added by)") == utc(2018, 5, 31, 10, 15)


def test_phpmailer_offset():
    assert parse_date("Sat, 31 Aug 2013 20:08:23 +0580") == utc(2013, 8, 31, 14, 38, 23)


def test_nbsp():
    assert parse_date("Mon,&nbsp;20 Nov 2017 20:31:31 +0000") == utc(2017, 11, 20, 20, 31, 31)


def test_localized_with_zone_name():
    value = "Di., 15 Feb. 2022 06:52:44 +0100 (MEZ)/Di., 15 Feb. 2022 06:52:44 +0100 (MEZ)"
    assert parse_date(value) == utc(2022, 2, 15, 5, 52, 44)


def test_localized_pair():
    value = "fr., 25 nov. 2022 06:27:14 +0100/fr., 25 nov. 2022 06:27:14 +0100"
    assert parse_date(value) == utc(2022, 11, 25, 5, 27, 14)


def test_localized_month_name():
    assert parse_date("Mi., 7 Okt. 2020 10:00:00 +0200 (MESZ)") == utc(2020, 10, 7, 8)


def test_unparseable_date():
    with pytest.raises(DateParseError) as excinfo:
        parse_date("garbage")
    assert excinfo.value.value == "garbage"


def test_empty_date():
    with pytest.raises(DateParseError):
        parse_date("")


def test_date_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse_date("garbage")


def test_normalize_date():
    assert normalize_date(" Sat, 31 Aug 2013 20:08:23 +0580 ") == "Sat, 31 Aug 2013 20:08:23 +0530"
    assert normalize_date("04 Jan 2018 UT 10:12:47") == "04 Jan 2018 UTC 10:12:47"


def test_repair_dotted_stamp():
    assert repair_date("2019.01.15-10.20.30") == utc(2019, 1, 15, 10, 20, 30)


def test_repair_duplicate_offset():
    assert repair_date("14 Jan 2020 10:00:00 +0100 10:00:00 +0100") == "14 Jan 2020 10:00:00 +0100"


def test_repair_unknown_weekday():
    assert repair_date("Xyz, 15 Feb 2022 06:52:44 +0100") == utc(2022, 2, 15, 5, 52, 44)


def test_repair_missing_c():
    assert repair_date("Thu, 04 Jan 2018 10:12:47 UT") == "Thu, 04 Jan 2018 10:12:47 UTC"


def test_repair_duplicate_comma():
    assert repair_date("Thu, 8, Nov 2018 08:54:58 +0100") == "Thu 8 Nov 2018 08:54:58 +0100"


def test_repair_trailing_comment():
    assert repair_date("Thu, 31 May 2018 18:15:00 +0800 (added by)") == "Thu, 31 May 2018 18:15:00 +0800"


def test_no_repair_for_garbage():
    assert repair_date("garbage") is None


def test_repair_rule_names_are_unique():
    names = [rule.name for rule in DATE_REPAIRS]
    assert len(names) == len(set(names))


def test_zone_name_comment_does_not_override_offset():
    value = "Mon, 20 Nov 2017 20:31:31 +0800 (CST)"
    assert parse_date(value) == utc(2017, 11, 20, 12, 31, 31)
    assert parse_date(value).isoformat() == "2017-11-20T20:31:31+08:00"


def test_gmt_plus_hours_is_east_of_utc():
    assert parse_date("Wed, 01 Jan 2020 00:00:00 GMT+8").isoformat() == "2020-01-01T00:00:00+08:00"
    assert normalize_date("1 Jan 2020 00:00:00 UTC-03:30") == "1 Jan 2020 00:00:00 -0330"


def test_us_zone_names_still_apply():
    assert parse_date("Mon, 20 Nov 2017 20:31:31 EST") == utc(2017, 11, 21, 1, 31, 31)


def test_out_of_range_offset_is_rejected():
    with pytest.raises(DateParseError):
        parse_date("Mon, 20 Nov 2017 20:31:31 +9999")
    with pytest.raises(DateParseError):
        parse_date("20 Nov 2017 20:31:31 +9999")
