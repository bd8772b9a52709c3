"""Turn raw Date header values into timezone-aware datetimes.

Mail servers and clients produce a long tail of almost-RFC 2822 dates. The
generic parser is tried first; only when it fails is the value matched
against ``DATE_REPAIRS``, an ordered table of known defects, and the first
matching rule rewrites it for one more attempt.

Currently known invalid formats:

    Mon, 20 Nov 2017 20:31:31 +0800 (GMT+8:00)   double timezone (Windows)
    Thu, 8 Nov 2018 08:54:58 -0200 (-02)         double and invalid timezone
    04 Jan 2018 10:12:47 UT                      missing "C"
    Thu, 31 May 2018 18:15:00 +0800 (added by)   comment added by the server
    Sat, 31 Aug 2013 20:08:23 +0580              invalid timezone (PHPMailer)
    Di., 15 Feb. 2022 06:52:44 +0100 (MEZ)       localized, zone name
"""

import re
from collections import namedtuple
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil import tz

from header_parser.exceptions import DateParseError


def _offset(name, hours):
    return tz.tzoffset(name, hours * 3600)


# RFC 822 zone names; anything else without an offset is read as UTC
RFC822_ZONES = {
    "UT": tz.UTC,
    "UTC": tz.UTC,
    "GMT": tz.UTC,
    "Z": tz.UTC,
    "EST": _offset("EST", -5),
    "EDT": _offset("EDT", -4),
    "CST": _offset("CST", -6),
    "CDT": _offset("CDT", -5),
    "MST": _offset("MST", -7),
    "MDT": _offset("MDT", -6),
    "PST": _offset("PST", -8),
    "PDT": _offset("PDT", -7),
}

# Non-English month abbreviations that fit the localized patterns below
LOCALIZED_MONTHS = {
    "mai": "May",
    "okt": "Oct",
    "dez": "Dec",
    "mrt": "Mar",
    "mei": "May",
    "avr": "Apr",
    "ene": "Jan",
    "abr": "Apr",
    "ago": "Aug",
    "dic": "Dec",
    "gen": "Jan",
    "mag": "May",
    "giu": "Jun",
    "lug": "Jul",
    "set": "Sep",
    "ott": "Oct",
}

_LOCALIZED_MONTH_RE = re.compile(r"(?<= )([A-Za-z]{2,3})(?=\. )")

# "GMT+8", "UTC-03:30"; the sign follows the common reading, not POSIX
_NAMED_OFFSET_RE = re.compile(r"\b(?:GMT|UTC)([+-])(\d{1,2})(?::?(\d{2}))?\b", re.IGNORECASE)

_NUMERIC_OFFSET_RE = re.compile(r"[+-]\d{4}\b")
_TRAILING_COMMENT_RE = re.compile(r"\s*\([^()]*\)\s*$")

DateRepair = namedtuple("DateRepair", ["name", "pattern", "repair"])


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz.UTC)
    return value


def _named_offset(match) -> str:
    return "{}{:02d}{}".format(match.group(1), int(match.group(2)), match.group(3) or "00")


def _generic_parse(value: str) -> datetime:
    try:
        return _aware(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError, OverflowError):
        pass

    # a zone name in a trailing comment must not override a numeric offset
    if _NUMERIC_OFFSET_RE.search(value):
        value = _TRAILING_COMMENT_RE.sub("", value)
    result = _aware(date_parser.parse(value, tzinfos=RFC822_ZONES))
    # dateutil accepts offsets that datetime cannot represent
    result.utcoffset()
    return result


def _strptime(value: str, template: str) -> datetime:
    try:
        return _aware(datetime.strptime(value, template))
    except ValueError as e:
        raise DateParseError(value, "Date {!r} does not match {!r}".format(value, template)) from e


def _after_weekday(value: str) -> str:
    return value.split(",", 1)[1].strip()


def _localize_month(value: str) -> str:
    return _LOCALIZED_MONTH_RE.sub(
        lambda m: LOCALIZED_MONTHS.get(m.group(1).lower(), m.group(1)), value
    )


def _dotted_stamp(date, match):
    return _strptime(match.group(0), "%Y.%m.%d-%H.%M.%S")


def _drop_duplicate_offset(date, match):
    return " ".join(date.split(" ")[:-2])


def _drop_weekday(date, match):
    return _strptime(_after_weekday(date), "%d %b %Y %H:%M:%S %z")


def _append_c(date, match):
    return date + "C"


def _strip_commas(date, match):
    return date.replace(",", "")


def _localized_with_zone_name(date, match):
    first = date.split("/")[0]
    date = " ".join(_after_weekday(first).split(" ")[:-1]).strip()
    return _strptime(_localize_month(date), "%d %b. %Y %H:%M:%S %z")


def _localized_pair(date, match):
    first = date.split("/")[0]
    return _strptime(_localize_month(_after_weekday(first)), "%d %b. %Y %H:%M:%S %z")


def _before_comment(date, match):
    return date.split("(", 1)[0].strip()


_TIME = r"[0-9]{1,2}\:[0-9]{1,2}\:[0-9]{1,2}"
_OFFSET = r"[\-|\+][0-9]{4}"
_LOCALIZED = r"[A-Z]{2,3}\.\,\ [0-9]{1,2}\ [A-Z]{2,3}\.\ [0-9]{4}\ " + _TIME + r"\ " + _OFFSET


def _rule(name, pattern, repair):
    return DateRepair(name, re.compile(pattern, re.IGNORECASE), repair)


# Evaluated in order; the first matching rule wins.
DATE_REPAIRS = [
    _rule(
        "dotted-stamp",
        r"([0-9]{4}\.[0-9]{1,2}\.[0-9]{1,2}\-[0-9]{1,2}\.[0-9]{1,2}.[0-9]{1,2})+$",
        _dotted_stamp,
    ),
    _rule(
        "duplicate-offset",
        r"([0-9]{2} [A-Z]{3} [0-9]{4} " + _TIME + r" [+-][0-9]{1,4} " + _TIME + r" [+-][0-9]{1,4})+$",
        _drop_duplicate_offset,
    ),
    _rule(
        "weekday-prefix",
        r"([A-Z]{2,4}\,\ [0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ " + _OFFSET + r")+$",
        _drop_weekday,
    ),
    _rule("missing-utc-c", r"([0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ UT)+$", _append_c),
    _rule(
        "missing-utc-c-weekday",
        r"([A-Z]{2,3}\,\ [0-9]{1,2}\ [A-Z]{2,3}\ ([0-9]{2}|[0-9]{4})\ " + _TIME + r"\ UT)+$",
        _append_c,
    ),
    _rule(
        "duplicate-comma",
        r"([A-Z]{2,3}\,\ [0-9]{1,2}[\,]\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ " + _OFFSET + r")+$",
        _strip_commas,
    ),
    _rule(
        "localized-zone-name",
        r"(" + _LOCALIZED + r"\ \([A-Z]{3,4}\))(\/(" + _LOCALIZED + r"\ \([A-Z]{3,4}\))+)?$",
        _localized_with_zone_name,
    ),
    _rule("localized-pair", r"(" + _LOCALIZED + r")\/(" + _LOCALIZED + r")+$", _localized_pair),
    _rule(
        "offset-with-named-offset",
        r"([A-Z]{2,3}\,\ [0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ \+[0-9]{2,4}\ \(\+[0-9]{1,2}\))+$",
        _before_comment,
    ),
    _rule(
        "trailing-text",
        r"([A-Z]{2,3}[\,|\ \,]\ [0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r".*)+$",
        _before_comment,
    ),
    _rule(
        "trailing-comment",
        r"([A-Z]{2,3}\,\ [0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ " + _OFFSET + r"\ \(.*)\)+$",
        _before_comment,
    ),
    _rule(
        "trailing-comment-double-space",
        r"([A-Z]{2,3}\, \ [0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{4}\ " + _TIME + r"\ " + _OFFSET + r"\ \(.*)\)+$",
        _before_comment,
    ),
    _rule(
        "named-zone-offset",
        r"([0-9]{1,2}\ [A-Z]{2,3}\ [0-9]{2,4}\ [0-9]{2}\:[0-9]{2}\:[0-9]{2}\ [A-Z]{2}\ \-[0-9]{2}\:[0-9]{2}"
        r"\ \([A-Z]{2,3}\ \-[0-9]{2}:[0-9]{2}\))+$",
        _before_comment,
    ),
]


def normalize_date(value: str) -> str:
    """Fix textual artifacts that would trip up any parser."""
    value = value.replace("+0580", "+0530").strip()
    value = value.replace("&nbsp;", " ")
    value = _NAMED_OFFSET_RE.sub(_named_offset, value)
    return value.replace(" UT ", " UTC ")


def repair_date(value: str) -> Optional[Union[str, datetime]]:
    """Apply the first matching repair rule; None if no rule matches."""
    for rule in DATE_REPAIRS:
        match = rule.pattern.search(value)
        if match:
            return rule.repair(value, match)
    return None


def parse_date(value: Optional[str]) -> datetime:
    """Parse a raw Date header value, raising DateParseError on failure."""
    if not value:
        raise DateParseError(value, "Empty message date")

    date = normalize_date(value)
    try:
        return _generic_parse(date)
    except (ValueError, OverflowError):
        pass

    repaired = repair_date(date)
    if isinstance(repaired, datetime):
        return repaired
    if repaired is not None:
        date = repaired

    try:
        return _generic_parse(date)
    except (ValueError, OverflowError) as e:
        raise DateParseError(value) from e
