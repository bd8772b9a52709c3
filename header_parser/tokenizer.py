"""Split a raw header block into fields and collapse their raw values."""

import re
from collections import OrderedDict
from typing import Dict, List, Optional, Union

from header_parser.addresses import AddressParser, RegexAddressParser
from header_parser.models import RawAddress

ADDRESS_FIELDS = ("from", "to", "cc", "bcc", "reply_to", "sender")

# Error markers left behind by address parsers for unparseable input
INVALID_MAILBOXES = {">", "INVALID_ADDRESS"}
INVALID_HOST = ".SYNTAX-ERROR."

_LINE_BREAK_RE = re.compile(r"\r\n|\n")

RawValue = Union[str, List[str]]


def normalize_key(name: str) -> str:
    return name.strip().lower().replace("-", "_")


def tokenize(raw_headers: Optional[str]) -> "OrderedDict[str, RawValue]":
    """Accumulate the raw value(s) of every field, in order of appearance.

    A tab continuation always adds a new element to the previous field; a
    space continuation is appended to the previous field's text unless that
    field already holds several values. Lines without a colon are dropped.
    """
    headers = OrderedDict()
    prev_header = None

    for line in _LINE_BREAK_RE.split(raw_headers or ""):
        if line.startswith("\t"):
            line = line[1:].strip()
            if prev_header is not None:
                current = headers[prev_header]
                headers[prev_header] = (current if isinstance(current, list) else [current]) + [line]
        elif line.startswith(" "):
            line = line[1:].strip()
            if prev_header is not None:
                current = headers[prev_header]
                if isinstance(current, list):
                    current.append(line)
                elif not current:
                    headers[prev_header] = line
                elif line:
                    headers[prev_header] = "{} {}".format(current, line)
        else:
            pos = line.find(":")
            if pos > 0:
                key = normalize_key(line[:pos])
                value = line[pos + 1:].strip()
                if key in headers:
                    current = headers[key]
                    headers[key] = (current if isinstance(current, list) else [current]) + [value]
                else:
                    headers[key] = value
                prev_header = key
    return headers


def collapse(values: RawValue):
    """Reduce the raw values of an ordinary field to a scalar or a list."""
    if not isinstance(values, list):
        return values
    values = [v for v in values if v != ""]
    if len(values) == 1:
        return values[0]
    if len(values) == 2:
        return " ".join(values)
    if len(values) > 2:
        return values
    return ""


def is_invalid_address(value) -> bool:
    if not isinstance(value, RawAddress):
        return False
    return value.mailbox in INVALID_MAILBOXES and (not value.host or value.host == INVALID_HOST)


def sanitize_header_value(value):
    if isinstance(value, list):
        return [v for v in value if not is_invalid_address(v)]
    return value


def parse_raw_headers(raw_headers: Optional[str], address_parser: Optional[AddressParser] = None) -> Dict[str, object]:
    """Tokenize a raw header block and collapse each field to its raw value.

    Address fields become lists of RawAddress (display names still encoded)
    plus a ``<name>address`` field holding the raw text. The subject is
    joined but not decoded.
    """
    address_parser = address_parser or RegexAddressParser()
    headers = tokenize(raw_headers)

    for key, values in list(headers.items()):
        values = values if isinstance(values, list) else [values]
        if key in ADDRESS_FIELDS:
            value = address_parser.split(values)
            headers[key + "address"] = ", ".join(values)
        elif key == "subject":
            value = " ".join(values)
        else:
            value = collapse(values)

        value = sanitize_header_value(value)
        if isinstance(value, list) and not value:
            del headers[key]
        else:
            headers[key] = value
    return headers
