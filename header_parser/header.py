"""Header engine: turns a raw header block into decoded, structured fields."""

import logging
import re
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, Union
from urllib.parse import unquote_to_bytes

import config
from header_parser.addresses import AddressParser, get_address_parser, parse_addresses
from header_parser.attributes import read_attribute
from header_parser.charset import convert_encoding, to_text
from header_parser.dates import parse_date
from header_parser.encoded_words import HeaderDecoder, decode_subject
from header_parser.exceptions import DateParseError
from header_parser.models import Address, Priority
from header_parser.tokenizer import ADDRESS_FIELDS, parse_raw_headers

logger = logging.getLogger(__name__)

# Fields whose values legitimately contain ";" and "=" without being
# parameter lists
EXTENSION_EXCLUDED_FIELDS = {"user_agent", "subject", "received"}

_BOUNDARY_JUNK = ('"', "\\r", "\\n", "\n", "\r", ";", "\\s")

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def merge_values(existing, value):
    """Combine a stored field value with a newly arrived one."""
    if isinstance(existing, list):
        return existing + value if isinstance(value, list) else existing + [value]
    if isinstance(value, list):
        return [existing] + value
    return [existing, value]


def clear_boundary_string(value: str) -> str:
    for junk in _BOUNDARY_JUNK:
        value = value.replace(junk, "")
    return value


def decode_boundary(boundary: str, fallback_encoding: str = "utf-8") -> str:
    """Decode an RFC 2231 ``charset'lang'percent-encoded`` boundary."""
    if "'" not in boundary:
        return boundary
    parts = boundary.split("'", 2)
    if len(parts) != 3:
        return boundary
    charset, _language, encoded = parts
    # an unconvertible value keeps its percent-decoded bytes
    return convert_encoding(
        unquote_to_bytes(encoded), charset or "us-ascii", "utf-8", fallback_encoding
    )


class Header:
    """A parsed header block.

    Fields are exposed through ``get``/``set`` and as attributes
    (``header.subject``). Address fields hold lists of Address, ``date`` a
    timezone-aware datetime and ``priority`` a Priority.
    """

    def __init__(
        self,
        raw_header: Union[str, bytes],
        decoder: Optional[str] = None,
        address_parser: Optional[AddressParser] = None,
        boundary_regex: Optional[str] = None,
        fallback_date: Optional[str] = None,
        fallback_encoding: Optional[str] = None,
    ):
        self.fallback_encoding = fallback_encoding or config.FALLBACK_ENCODING
        self.raw = to_text(raw_header or "", self.fallback_encoding)
        self.decoder = HeaderDecoder(decoder or config.DECODER, self.fallback_encoding)
        self.address_parser = address_parser or get_address_parser(config.ADDRESS_PARSER)
        self.boundary_regex = boundary_regex or config.BOUNDARY_REGEX
        self.fallback_date = fallback_date if fallback_date is not None else config.FALLBACK_DATE
        self._attributes = {}
        self.parse()

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __contains__(self, name):
        return name in self._attributes

    def get(self, name: str):
        return self._attributes.get(name)

    def set(self, name: str, value, strict: bool = False):
        """Store a field value; non-strict sets merge with an existing value."""
        if name in self._attributes and not strict:
            self._attributes[name] = merge_values(self._attributes[name], value)
        else:
            self._attributes[name] = value
        return self._attributes[name]

    def get_attributes(self) -> Mapping[str, object]:
        return MappingProxyType(dict(self._attributes))

    def find(self, pattern: str) -> Optional[str]:
        """Return the first capture group of ``pattern`` in the raw header."""
        match = re.search(pattern, self.raw, re.IGNORECASE)
        if match is None or match.lastindex is None:
            return None
        return match.group(1)

    def get_boundary(self) -> Optional[str]:
        # A regex over the raw text can hit "boundary=" in other headers, so
        # the parsed parameter is preferred.
        boundary = self.get("boundary")
        if isinstance(boundary, list):
            boundary = boundary[0] if boundary else None
        if not boundary:
            boundary = self.find(self.boundary_regex)
        if boundary is None:
            return None
        return clear_boundary_string(decode_boundary(boundary, self.fallback_encoding))

    def parse(self):
        header = parse_raw_headers(self.raw, self.address_parser)

        self.extract_addresses(header)

        if "subject" in header:
            self.set("subject", decode_subject(header["subject"], self.fallback_encoding))
        if "references" in header:
            self.set("references", self.decoder.decode(header["references"]))
        if "message_id" in header:
            message_id = header["message_id"]
            if isinstance(message_id, list):
                message_id = " ".join(message_id)
            self.set("message_id", message_id.replace("<", "").replace(">", ""))

        self.extract_date(header)

        for key, value in header.items():
            key = key.strip().lower()
            if key not in self._attributes:
                self.set(key, value)

        self.extract_header_extensions()
        self.find_priority()

    def extract_addresses(self, header):
        for key in ADDRESS_FIELDS:
            if key in header:
                self.set(key, parse_addresses(header[key], self.decoder, self.address_parser))

    def extract_date(self, header):
        if "date" not in header:
            return
        date = header["date"]
        if isinstance(date, list):
            date = date[0]

        try:
            parsed_date = parse_date(date)
        except DateParseError as e:
            parsed_date = self._fallback_date(date, e)
        self.set("date", parsed_date)

    def _fallback_date(self, date, error):
        if self.fallback_date:
            try:
                return parse_date(self.fallback_date)
            except DateParseError:
                logger.warning("Invalid fallback date %r, using current time", self.fallback_date)
        else:
            logger.warning(
                "Invalid message date. ID:%s Date:%s: %s", self.get("message_id"), date, error
            )
        return datetime.now(timezone.utc)

    def extract_header_extensions(self):
        """Promote ``key=value`` parameters of composite fields to fields of their own."""
        for key, value in list(self._attributes.items()):
            if key in EXTENSION_EXCLUDED_FIELDS:
                continue
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value)
            else:
                value = str(value)
            if ";" not in value or "=" not in value:
                continue

            for sub_key, sub_value in read_attribute(value).items():
                if not sub_key:
                    continue
                if sub_value == "":
                    self.set(key, sub_key, strict=True)
                    continue
                if sub_key not in self._attributes:
                    self.set(sub_key, sub_value)

    def find_priority(self):
        raw = self.get("x_priority")
        match = _LEADING_INT_RE.match(str(raw)) if raw is not None else None
        try:
            priority = Priority(int(match.group(1))) if match else Priority.UNKNOWN
        except ValueError:
            priority = Priority.UNKNOWN
        self.set("priority", priority, strict=True)

    def to_dict(self):
        """Return the fields in a JSON-friendly form."""
        result = {}
        for key, value in self._attributes.items():
            if isinstance(value, list):
                value = [v.to_dict() if isinstance(v, Address) else v for v in value]
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Priority):
                value = value.name
            result[key] = value
        return result
