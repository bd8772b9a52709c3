"""Split address-list headers into mailboxes and decode their display names."""

import re
from email.utils import getaddresses
from typing import Iterable, List, Optional

from header_parser.encoded_words import HeaderDecoder, decode_subject
from header_parser.models import Address, RawAddress

# Commas outside of double quotes
_SPLIT_RE = re.compile(r', ?(?=(?:[^"]*"[^"]*")*[^"]*$)')

# "Name <user@host>", "<user@host>" or a bare "user@host"
_ADDRESS_RE = re.compile(
    r"^(?:(?P<name>.+)\s)?(?(name)<|<?)(?P<email>[^\s]+?)(?(name)>|>?)$"
)


def _unquote(name: str) -> str:
    if len(name) > 1 and name.startswith('"') and name.endswith('"'):
        name = name[1:-1].replace('\\"', '"')
    return name


class AddressParser:
    """Turns raw address-list strings into RawAddress records."""

    def split(self, values: Iterable[str]) -> List[RawAddress]:
        raise NotImplementedError


class RegexAddressParser(AddressParser):

    def split_one(self, value: str) -> Optional[RawAddress]:
        value = value.strip()
        if value.endswith(","):
            value = value[:-1]
        match = _ADDRESS_RE.match(value)
        if match is None:
            return None
        name = _unquote((match.group("name") or "").strip())
        email = match.group("email").strip()
        mailbox, at, host = email.partition("@")
        return RawAddress(personal=name, mailbox=mailbox, host=host if at else None)

    def split(self, values: Iterable[str]) -> List[RawAddress]:
        addresses = []
        for value in values:
            for candidate in _SPLIT_RE.split(value or ""):
                address = self.split_one(candidate)
                if address is not None:
                    addresses.append(address)
        return addresses


class NativeAddressParser(AddressParser):
    """Uses email.utils; keeps only addresses with a mailbox and a host."""

    def split(self, values: Iterable[str]) -> List[RawAddress]:
        addresses = []
        for display, email in getaddresses([v for v in values if v]):
            parts = email.split("@")
            if len(parts) == 2:
                addresses.append(RawAddress(personal=display, mailbox=parts[0], host=parts[1]))
        return addresses


ADDRESS_PARSERS = {
    "regex": RegexAddressParser,
    "native": NativeAddressParser,
}


def get_address_parser(name: str) -> AddressParser:
    try:
        return ADDRESS_PARSERS[name]()
    except KeyError:
        raise ValueError("Unknown address parser: {}".format(name))


def decode_personal(personal: Optional[str], decoder: HeaderDecoder) -> str:
    """Decode a display name token by token; each token may be encoded on its own."""
    if not personal:
        return ""
    slices = []
    for piece in personal.split(" "):
        text = "".join(word.text for word in decoder.mime_header_decode(piece)) if piece else ""
        if text.startswith("'"):
            text = text.replace("'", "")
        slices.append(decode_subject(text, decoder.fallback_encoding))
    return " ".join(slices).strip()


def _as_raw(item) -> RawAddress:
    if isinstance(item, RawAddress):
        return item
    if isinstance(item, dict):
        return RawAddress(
            personal=item.get("personal") or "",
            mailbox=item.get("mailbox") or "",
            host=item.get("host") or None,
        )
    return RawAddress(
        personal=getattr(item, "personal", "") or "",
        mailbox=getattr(item, "mailbox", "") or "",
        host=getattr(item, "host", None) or None,
    )


def parse_addresses(value, decoder: HeaderDecoder, parser: Optional[AddressParser] = None) -> List[Address]:
    """Parse a raw string, a list of strings or a list of address records."""
    parser = parser or RegexAddressParser()
    if not value:
        return []
    if isinstance(value, str):
        value = [value]

    raw_addresses = []
    for item in value:
        if isinstance(item, str):
            raw_addresses.extend(parser.split([item]))
        else:
            raw_addresses.append(_as_raw(item))

    addresses = []
    for raw in raw_addresses:
        mailbox = raw.mailbox or ""
        if mailbox == ">":
            mailbox = ""
        host = raw.host or None
        personal = decode_personal(raw.personal, decoder)
        if not personal and not mailbox and not host:
            continue
        addresses.append(Address(personal=personal, mailbox=mailbox, host=host))
    return addresses
