"""Charset name resolution, sniffing and conversion."""

import codecs
import logging
from typing import Optional, Union

import chardet

from header_parser.exceptions import EncodingConversionError

logger = logging.getLogger(__name__)

# Names seen in real mail that the codec registry does not know, or knows
# under a different (usually narrower) codec.
CHARSET_ALIASES = {
    "utf8": "utf-8",
    "unicode-1-1-utf-7": "utf-7",
    "ks_c_5601-1987": "cp949",
    "ks_c_5601": "cp949",
    "gb2312": "gb18030",
    "gbk": "gb18030",
    "x-gbk": "gb18030",
    "iso-8859-8-i": "iso-8859-8",
    "windows-874": "cp874",
    "x-mac-roman": "mac-roman",
    "x-user-defined": "windows-1252",
    "unknown-8bit": "windows-1252",
    "x-unknown": "windows-1252",
    "default": "windows-1252",
}


def charset_alias(name: Optional[str], fallback: str = "utf-8") -> str:
    """Resolve a charset label to a codec name, or to the fallback if unknown."""
    label = (name or "").strip().strip('"').lower()
    label = CHARSET_ALIASES.get(label, label)
    if not label:
        label = fallback
    try:
        return codecs.lookup(label).name
    except LookupError:
        logger.debug("Unknown charset %r, using %r", name, fallback)
        return codecs.lookup(fallback).name


def detect_encoding(data: bytes, fallback: str = "utf-8") -> str:
    """Guess the charset of an undecoded byte string."""
    if not data:
        return charset_alias(fallback)
    guess = chardet.detect(data).get("encoding")
    return charset_alias(guess, fallback) if guess else charset_alias(fallback)


def convert(data: bytes, from_charset: str, to_charset: str) -> bytes:
    """Re-encode ``data`` from one charset to another."""
    try:
        return data.decode(from_charset).encode(to_charset)
    except (LookupError, UnicodeError) as e:
        raise EncodingConversionError(
            "Cannot convert from {} to {}: {}".format(from_charset, to_charset, e)
        ) from e


def as_bytes(value: Union[str, bytes]) -> Optional[bytes]:
    if isinstance(value, bytes):
        return value
    try:
        # raw 8-bit header text arrives mapped one byte per character
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return None


def _as_text(value: Union[str, bytes], charset: str = "latin-1") -> str:
    if isinstance(value, str):
        return value
    return value.decode(charset, errors="replace")


def convert_encoding(
    value: Union[str, bytes],
    from_charset: Optional[str] = "iso-8859-2",
    to_charset: str = "utf-8",
    fallback: str = "utf-8",
) -> str:
    """Convert header text from ``from_charset`` and return it as text.

    Text that is already Unicode, identical charsets and US-ASCII sources are
    returned untouched. A failed conversion is retried once with the hyphens
    stripped from the source charset name; if that fails too the input is
    returned unchanged.
    """
    source = charset_alias(from_charset, fallback)
    target = charset_alias(to_charset, fallback)

    if source == target:
        return _as_text(value, target)
    if source == "ascii" and target == "utf-8":
        return _as_text(value, target)

    data = as_bytes(value)
    if data is None:
        return value

    try:
        return convert(data, source, target).decode(target)
    except EncodingConversionError as e:
        logger.debug("%s", e)

    if "-" in (from_charset or ""):
        retry = charset_alias(from_charset.replace("-", ""), fallback)
        try:
            return convert(data, retry, target).decode(target)
        except EncodingConversionError as e:
            logger.debug("%s", e)

    return _as_text(value)


def to_text(data: Union[str, bytes], fallback: str = "utf-8") -> str:
    """Decode a raw header block that arrived as bytes."""
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode(detect_encoding(data, fallback), errors="replace")
