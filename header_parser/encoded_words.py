"""RFC 2047 encoded-word decoding for header values."""

import base64
import binascii
import logging
import quopri
import re
from email.errors import HeaderParseError
from email.header import decode_header
from typing import List, Optional

from header_parser.charset import as_bytes, charset_alias, convert_encoding, detect_encoding
from header_parser.models import Decoder, DecodedWord

logger = logging.getLogger(__name__)

ENCODED_WORD_RE = re.compile(r"=\?([^?]+)\?([QB])\?([^?]*)\?=", re.IGNORECASE)

# Whitespace between two adjacent encoded words is not part of the text
_ADJACENT_WORDS_RE = re.compile(r"(\?=)\s+(=\?)")


def decode_word(charset: str, encoding: str, payload: str, fallback: str = "utf-8") -> Optional[str]:
    """Decode a single encoded word, or return None if the payload is broken."""
    # RFC 2231 allows a language suffix: =?utf-8*en?Q?...?=
    charset = charset.split("*", 1)[0]
    try:
        if encoding.upper() == "B":
            padded = payload + "=" * (-len(payload) % 4)
            data = base64.b64decode(padded)
        else:
            data = quopri.decodestring(payload.encode("latin-1", errors="replace"), header=True)
    except (binascii.Error, ValueError) as e:
        logger.debug("Broken encoded word %r: %s", payload, e)
        return None
    if payload and not data:
        logger.debug("Encoded word %r decodes to nothing", payload)
        return None
    return data.decode(charset_alias(charset, fallback), errors="replace")


def decode_subject(text: Optional[str], fallback: str = "utf-8") -> str:
    """Decode every encoded word in ``text``, leaving broken words as they are."""
    if not text:
        return ""
    text = _ADJACENT_WORDS_RE.sub(r"\1\2", text)

    chunks = []
    position = 0
    for match in ENCODED_WORD_RE.finditer(text):
        chunks.append(text[position:match.start()])
        decoded = decode_word(match.group(1), match.group(2), match.group(3), fallback)
        chunks.append(match.group(0) if decoded is None else decoded)
        position = match.end()
    chunks.append(text[position:])
    return "".join(chunks)


def has_broken_word(text: str, fallback: str = "utf-8") -> bool:
    return any(
        decode_word(m.group(1), m.group(2), m.group(3), fallback) is None
        for m in ENCODED_WORD_RE.finditer(text)
    )


def not_decoded(encoded: str, decoded: str) -> bool:
    """Check whether ``decoded`` is still an encoded word taken from ``encoded``."""
    return (
        decoded.startswith("=?")
        and decoded.find("?=") == len(decoded) - 2
        and decoded in encoded
    )


def is_utf8(value: str) -> bool:
    return value.lower().startswith("=?utf-8?")


class HeaderDecoder:
    """Decode header text with either the email package or the per-word decoder."""

    def __init__(self, decoder=Decoder.NATIVE, fallback_encoding: str = "utf-8"):
        self.decoder = Decoder(decoder)
        self.fallback_encoding = fallback_encoding

    def get_encoding(self, value) -> str:
        if isinstance(value, DecodedWord):
            return charset_alias(value.charset, self.fallback_encoding)
        data = as_bytes(value)
        if data is None:
            # already Unicode, nothing left to sniff
            return charset_alias(self.fallback_encoding)
        return detect_encoding(data, self.fallback_encoding)

    def mime_header_decode(self, text: str) -> List[DecodedWord]:
        # the email package trips over the escape sequences of iso-2022-jp
        if text.lower().startswith("=?iso-2022-jp?"):
            return [DecodedWord("iso-2022-jp", decode_subject(text, self.fallback_encoding))]

        if self.decoder is Decoder.GENERIC:
            charset = self.get_encoding(text)
            return [DecodedWord(charset, convert_encoding(text, charset, fallback=self.fallback_encoding))]

        # the email package drops what it cannot decode instead of failing
        if has_broken_word(text, self.fallback_encoding):
            return [DecodedWord(self.get_encoding(text), text)]
        try:
            parts = decode_header(text)
        except HeaderParseError as e:
            logger.debug("Cannot decode header %r: %s", text, e)
            return [DecodedWord(self.get_encoding(text), text)]

        words = []
        for data, charset in parts:
            if isinstance(data, str):
                words.append(DecodedWord(charset or "us-ascii", data))
            elif charset is None:
                words.append(DecodedWord("us-ascii", data.decode("raw-unicode-escape")))
            else:
                resolved = charset_alias(charset, self.fallback_encoding)
                words.append(DecodedWord(resolved, data.decode(resolved, errors="replace")))
        return words

    def decode(self, value):
        """Decode a header value (or a list of them) to Unicode text."""
        if isinstance(value, list):
            return [self.decode(item) for item in value]
        if value is None:
            return None

        original = value
        if self.decoder is Decoder.NATIVE:
            value = "".join(word.text for word in self.mime_header_decode(value))
        else:
            value = decode_subject(value, self.fallback_encoding)

        if is_utf8(value):
            value = decode_subject(value, self.fallback_encoding)

        if not_decoded(original, value):
            value = convert_encoding(
                original, self.get_encoding(original), fallback=self.fallback_encoding
            )
        return value
