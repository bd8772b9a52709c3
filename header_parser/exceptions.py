"""Errors raised inside the header parser."""


class HeaderError(Exception):
    """Base class for header parsing errors."""


class EncodingConversionError(HeaderError):
    """A byte string could not be converted between two charsets."""


class DateParseError(HeaderError, ValueError):
    """A Date header could not be turned into a timestamp."""

    def __init__(self, value, message=None):
        self.value = value
        super().__init__(message or "Invalid message date: {!r}".format(value))
