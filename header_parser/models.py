from dataclasses import dataclass, asdict
from enum import Enum, IntEnum
from typing import Optional


class Decoder(str, Enum):
    NATIVE = "native"
    GENERIC = "generic"


class Priority(IntEnum):
    UNKNOWN = 0
    HIGHEST = 1
    HIGH = 2
    NORMAL = 3
    LOW = 4
    LOWEST = 5


@dataclass
class RawAddress:
    """An address as split from the raw header, display name still encoded."""
    personal: str = ""
    mailbox: str = ""
    host: Optional[str] = None


@dataclass(frozen=True)
class Address:
    personal: str
    mailbox: str
    host: Optional[str] = None

    @property
    def mail(self) -> str:
        if self.mailbox and self.host:
            return "{}@{}".format(self.mailbox, self.host)
        return ""

    @property
    def full(self) -> str:
        if self.personal:
            return "{} <{}>".format(self.personal, self.mail)
        return self.mail

    def __str__(self):
        return self.full

    def to_dict(self):
        d = asdict(self)
        d["mail"] = self.mail
        d["full"] = self.full
        return d


@dataclass(frozen=True)
class DecodedWord:
    charset: str
    text: str
