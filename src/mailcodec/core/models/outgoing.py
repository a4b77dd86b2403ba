"""Outgoing message models consumed by the encoder."""

from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parseaddr
from enum import Enum
from typing import BinaryIO, List, Optional, Sequence, Tuple, Union


class Priority(str, Enum):
    """Message priority as written to X-Priority/Importance."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True)
class EmailAddress:
    """Value object for a mailbox with an optional display name."""

    address: str
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "address", self.address.strip())
        object.__setattr__(self, "name", self.name.strip())

    @classmethod
    def parse(cls, value: str) -> "EmailAddress":
        """Build from ``"Name <addr>"`` or a bare address."""
        name, address = parseaddr(value)
        return cls(address=address or value, name=name)

    def __str__(self) -> str:
        return f"{self.name} <{self.address}>" if self.name else self.address


AddressLike = Union[EmailAddress, str]


def _coerce(value: AddressLike) -> EmailAddress:
    return value if isinstance(value, EmailAddress) else EmailAddress.parse(value)


def _coerce_all(values: Optional[Sequence[AddressLike]]) -> Tuple[EmailAddress, ...]:
    if values is None:
        return ()
    if isinstance(values, (str, EmailAddress)):
        values = [values]
    return tuple(_coerce(v) for v in values)


@dataclass(frozen=True)
class OutgoingAttachment:
    """Attachment backed by a readable binary stream.

    The stream is read once during encoding; ``content=None`` is an error.
    """

    filename: str
    content: Optional[BinaryIO]
    content_type: str = "application/octet-stream"
    content_id: str = ""
    disposition: str = "attachment"


@dataclass(frozen=True)
class OutgoingMessage:
    """Structured message to be encoded to wire format."""

    sender: AddressLike
    to: Sequence[AddressLike] = ()
    subject: str = ""
    text_body: str = ""
    html_body: str = ""
    cc: Sequence[AddressLike] = ()
    bcc: Sequence[AddressLike] = ()
    reply_to: Sequence[AddressLike] = ()
    attachments: Sequence[OutgoingAttachment] = ()
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    priority: Priority = Priority.NORMAL
    date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "sender", _coerce(self.sender))
        object.__setattr__(self, "to", _coerce_all(self.to))
        object.__setattr__(self, "cc", _coerce_all(self.cc))
        object.__setattr__(self, "bcc", _coerce_all(self.bcc))
        object.__setattr__(self, "reply_to", _coerce_all(self.reply_to))
        object.__setattr__(self, "attachments", tuple(self.attachments or ()))
        headers = self.headers.items() if isinstance(self.headers, dict) else self.headers
        object.__setattr__(self, "headers", tuple((str(k), str(v)) for k, v in headers))
        object.__setattr__(self, "priority", Priority(self.priority))

    def envelope_recipients(self) -> List[str]:
        """Every recipient address for the transport's RCPT TO, without duplicates."""
        seen = set()
        recipients = []
        for addr in (*self.to, *self.cc, *self.bcc):
            key = addr.address.lower()
            if addr.address and key not in seen:
                seen.add(key)
                recipients.append(addr.address)
        return recipients
