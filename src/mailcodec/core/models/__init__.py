"""Value types shared by the decoder and encoder."""

from .message import AttachmentInfo, ParsedMessage
from .mime import Disposition, DispositionKind, MessagePart, MimeTypeDescriptor
from .outgoing import (
    EmailAddress,
    OutgoingAttachment,
    OutgoingMessage,
    Priority,
)

__all__ = [
    "AttachmentInfo",
    "Disposition",
    "DispositionKind",
    "EmailAddress",
    "MessagePart",
    "MimeTypeDescriptor",
    "OutgoingAttachment",
    "OutgoingMessage",
    "ParsedMessage",
    "Priority",
]
