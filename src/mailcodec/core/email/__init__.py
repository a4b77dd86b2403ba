"""Outbound message encoding and transport auth encoders.

Usage Examples
----------------

Encode a message with an attachment:
    >>> from mailcodec.core.email import MessageEncoder
    >>> from mailcodec.core.models import OutgoingAttachment, OutgoingMessage
    >>>
    >>> with open("report.pdf", "rb") as fh:
    ...     wire = MessageEncoder().encode(OutgoingMessage(
    ...         sender="me@example.com",
    ...         to=["you@example.com"],
    ...         subject="Report",
    ...         text_body="Attached.",
    ...         attachments=[OutgoingAttachment("report.pdf", fh, "application/pdf")],
    ...     ))

Build an XOAUTH2 initial response:
    >>> from mailcodec.core.email import AuthMechanism, initial_response
    >>>
    >>> initial_response(AuthMechanism.XOAUTH2, "me@example.com", access_token)

Notes
-----
- Attachment streams are read once, in chunks
- Every multipart level gets its own random boundary
"""

from .auth import (
    encode_login_step,
    encode_plain,
    encode_xoauth2,
    initial_response,
)
from .constants import AuthMechanism
from .encoder import MessageEncoder, encode_message

__all__ = [
    # Encoder
    "MessageEncoder",
    "encode_message",
    # Auth
    "AuthMechanism",
    "encode_login_step",
    "encode_plain",
    "encode_xoauth2",
    "initial_response",
]
