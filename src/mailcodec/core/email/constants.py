"""Wire-format constants for outbound messages."""

from enum import Enum

CRLF = "\r\n"
MIME_VERSION = "1.0"

DEFAULT_ATTACHMENT_TYPE = "application/octet-stream"
DEFAULT_DISPOSITION = "attachment"
TEXT_CHARSET = "utf-8"


class LineLimits:
    """Header line length limits from RFC 5322."""

    MAX_LINE_LENGTH = 998  # Hard limit, excluding CRLF
    HEADER_FOLD_LENGTH = 76  # Preferred header line length


class ReadSizes:
    """Stream read sizes used while encoding attachments."""

    # A multiple of 57 bytes, the raw size of one 76-character base64 line
    ATTACHMENT_CHUNK = 57 * 1024


class AuthMechanism(str, Enum):
    """SASL mechanisms with a wire encoding in ``auth``."""

    PLAIN = "PLAIN"
    LOGIN = "LOGIN"
    XOAUTH2 = "XOAUTH2"


# (X-Priority, Importance) for each non-normal priority
PRIORITY_HEADERS = {
    "high": ("1", "high"),
    "low": ("5", "low"),
}

# Headers the encoder writes itself; custom headers may not override them
RESERVED_HEADERS = frozenset(
    {
        "from",
        "to",
        "cc",
        "bcc",
        "reply-to",
        "subject",
        "date",
        "mime-version",
        "content-type",
        "content-transfer-encoding",
        "x-priority",
        "importance",
    }
)
