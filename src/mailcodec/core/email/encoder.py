"""Outbound message encoding to RFC 5322 / MIME wire bytes."""

import base64
import binascii
import re
import uuid
from datetime import datetime, timezone
from email.charset import QP, Charset
from email.header import Header
from email.utils import format_datetime, make_msgid
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from mailcodec.core.models.outgoing import (
    EmailAddress,
    OutgoingAttachment,
    OutgoingMessage,
    Priority,
)
from mailcodec.utils.config_manager import ConfigManager, EncodeOptions
from mailcodec.utils.errors import AttachmentReadError, CodecError, ErrorHandler
from mailcodec.utils.logging import get_logger, log_call

from .constants import (
    CRLF,
    DEFAULT_ATTACHMENT_TYPE,
    DEFAULT_DISPOSITION,
    MIME_VERSION,
    PRIORITY_HEADERS,
    RESERVED_HEADERS,
    TEXT_CHARSET,
    LineLimits,
    ReadSizes,
)

logger = get_logger(__name__)

HeaderFields = List[Tuple[str, str]]

_FIELD_NAME_RE = re.compile(r"^[!-9;-~]+$")
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")

_Q_UTF8 = Charset(TEXT_CHARSET)
_Q_UTF8.header_encoding = QP

# ASCII words longer than this cannot be folded under the hard line limit
_MAX_WORD_LENGTH = LineLimits.MAX_LINE_LENGTH - LineLimits.HEADER_FOLD_LENGTH


class _Entity:
    """A rendered MIME entity: header fields plus body bytes."""

    __slots__ = ("headers", "body")

    def __init__(self, headers: HeaderFields, body: bytes):
        self.headers = headers
        self.body = body

    def to_bytes(self) -> bytes:
        head = "".join(f"{name}: {value}{CRLF}" for name, value in self.headers)
        return head.encode("utf-8") + CRLF.encode("ascii") + self.body


## Header value helpers


def _is_ascii(value: str) -> bool:
    return value.isascii()


def sanitize_header_value(value: str) -> str:
    """Collapse embedded line breaks so a value cannot inject extra headers."""
    return _LINE_BREAKS_RE.sub(" ", value).strip()


def encode_word(value: str, header_name: Optional[str] = None) -> str:
    """Render a header value, folded to the preferred line length.

    Line breaks in ``value`` are collapsed first. ASCII text is folded at
    whitespace; non-ASCII text, or ASCII with a word too long to fit on one
    line, becomes RFC 2047 encoded-words.
    """
    value = sanitize_header_value(value)
    charset = "us-ascii"
    if not _is_ascii(value) or any(
        len(word) > _MAX_WORD_LENGTH for word in value.split()
    ):
        charset = TEXT_CHARSET
    return Header(
        value,
        charset,
        maxlinelen=LineLimits.HEADER_FOLD_LENGTH,
        header_name=header_name,
    ).encode(linesep=CRLF)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_address(address: EmailAddress) -> str:
    """``"Name" <addr>`` for ASCII names, encoded-word names otherwise."""
    addr = sanitize_header_value(address.address)
    if not address.name:
        return addr
    name = sanitize_header_value(address.name)
    if _is_ascii(name) and len(name) <= _MAX_WORD_LENGTH:
        return f"{_quote(name)} <{addr}>"
    words = Header(name, TEXT_CHARSET, maxlinelen=LineLimits.HEADER_FOLD_LENGTH).encode(linesep=CRLF)
    return f"{words} <{addr}>"


def format_address_list(addresses: Sequence[EmailAddress], header_name: str) -> str:
    rendered = [format_address(a) for a in addresses if a.address]
    single_line = ", ".join(rendered)
    if len(header_name) + 2 + len(single_line) <= LineLimits.HEADER_FOLD_LENGTH:
        return single_line
    return f",{CRLF} ".join(rendered)


def format_filename_param(param: str, filename: str) -> str:
    """``param="name"``, with Q-encoded words when the name is not ASCII.

    Encoded names are folded across continuation lines, as are ASCII names
    too long for the hard line limit.
    """
    filename = sanitize_header_value(filename)
    if _is_ascii(filename) and len(filename) <= _MAX_WORD_LENGTH:
        return f"{param}={_quote(filename)}"

    words = Header(
        filename,
        _Q_UTF8,
        maxlinelen=LineLimits.HEADER_FOLD_LENGTH - len(param) - 4,
    ).encode(linesep=CRLF)
    return f'{param}="{words}"'


def _with_param(header_name: str, value: str, param: str) -> str:
    """Append ``param`` to ``value``, folding it onto its own line if needed."""
    line = f"{value}; {param}"
    if CRLF in param or len(header_name) + 2 + len(line) > LineLimits.HEADER_FOLD_LENGTH:
        return f"{value};{CRLF} {param}"
    return line


## Body encoders


def encode_quoted_printable(text: str) -> bytes:
    """Quoted-printable UTF-8 with CRLF line breaks and 76-character lines."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").replace("\n", CRLF)
    return binascii.b2a_qp(normalized.encode(TEXT_CHARSET), quotetabs=False, istext=True)


def _wrap_base64(data: bytes, line_length: int) -> bytes:
    encoded = base64.b64encode(data)
    return b"".join(
        encoded[i : i + line_length] + b"\r\n" for i in range(0, len(encoded), line_length)
    )


class MessageEncoder:
    """Encode ``OutgoingMessage`` values to wire-format bytes."""

    def __init__(self, options: Optional[EncodeOptions] = None):
        self.options = options or ConfigManager().encode_options
        # Ask for whole base64 lines per read; short reads are buffered
        self._line_bytes = (self.options.line_length // 4) * 3
        self._line_chars = self._line_bytes // 3 * 4
        self._chunk_size = max(
            self._line_bytes,
            ReadSizes.ATTACHMENT_CHUNK // self._line_bytes * self._line_bytes,
        )

    @log_call
    def encode(self, message: OutgoingMessage) -> bytes:
        """Render ``message`` as bytes ready for the transport's DATA phase.

        Raises:
            AttachmentReadError: an attachment stream is missing or unreadable.
        """
        used_boundaries: Set[str] = set()

        body = self._body_entity(message, used_boundaries)
        if message.attachments:
            parts = [body] + [self._attachment_entity(a) for a in message.attachments]
            body = self._multipart("mixed", parts, used_boundaries)

        headers = self._message_headers(message) + body.headers
        wire = _Entity(headers, body.body).to_bytes()

        logger.info(
            f"Encoded message of {len(wire)} bytes with "
            f"{len(message.attachments)} attachment(s)"
        )
        return wire

    ## Headers

    def _message_headers(self, message: OutgoingMessage) -> HeaderFields:
        headers: HeaderFields = [("From", format_address(message.sender))]

        for name, addresses in (
            ("To", message.to),
            ("Cc", message.cc),
            ("Reply-To", message.reply_to),
        ):
            if addresses:
                headers.append((name, format_address_list(addresses, name)))

        headers.append(("Subject", encode_word(message.subject, "Subject")))
        headers.append(("Date", format_datetime(message.date or datetime.now(timezone.utc))))

        custom = self._custom_headers(message.headers)
        if self.options.generate_message_id and not any(
            name.lower() == "message-id" for name, _ in custom
        ):
            headers.append(("Message-ID", self._message_id(message.sender)))

        headers.append(("MIME-Version", MIME_VERSION))

        priority = Priority(message.priority)
        if priority is not Priority.NORMAL:
            x_priority, importance = PRIORITY_HEADERS[priority.value]
            headers.append(("X-Priority", x_priority))
            headers.append(("Importance", importance))

        return headers + custom

    def _custom_headers(self, pairs: Iterable[Tuple[str, str]]) -> HeaderFields:
        accepted: HeaderFields = []
        for name, value in pairs:
            name = name.strip()
            if not _FIELD_NAME_RE.match(name):
                logger.warning(f"Skipping custom header with invalid name '{name}'")
                continue
            if name.lower() in RESERVED_HEADERS:
                logger.warning(f"Skipping custom header '{name}', set by the encoder")
                continue
            accepted.append((name, encode_word(value, name)))
        return accepted

    def _message_id(self, sender: EmailAddress) -> str:
        domain = self.options.message_id_domain
        if not domain and "@" in sender.address:
            domain = sender.address.rsplit("@", 1)[1]
        return make_msgid(domain="".join((domain or "").split()) or "mailcodec.local")

    ## Entities

    def _body_entity(self, message: OutgoingMessage, used: Set[str]) -> _Entity:
        if message.text_body and message.html_body:
            return self._multipart(
                "alternative",
                [self._text_entity(message.text_body, "plain"), self._text_entity(message.html_body, "html")],
                used,
            )
        if message.html_body:
            return self._text_entity(message.html_body, "html")
        return self._text_entity(message.text_body, "plain")

    def _text_entity(self, text: str, subtype: str) -> _Entity:
        return _Entity(
            [
                ("Content-Type", f"text/{subtype}; charset={TEXT_CHARSET}"),
                ("Content-Transfer-Encoding", "quoted-printable"),
            ],
            encode_quoted_printable(text),
        )

    def _attachment_entity(self, attachment: OutgoingAttachment) -> _Entity:
        content_type = sanitize_header_value(attachment.content_type or "") or DEFAULT_ATTACHMENT_TYPE
        disposition = sanitize_header_value(attachment.disposition or "") or DEFAULT_DISPOSITION

        headers: HeaderFields = [
            (
                "Content-Type",
                _with_param(
                    "Content-Type",
                    content_type,
                    format_filename_param("name", attachment.filename),
                ),
            ),
            (
                "Content-Disposition",
                _with_param(
                    "Content-Disposition",
                    disposition,
                    format_filename_param("filename", attachment.filename),
                ),
            ),
        ]
        content_id = sanitize_header_value(attachment.content_id or "").strip("<>")
        if content_id:
            headers.append(("Content-ID", f"<{content_id}>"))
        headers.append(("Content-Transfer-Encoding", "base64"))

        return _Entity(headers, self._read_base64(attachment))

    def _read_base64(self, attachment: OutgoingAttachment) -> bytes:
        stream = attachment.content
        if stream is None:
            raise AttachmentReadError(
                f"Attachment '{attachment.filename}' has no content stream",
                details={"attachment": attachment.filename},
            )

        # Only whole lines are encoded until EOF
        lines = []
        pending = b""
        total = 0
        try:
            while True:
                chunk = stream.read(self._chunk_size)
                if not chunk:
                    break
                if isinstance(chunk, str):
                    raise TypeError("attachment stream returned text, expected bytes")
                total += len(chunk)
                pending += chunk

                whole = len(pending) - len(pending) % self._line_bytes
                if whole:
                    lines.append(_wrap_base64(pending[:whole], self._line_chars))
                    pending = pending[whole:]

        except CodecError:
            raise

        except Exception as e:
            raise AttachmentReadError(
                f"Failed to read attachment '{attachment.filename}': {str(e)}",
                details={"attachment": attachment.filename},
            ) from e

        if pending:
            lines.append(_wrap_base64(pending, self._line_chars))

        logger.debug(f"Encoded attachment '{attachment.filename}' ({total} bytes)")
        return b"".join(lines)

    def _multipart(self, subtype: str, parts: List[_Entity], used: Set[str]) -> _Entity:
        rendered = [part.to_bytes() for part in parts]
        boundary = self._new_boundary(rendered, used)
        delimiter = f"--{boundary}{CRLF}".encode("ascii")

        body = b"".join(delimiter + part + CRLF.encode("ascii") for part in rendered)
        body += f"--{boundary}--{CRLF}".encode("ascii")

        return _Entity(
            [("Content-Type", f'multipart/{subtype}; boundary="{boundary}"')],
            body,
        )

    def _new_boundary(self, rendered: List[bytes], used: Set[str]) -> str:
        while True:
            boundary = f"{self.options.boundary_prefix}{uuid.uuid4().hex}"
            marker = f"--{boundary}".encode("ascii")
            if boundary not in used and not any(marker in part for part in rendered):
                used.add(boundary)
                return boundary


@ErrorHandler.wrap
def encode_message(message: OutgoingMessage, options: Optional[EncodeOptions] = None) -> bytes:
    """Encode ``message`` with the given (or configured) options."""
    return MessageEncoder(options).encode(message)
