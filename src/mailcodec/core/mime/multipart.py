"""Byte-level splitting of messages and multipart bodies.

Everything here works on raw bytes so that binary part content is never
text-decoded before its transfer encoding is known.
"""

import re
from typing import List, NamedTuple, Optional, Tuple

CRLF_SEPARATOR = b"\r\n\r\n"
LF_SEPARATOR = b"\n\n"


class BoundarySplit(NamedTuple):
    """Segments between boundary delimiters.

    ``closed`` is False when the closing delimiter never appeared; the
    unterminated trailing segment is not included in ``parts``.
    """

    parts: List[bytes]
    closed: bool
    delimiters_found: int


def split_header_body(raw: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Split an entity into header bytes and body bytes.

    Looks for CRLFCRLF first, then LFLF. An entity starting with a blank
    line has no headers. Returns ``None`` when there is no separator at all.
    """
    if raw.startswith(b"\r\n"):
        return b"", raw[2:]
    if raw.startswith(b"\n"):
        return b"", raw[1:]

    index = raw.find(CRLF_SEPARATOR)
    if index != -1:
        return raw[:index], raw[index + len(CRLF_SEPARATOR) :]

    index = raw.find(LF_SEPARATOR)
    if index != -1:
        return raw[:index], raw[index + len(LF_SEPARATOR) :]

    return None


def _delimiter_pattern(boundary: str) -> "re.Pattern[bytes]":
    encoded = re.escape(boundary.encode("utf-8", errors="surrogateescape"))
    # Delimiters only count at the start of a line; trailing transport
    # padding (spaces/tabs) is allowed before the line break
    return re.compile(rb"(?:\A|(?<=\n))--" + encoded + rb"(--)?[ \t]*(?:\r?\n|\Z)")


def _strip_line_ending(segment: bytes) -> bytes:
    # The line break before a delimiter belongs to the delimiter
    if segment.endswith(b"\r\n"):
        return segment[:-2]
    if segment.endswith(b"\n"):
        return segment[:-1]
    return segment


def split_parts(body: bytes, boundary: str) -> BoundarySplit:
    """Split a multipart body at ``boundary`` delimiter lines.

    The preamble before the first delimiter and the epilogue after the
    closing delimiter are discarded.
    """
    parts: List[bytes] = []
    start: Optional[int] = None
    found = 0

    for match in _delimiter_pattern(boundary).finditer(body):
        found += 1
        if start is not None:
            parts.append(_strip_line_ending(body[start : match.start()]))
        if match.group(1):
            return BoundarySplit(parts, True, found)
        start = match.end()

    return BoundarySplit(parts, False, found)
