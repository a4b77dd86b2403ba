"""Raw header block parsing and RFC 2047 header value decoding."""

import re
from email.errors import HeaderParseError
from email.header import decode_header
from typing import List, Optional, Tuple, Union

from mailcodec.core.encoding.converter import (
    auto_convert_to_utf8,
    convert_to_utf8,
    normalize_charset,
)
from mailcodec.core.encoding.detector import is_valid_utf8
from mailcodec.utils.errors import EncodingError
from mailcodec.utils.logging import get_logger

logger = get_logger(__name__)

HeaderList = Tuple[Tuple[str, str], ...]

_FOLD_RE = re.compile(r"\r?\n(?=[ \t])")
_LINE_RE = re.compile(r"\r?\n")
_FIELD_NAME_RE = re.compile(r"^[!-9;-~]+$")


def unfold(value: str) -> str:
    """Join folded header lines, keeping the folding whitespace."""
    return _FOLD_RE.sub("", value)


def header_bytes_to_text(raw: bytes) -> str:
    """Decode a raw header block to text.

    Headers are supposed to be ASCII, but 8-bit headers are common in the
    wild. Valid UTF-8 is taken as-is; otherwise the charset is guessed and
    Latin-1 is the last resort, since it maps every byte.
    """
    if is_valid_utf8(raw):
        return raw.decode("utf-8")
    try:
        return auto_convert_to_utf8(raw).data.decode("utf-8")
    except EncodingError as e:
        logger.debug(f"Header charset detection failed, using latin-1: {e.message}")
        return raw.decode("latin-1")


def parse_header_block(raw: Union[bytes, str]) -> HeaderList:
    """Split a header block into ordered ``(name, value)`` pairs.

    Continuation lines are unfolded into the preceding field. Lines that are
    not ``name: value`` fields (such as an mbox ``From `` line) are skipped.
    """
    text = header_bytes_to_text(raw) if isinstance(raw, (bytes, bytearray)) else raw

    fields: List[Tuple[str, str]] = []
    name: Optional[str] = None
    value_lines: List[str] = []

    def flush():
        if name is not None:
            fields.append((name, "".join(value_lines).strip()))

    for line in _LINE_RE.split(text):
        if not line:
            continue
        if line[0] in " \t":
            if name is not None:
                value_lines.append(line)
            continue

        flush()
        field_name, sep, field_value = line.partition(":")
        field_name = field_name.strip()
        if not sep or not _FIELD_NAME_RE.match(field_name):
            name, value_lines = None, []
            continue
        name, value_lines = field_name, [field_value]

    flush()
    return tuple(fields)


def get_header(headers: HeaderList, name: str, default: str = "") -> str:
    lowered = name.lower()
    for key, value in headers:
        if key.lower() == lowered:
            return value
    return default


def _chunk_to_text(chunk: bytes, charset: Optional[str]) -> str:
    if charset and normalize_charset(charset) not in ("utf-8", "us-ascii", "ascii", "unknown-8bit"):
        try:
            return convert_to_utf8(chunk, charset).decode("utf-8")
        except EncodingError as e:
            logger.debug(f"Encoded-word charset {charset} failed: {e.message}")
    if is_valid_utf8(chunk):
        return chunk.decode("utf-8")
    try:
        return auto_convert_to_utf8(chunk).data.decode("utf-8")
    except EncodingError:
        return chunk.decode("latin-1")


_WORD = r"=\?[^?\s]+\?[qQbB]\?[^?\s]*\?="
_WORD_RUN_RE = re.compile(rf"{_WORD}(?:[ \t]*{_WORD})*")


def _decode_word_run(match: "re.Match") -> str:
    run = match.group(0)
    try:
        chunks = decode_header(run)
    except (HeaderParseError, ValueError) as e:
        logger.debug(f"Could not decode encoded-word run {run!r}: {e}")
        return run

    decoded = []
    for chunk, charset in chunks:
        if isinstance(chunk, str):
            decoded.append(chunk)
        else:
            decoded.append(_chunk_to_text(chunk, charset))
    return "".join(decoded)


def decode_header_value(value: Optional[str]) -> str:
    """Decode RFC 2047 encoded-words in a header value.

    Only runs of encoded-words are rewritten, so raw text around them (even
    8-bit text) is kept verbatim. Whitespace between adjacent encoded-words
    is dropped. Malformed encoded-words are left as they appear; this never
    raises.
    """
    if not value:
        return ""

    value = unfold(value)
    if "=?" not in value:
        return value

    return _WORD_RUN_RE.sub(_decode_word_run, value)


def strip_angle_brackets(value: Optional[str]) -> str:
    """Content-ID/Message-ID without surrounding whitespace and ``<>``."""
    if not value:
        return ""
    return value.strip().strip("<>").strip()
