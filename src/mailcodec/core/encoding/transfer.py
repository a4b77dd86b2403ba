"""Content-Transfer-Encoding decoding.

Decodes base64 and quoted-printable bodies strictly, so that malformed input
surfaces as an ``EncodingError`` instead of silently producing garbage. The
identity schemes (7bit, 8bit, binary) pass bytes through untouched.
"""

import base64
import binascii
import re
from typing import Optional, Tuple

from mailcodec.utils.errors import EncodingError, UnsupportedTransferEncodingError
from mailcodec.utils.logging import get_logger

logger = get_logger(__name__)

BASE64 = "base64"
QUOTED_PRINTABLE = "quoted-printable"
SEVEN_BIT = "7bit"
EIGHT_BIT = "8bit"
BINARY = "binary"

SUPPORTED_SCHEMES: Tuple[str, ...] = (
    BASE64,
    QUOTED_PRINTABLE,
    SEVEN_BIT,
    EIGHT_BIT,
    BINARY,
)

# Order tried when the declared scheme fails
FALLBACK_ORDER: Tuple[str, ...] = (
    QUOTED_PRINTABLE,
    BASE64,
    SEVEN_BIT,
    EIGHT_BIT,
    BINARY,
)

_ALIASES = {
    "base-64": BASE64,
    "base_64": BASE64,
    "quoted_printable": QUOTED_PRINTABLE,
    "quotedprintable": QUOTED_PRINTABLE,
    "7-bit": SEVEN_BIT,
    "7_bit": SEVEN_BIT,
    "8-bit": EIGHT_BIT,
    "8_bit": EIGHT_BIT,
}

_BASE64_WHITESPACE = re.compile(rb"[\r\n\t ]+")
_QP_PADDED_SOFT_BREAK = re.compile(rb"=[ \t]+(\r?\n)")
_QP_BAD_ESCAPE = re.compile(rb"=(?![0-9A-Fa-f]{2}|\r?\n|$)")


def normalize_scheme(scheme: Optional[str]) -> str:
    """Canonical lowercase name for a transfer encoding; empty means 7bit."""
    if scheme is None:
        return SEVEN_BIT
    name = scheme.strip().strip('"').lower()
    if not name:
        return SEVEN_BIT
    return _ALIASES.get(name, name)


def is_supported(scheme: Optional[str]) -> bool:
    return normalize_scheme(scheme) in SUPPORTED_SCHEMES


def decode_base64(data: bytes) -> bytes:
    """Decode base64 after removing line breaks and transport whitespace."""
    compact = _BASE64_WHITESPACE.sub(b"", data)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(
            f"Invalid base64 content: {e}", details={"scheme": BASE64}
        ) from e


def decode_quoted_printable(data: bytes) -> bytes:
    """Decode quoted-printable, rejecting ``=`` escapes that are not hex or a soft break."""
    data = _QP_PADDED_SOFT_BREAK.sub(rb"=\1", data)
    bad = _QP_BAD_ESCAPE.search(data)
    if bad:
        snippet = data[bad.start() : bad.start() + 3]
        raise EncodingError(
            f"Invalid quoted-printable escape {snippet!r} at offset {bad.start()}",
            details={"scheme": QUOTED_PRINTABLE, "offset": bad.start()},
        )
    try:
        return binascii.a2b_qp(data)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(
            f"Invalid quoted-printable content: {e}",
            details={"scheme": QUOTED_PRINTABLE},
        ) from e


def decode_transfer(data: bytes, scheme: Optional[str]) -> bytes:
    """Decode ``data`` according to a Content-Transfer-Encoding name.

    Raises:
        UnsupportedTransferEncodingError: the scheme is not known.
        EncodingError: the content is inconsistent with the scheme.
    """
    name = normalize_scheme(scheme)

    if name == BASE64:
        return decode_base64(data)
    if name == QUOTED_PRINTABLE:
        return decode_quoted_printable(data)
    if name in (SEVEN_BIT, EIGHT_BIT, BINARY):
        return data

    raise UnsupportedTransferEncodingError(
        f"Unsupported transfer encoding: {scheme}", details={"scheme": scheme}
    )


def decode_with_fallback(data: bytes, declared: Optional[str]) -> bytes:
    """Decode with the declared scheme, then with each fallback scheme in turn.

    Raises:
        EncodingError: no scheme decoded the content.
    """
    try:
        return decode_transfer(data, declared)
    except EncodingError as e:
        logger.debug(f"Declared transfer encoding '{declared}' failed: {e.message}")

    tried = normalize_scheme(declared)
    for scheme in FALLBACK_ORDER:
        if scheme == tried:
            continue
        try:
            decoded = decode_transfer(data, scheme)
            logger.debug(f"Transfer decoding succeeded with fallback '{scheme}'")
            return decoded
        except EncodingError:
            continue

    raise EncodingError(
        "All transfer encodings failed", details={"scheme": declared}
    )
