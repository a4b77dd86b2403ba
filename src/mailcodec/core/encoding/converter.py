"""Charset conversion to and from UTF-8, plus the content decoding pipelines.

Decoding into UTF-8 substitutes U+FFFD for byte sequences that are invalid in
the source charset, so a wrong-but-plausible charset still yields readable
text. Encoding from UTF-8 is strict.
"""

import codecs
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Tuple

from mailcodec.utils.errors import EncodingError, UnsupportedCharsetError
from mailcodec.utils.logging import get_logger

from . import transfer
from .detector import detect, is_valid_utf8

logger = get_logger(__name__)


class Conversion(NamedTuple):
    """UTF-8 bytes along with the source encoding they were decoded from."""

    data: bytes
    encoding: str
    confidence: float


# Canonical charset name -> Python codec name
CODEC_REGISTRY: Mapping[str, str] = MappingProxyType(
    {
        "gb2312": "gb2312",
        "gbk": "gbk",
        "gb18030": "gb18030",
        "big5": "big5",
        "shift_jis": "shift_jis",
        "euc-jp": "euc_jp",
        "iso-2022-jp": "iso2022_jp",
        "euc-kr": "euc_kr",
        "iso-8859-1": "latin-1",
        "windows-1252": "cp1252",
        "utf-8": "utf-8",
        "utf-16": "utf-16",
        "utf-16le": "utf-16-le",
        "utf-16be": "utf-16-be",
    }
)

# Normalised alias (no '-' or '_', lowercase) -> canonical name
CHARSET_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "gb2312": "gb2312",
        "gbk": "gbk",
        "gb18030": "gb18030",
        "big5": "big5",
        "shiftjis": "shift_jis",
        "sjis": "shift_jis",
        "eucjp": "euc-jp",
        "iso2022jp": "iso-2022-jp",
        "euckr": "euc-kr",
        "iso88591": "iso-8859-1",
        "latin1": "iso-8859-1",
        "windows1252": "windows-1252",
        "cp1252": "windows-1252",
        "utf8": "utf-8",
        "utf16": "utf-16",
        "utf16le": "utf-16le",
        "utf16be": "utf-16be",
    }
)

# Tried in order when detection confidence is too low to trust
LOW_CONFIDENCE_CANDIDATES: Tuple[str, ...] = ("gbk", "gb2312", "big5", "gb18030")
LOW_CONFIDENCE_THRESHOLD = 0.6

# Declared charsets that need validation only
UTF8_COMPATIBLE = frozenset({"utf-8", "us-ascii", "ascii"})

FALLBACK_CHARSETS: Tuple[str, ...] = (
    "utf-8",
    "gbk",
    "gb2312",
    "big5",
    "gb18030",
    "iso-8859-1",
)


def normalize_charset(name: Optional[str]) -> str:
    """Canonical charset name, or the cleaned-up input when it is not registered."""
    if not name:
        return ""
    cleaned = name.strip().strip('"').lower()
    key = cleaned.replace("-", "").replace("_", "")
    return CHARSET_ALIASES.get(key, cleaned)


def resolve_codec(name: str) -> str:
    """Python codec name for a charset.

    Registered charsets resolve through the registry; anything else is given
    to Python's codec lookup, as long as that yields a text encoding.

    Raises:
        UnsupportedCharsetError: the charset is unknown.
    """
    canonical = normalize_charset(name)
    if canonical in CODEC_REGISTRY:
        return CODEC_REGISTRY[canonical]

    try:
        info = codecs.lookup(canonical)
    except (LookupError, ValueError) as e:
        raise UnsupportedCharsetError(
            f"Unsupported charset: {name}", details={"encoding": name}
        ) from e

    if not getattr(info, "_is_text_encoding", True):
        raise UnsupportedCharsetError(
            f"Not a text encoding: {name}", details={"encoding": name}
        )
    return info.name


def supported_encodings() -> List[str]:
    return sorted(CODEC_REGISTRY)


def convert_to_utf8(data: bytes, encoding: str) -> bytes:
    """Re-encode ``data`` from ``encoding`` to UTF-8.

    Raises:
        EncodingError: the data is declared UTF-8 but is not, or the result
            is not valid UTF-8.
        UnsupportedCharsetError: the charset is unknown.
    """
    if not data:
        return data

    if normalize_charset(encoding) == "utf-8":
        if is_valid_utf8(data):
            return data
        raise EncodingError("Invalid UTF-8 data", details={"encoding": encoding})

    codec = resolve_codec(encoding)
    try:
        result = data.decode(codec, errors="replace").encode("utf-8")
    except (UnicodeError, LookupError) as e:
        raise EncodingError(
            f"Failed to convert from {encoding} to UTF-8: {e}",
            details={"encoding": encoding},
        ) from e

    if not is_valid_utf8(result):
        raise EncodingError(
            "Conversion result is not valid UTF-8", details={"encoding": encoding}
        )
    return result


def convert_from_utf8(data: bytes, encoding: str) -> bytes:
    """Re-encode UTF-8 ``data`` into ``encoding``.

    Raises:
        EncodingError: the input is not UTF-8 or has characters the target
            charset cannot represent.
    """
    if not data:
        return data

    if not is_valid_utf8(data):
        raise EncodingError("Input data is not valid UTF-8", details={"encoding": encoding})

    codec = resolve_codec(encoding)
    try:
        return data.decode("utf-8").encode(codec)
    except UnicodeError as e:
        raise EncodingError(
            f"Failed to convert from UTF-8 to {encoding}: {e}",
            details={"encoding": encoding},
        ) from e


def auto_convert_to_utf8(data: bytes) -> Conversion:
    """Detect the charset of ``data`` and convert it to UTF-8.

    Raises:
        EncodingError: the detected charset could not convert the data.
    """
    if not data or is_valid_utf8(data):
        return Conversion(data, "utf-8", 1.0)

    detected = detect(data)

    if detected.confidence < LOW_CONFIDENCE_THRESHOLD:
        for candidate in LOW_CONFIDENCE_CANDIDATES:
            try:
                converted = convert_to_utf8(data, candidate)
            except EncodingError:
                continue
            logger.debug(
                f"Low-confidence detection ({detected.encoding}, "
                f"{detected.confidence:.2f}), using {candidate}"
            )
            return Conversion(converted, candidate, detected.confidence)

    converted = convert_to_utf8(data, detected.encoding)
    return Conversion(converted, detected.encoding, detected.confidence)


def decode_content(
    content: bytes, transfer_encoding: Optional[str], charset: Optional[str]
) -> bytes:
    """Standard pipeline: undo the transfer encoding, then convert to UTF-8.

    Raises:
        EncodingError: either stage failed.
    """
    if not content:
        return content

    decoded = transfer.decode_with_fallback(content, transfer_encoding)

    if charset and normalize_charset(charset) not in UTF8_COMPATIBLE:
        return convert_to_utf8(decoded, charset)

    return auto_convert_to_utf8(decoded).data


def decode_with_fallback_strategies(
    content: bytes, transfer_encoding: Optional[str], charset: Optional[str]
) -> bytes:
    """Last-resort decoding; tries every scheme and charset combination.

    Never raises. If nothing produces valid UTF-8, ``content`` comes back
    unchanged.
    """
    if not content:
        return content

    try:
        return decode_content(content, transfer_encoding, charset)
    except EncodingError as e:
        logger.debug(f"Standard decoding failed, trying fallbacks: {e.message}")
    except Exception as e:
        logger.warning(f"Unexpected error decoding content, trying fallbacks: {str(e)}")

    for scheme in transfer.FALLBACK_ORDER:
        try:
            decoded = transfer.decode_with_fallback(content, scheme)
        except EncodingError:
            continue

        for candidate in FALLBACK_CHARSETS:
            if candidate == "utf-8":
                if is_valid_utf8(decoded):
                    return decoded
                continue
            try:
                return convert_to_utf8(decoded, candidate)
            except EncodingError:
                continue

    logger.warning("All decoding strategies failed, returning raw content")
    return content
