"""Transfer-encoding decoding and character-set detection/conversion.

Usage Examples
----------------

Decode a quoted-printable GBK body:
    >>> from mailcodec.core.encoding import decode_content
    >>>
    >>> text = decode_content(raw, "quoted-printable", "gbk").decode("utf-8")

Guess the charset of unlabeled bytes:
    >>> from mailcodec.core.encoding import detect
    >>>
    >>> detect(b"\\xef\\xbb\\xbfhello")
    Detection(encoding='utf-8', confidence=1.0)
"""

from .converter import (
    Conversion,
    auto_convert_to_utf8,
    convert_from_utf8,
    convert_to_utf8,
    decode_content,
    decode_with_fallback_strategies,
    normalize_charset,
    resolve_codec,
    supported_encodings,
)
from .detector import Detection, detect, is_valid_utf8
from .transfer import (
    SUPPORTED_SCHEMES,
    decode_transfer,
    decode_with_fallback,
    is_supported,
    normalize_scheme,
)

__all__ = [
    # Transfer
    "SUPPORTED_SCHEMES",
    "decode_transfer",
    "decode_with_fallback",
    "is_supported",
    "normalize_scheme",
    # Detection
    "Detection",
    "detect",
    "is_valid_utf8",
    # Conversion
    "Conversion",
    "auto_convert_to_utf8",
    "convert_from_utf8",
    "convert_to_utf8",
    "decode_content",
    "decode_with_fallback_strategies",
    "normalize_charset",
    "resolve_codec",
    "supported_encodings",
]
