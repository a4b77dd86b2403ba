"""Heuristic character-set detection for undeclared or mislabeled content.

Every rule in ``DETECTION_RULES`` is scored and the highest confidence wins;
ties keep the earlier rule. When nothing scores at least
``STATISTICS_THRESHOLD``, a byte-frequency fallback gets a chance to win.
"""

from typing import Callable, NamedTuple, Optional, Tuple

Score = Optional[float]


class Detection(NamedTuple):
    """Outcome of charset detection."""

    encoding: str
    confidence: float


class DetectionRule(NamedTuple):
    name: str
    encoding: str
    score: Callable[[bytes], Score]


STATISTICS_THRESHOLD = 0.8
DOUBLE_BYTE_MIN_CONFIDENCE = 0.3


def is_valid_utf8(data: bytes) -> bool:
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _has_high_bytes(data: bytes) -> bool:
    return any(b > 0x7F for b in data)


## Rule scorers


def _utf8_bom(data: bytes) -> Score:
    return 1.0 if data.startswith(b"\xef\xbb\xbf") else None


def _utf16_bom(data: bytes) -> Score:
    return 1.0 if data[:2] in (b"\xff\xfe", b"\xfe\xff") else None


def _utf8(data: bytes) -> Score:
    if not is_valid_utf8(data):
        return None
    return 0.95 if _has_high_bytes(data) else 0.9


def _double_byte_scorer(
    lead: Callable[[int], bool], trail: Callable[[int], bool]
) -> Callable[[bytes], Score]:
    """Build a scorer counting lead/trail pairs; a matched pair consumes both bytes."""

    def score(data: bytes) -> Score:
        pairs = 0
        i = 0
        last = len(data) - 1
        while i < last:
            if lead(data[i]) and trail(data[i + 1]):
                pairs += 1
                i += 1
            i += 1
        if not pairs:
            return None
        confidence = pairs * 2 / len(data)
        return confidence if confidence > DOUBLE_BYTE_MIN_CONFIDENCE else None

    return score


_gbk = _double_byte_scorer(
    lambda b: 0x81 <= b <= 0xFE,
    lambda b: 0x40 <= b <= 0x7E or 0x80 <= b <= 0xFE,
)
_big5 = _double_byte_scorer(
    lambda b: 0xA1 <= b <= 0xFE,
    lambda b: 0x40 <= b <= 0x7E or 0xA1 <= b <= 0xFE,
)
_shift_jis = _double_byte_scorer(
    lambda b: 0x81 <= b <= 0x9F or 0xE0 <= b <= 0xFC,
    lambda b: 0x40 <= b <= 0x7E or 0x80 <= b <= 0xFC,
)
_euc_kr = _double_byte_scorer(
    lambda b: 0xA1 <= b <= 0xFE,
    lambda b: 0xA1 <= b <= 0xFE,
)


def _iso_8859_1(data: bytes) -> Score:
    # Any byte sequence is valid Latin-1, so this never scores high
    return 0.3 if _has_high_bytes(data) else 0.1


DETECTION_RULES: Tuple[DetectionRule, ...] = (
    DetectionRule("UTF-8 BOM", "utf-8", _utf8_bom),
    DetectionRule("UTF-16 BOM", "utf-16", _utf16_bom),
    DetectionRule("UTF-8", "utf-8", _utf8),
    DetectionRule("GBK/GB2312", "gbk", _gbk),
    DetectionRule("Big5", "big5", _big5),
    DetectionRule("Shift_JIS", "shift_jis", _shift_jis),
    DetectionRule("EUC-KR", "euc-kr", _euc_kr),
    DetectionRule("ISO-8859-1", "iso-8859-1", _iso_8859_1),
)


def detect_by_statistics(data: bytes) -> Detection:
    """Guess from the byte distribution alone."""
    high = [b for b in data if b > 0x7F]
    if not high:
        return Detection("ascii", 0.9)

    gbk_leads = sum(1 for b in high if 0x81 <= b <= 0xFE)
    if gbk_leads / len(high) > 0.5:
        return Detection("gbk", 0.6)

    return Detection("utf-8", 0.5)


def detect(data: bytes) -> Detection:
    """Best-guess character encoding of ``data`` with a confidence in [0, 1]."""
    if not data:
        return Detection("utf-8", 1.0)

    best = Detection("utf-8", 0.0)
    for rule in DETECTION_RULES:
        confidence = rule.score(data)
        if confidence is not None and confidence > best.confidence:
            best = Detection(rule.encoding, confidence)

    if best.confidence < STATISTICS_THRESHOLD:
        fallback = detect_by_statistics(data)
        if fallback.confidence > best.confidence:
            best = fallback

    return best
