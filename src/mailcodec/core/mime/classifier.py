"""Content-Type and Content-Disposition classification.

Parameter parsing is delegated to ``email.message.Message``, which already
handles quoted strings, ``;`` inside quotes and RFC 2231 continuations. The
functions here never raise on malformed input: an unreadable Content-Type
degrades to ``text/plain`` and an unreadable disposition to ``None``.
"""

from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Dict, Optional, Tuple, Union

from mailcodec.core.models.mime import (
    Disposition,
    DispositionKind,
    MimeTypeDescriptor,
)
from mailcodec.utils.logging import get_logger

from .headers import decode_header_value, get_header, parse_header_block, unfold

logger = get_logger(__name__)

DEFAULT_MAIN_TYPE = "text"
DEFAULT_SUB_TYPE = "plain"


def _split_params(header_value: str) -> Tuple[str, Dict[str, str]]:
    """Return the leading token and a dict of lowercased parameter names."""
    msg = Message()
    msg["Content-Type"] = header_value
    raw_params = msg.get_params(header="content-type", failobj=[]) or []

    if not raw_params:
        return "", {}

    token = raw_params[0][0].strip()
    params: Dict[str, str] = {}
    for name, value in raw_params[1:]:
        key = name.strip().lower()
        if not key or key in params:
            continue
        if isinstance(value, tuple):
            value = collapse_rfc2231_value(value, errors="replace")
        params[key] = value if isinstance(value, str) else str(value)

    return token, params


def _clean_charset(params: Dict[str, str]) -> None:
    if "charset" in params:
        params["charset"] = params["charset"].strip().strip("\"'").lower()


def parse_content_type(header_value: Optional[str]) -> MimeTypeDescriptor:
    """Parse a Content-Type header value.

    Empty or malformed input yields ``text/plain`` with whatever parameters
    could still be read.
    """
    value = unfold(header_value or "").strip()
    if not value:
        return MimeTypeDescriptor(DEFAULT_MAIN_TYPE, DEFAULT_SUB_TYPE)

    token, params = _split_params(value)
    _clean_charset(params)

    main_type, sep, sub_type = token.partition("/")
    main_type, sub_type = main_type.strip(), sub_type.strip()
    if not sep or not main_type or not sub_type or " " in token:
        logger.debug(f"Malformed Content-Type '{value}', treating as text/plain")
        return MimeTypeDescriptor(DEFAULT_MAIN_TYPE, DEFAULT_SUB_TYPE, params)

    return MimeTypeDescriptor(main_type, sub_type, params)


def parse_content_disposition(header_value: Optional[str]) -> Optional[Disposition]:
    """Parse a Content-Disposition header value.

    Returns ``None`` when the header is absent or names a kind other than
    ``attachment`` or ``inline``.
    """
    value = unfold(header_value or "").strip()
    if not value:
        return None

    token, params = _split_params(value)
    try:
        kind = DispositionKind(token.lower())
    except ValueError:
        logger.debug(f"Ignoring Content-Disposition kind '{token}'")
        return None

    filename = decode_header_value(params.get("filename", ""))
    return Disposition(kind=kind, filename=filename, parameters=params)


def parse_type_from_headers(
    raw_headers: Union[bytes, str]
) -> MimeTypeDescriptor:
    """Classify the Content-Type found in a raw header block."""
    headers = parse_header_block(raw_headers)
    return parse_content_type(get_header(headers, "Content-Type"))
