"""MIME classification and multipart tree decoding.

Usage Examples
----------------

Decode a raw message:
    >>> from mailcodec.core.mime import MessageDecoder
    >>>
    >>> parsed = MessageDecoder().decode(raw_bytes)
    >>> print(parsed.subject, len(parsed.attachments))

Walk the structure:
    >>> from mailcodec.core.mime import describe_structure, find_part
    >>>
    >>> print(describe_structure(parsed.root_part))
    >>> find_part(parsed.root_part, "1.2").mime_type.full_type
    'text/html'

Notes
-----
- Decoding never performs I/O and never raises in non-strict mode
- Skipped branches are listed in ``ParsedMessage.errors``
"""

from .classifier import (
    parse_content_disposition,
    parse_content_type,
    parse_type_from_headers,
)
from .decoder import MessageDecoder, decode_message
from .headers import decode_header_value, parse_header_block
from .structure import (
    content_summary,
    count_parts,
    describe_structure,
    find_by_content_id,
    find_by_type,
    find_part,
    validate_structure,
)

__all__ = [
    # Classifier
    "parse_content_disposition",
    "parse_content_type",
    "parse_type_from_headers",
    # Headers
    "decode_header_value",
    "parse_header_block",
    # Decoder
    "MessageDecoder",
    "decode_message",
    # Inspection
    "content_summary",
    "count_parts",
    "describe_structure",
    "find_by_content_id",
    "find_by_type",
    "find_part",
    "validate_structure",
]
