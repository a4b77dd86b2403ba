"""mailcodec: decode raw email into a part tree, encode outgoing mail to wire bytes.

Usage Examples
----------------

    >>> import mailcodec
    >>>
    >>> parsed = mailcodec.decode_message(raw_bytes)
    >>> parsed.text_body, [a.filename for a in parsed.attachments]
    >>>
    >>> wire = mailcodec.encode_message(mailcodec.OutgoingMessage(
    ...     sender="me@example.com", to=["you@example.com"], subject="Hi", text_body="Hello"
    ... ))
"""

from .core.email import AuthMechanism, MessageEncoder, encode_message, initial_response
from .core.encoding import (
    auto_convert_to_utf8,
    convert_from_utf8,
    convert_to_utf8,
    decode_content,
    decode_transfer,
    decode_with_fallback,
    decode_with_fallback_strategies,
    detect,
)
from .core.mime import (
    MessageDecoder,
    decode_header_value,
    decode_message,
    find_part,
    parse_content_disposition,
    parse_content_type,
)
from .core.models import (
    AttachmentInfo,
    Disposition,
    EmailAddress,
    MessagePart,
    MimeTypeDescriptor,
    OutgoingAttachment,
    OutgoingMessage,
    ParsedMessage,
    Priority,
)
from .utils import (
    CodecError,
    DecodeOptions,
    EncodeOptions,
    EncodingError,
    StructuralError,
)

__version__ = "0.1.0"

__all__ = [
    # Decoding
    "MessageDecoder",
    "decode_message",
    "decode_header_value",
    "find_part",
    "parse_content_disposition",
    "parse_content_type",
    # Encoding
    "MessageEncoder",
    "encode_message",
    "AuthMechanism",
    "initial_response",
    # Charset and transfer encodings
    "auto_convert_to_utf8",
    "convert_from_utf8",
    "convert_to_utf8",
    "decode_content",
    "decode_transfer",
    "decode_with_fallback",
    "decode_with_fallback_strategies",
    "detect",
    # Models
    "AttachmentInfo",
    "Disposition",
    "EmailAddress",
    "MessagePart",
    "MimeTypeDescriptor",
    "OutgoingAttachment",
    "OutgoingMessage",
    "ParsedMessage",
    "Priority",
    # Options and errors
    "CodecError",
    "DecodeOptions",
    "EncodeOptions",
    "EncodingError",
    "StructuralError",
]
