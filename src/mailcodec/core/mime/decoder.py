"""Recursive multipart decoder producing a ``ParsedMessage``.

The decoder favours availability: in the default non-strict mode a broken
branch is logged, recorded in ``ParsedMessage.errors`` and skipped, and the
rest of the message is still returned. Strict mode raises the first error,
tagged with the ``part_id`` of the failing part.

Part IDs follow the IMAP convention: the root is ``""``, its children are
``"1"``, ``"2"``, ..., and grandchildren ``"1.1"``, ``"1.2"``, and so on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from mailcodec.core.encoding.converter import (
    decode_content,
    decode_with_fallback_strategies,
)
from mailcodec.core.encoding.transfer import decode_transfer, normalize_scheme
from mailcodec.core.models.message import AttachmentInfo, ParsedMessage
from mailcodec.core.models.mime import MessagePart, MimeTypeDescriptor
from mailcodec.utils.config_manager import ConfigManager, DecodeOptions
from mailcodec.utils.errors import (
    CodecError,
    DepthLimitExceededError,
    EncodingError,
    ErrorHandler,
    MissingBoundaryError,
    StructuralError,
    TruncatedMultipartError,
)
from mailcodec.utils.logging import get_logger, log_call

from .classifier import parse_content_disposition, parse_content_type
from .headers import (
    HeaderList,
    decode_header_value,
    get_header,
    parse_header_block,
    strip_angle_brackets,
)
from .multipart import split_header_body, split_parts

logger = get_logger(__name__)

SINGLE_PART_ID = "1"


@dataclass
class _DecodeState:
    """Accumulates leaf results while one message is walked."""

    text_body: str = ""
    html_body: str = ""
    attachments: List[AttachmentInfo] = field(default_factory=list)
    inline_attachments: List[AttachmentInfo] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


def _child_id(parent_id: str, index: int) -> str:
    return f"{parent_id}.{index}" if parent_id else str(index)


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class MessageDecoder:
    """Decode raw wire-format messages into structured results."""

    def __init__(self, options: Optional[DecodeOptions] = None):
        self.options = options or ConfigManager().decode_options

    ## Entry points

    @log_call
    def decode(self, raw: Union[bytes, bytearray, memoryview]) -> ParsedMessage:
        """Decode a complete message (headers and body)."""
        raw = bytes(raw)
        split = split_header_body(raw)
        if split is None:
            logger.warning("No header/body separator found, treating message as plain text")
            return self._simple_message(raw)

        return self.decode_parts(*split)

    @log_call
    def decode_parts(self, raw_headers: bytes, raw_body: bytes) -> ParsedMessage:
        """Decode a message whose header block and body are already separated."""
        state = _DecodeState()
        headers = parse_header_block(bytes(raw_headers))
        root = self._decode_root(headers, bytes(raw_body), state)

        return ParsedMessage(
            text_body=state.text_body,
            html_body=state.html_body,
            attachments=tuple(state.attachments),
            inline_attachments=tuple(state.inline_attachments),
            root_part=root if self.options.preserve_structure else None,
            headers=headers,
            subject=decode_header_value(get_header(headers, "Subject")),
            errors=tuple(state.errors),
        )

    ## Tree construction

    def _decode_root(
        self, headers: HeaderList, body: bytes, state: _DecodeState
    ) -> MessagePart:
        mime_type = parse_content_type(get_header(headers, "Content-Type"))

        if not mime_type.is_multipart():
            part = self._make_part("", headers, mime_type, body)
            self._collect_leaf(part, state, attachment_id=SINGLE_PART_ID)
            return part

        try:
            children = self._decode_children("", mime_type, body, 0, state)
        except MissingBoundaryError as e:
            self._record(e, "", state)
            logger.warning("Root multipart has no boundary, falling back to plain text")
            fallback_type = MimeTypeDescriptor(
                "text", "plain", {"charset": mime_type.get_charset()} if mime_type.get_charset() else {}
            )
            part = self._make_part("", headers, fallback_type, body)
            self._collect_leaf(part, state, attachment_id=SINGLE_PART_ID)
            return part
        except StructuralError as e:
            self._record(e, "", state)
            children = []

        return self._make_part("", headers, mime_type, body, children=tuple(children))

    def _decode_children(
        self,
        part_id: str,
        mime_type: MimeTypeDescriptor,
        body: bytes,
        depth: int,
        state: _DecodeState,
    ) -> List[MessagePart]:
        if depth >= self.options.max_depth:
            raise DepthLimitExceededError(
                f"Multipart nesting exceeds {self.options.max_depth} levels",
                details={"part_id": part_id, "depth": depth},
            )

        boundary = mime_type.get_boundary()
        if not boundary:
            raise MissingBoundaryError(
                f"{mime_type.full_type} without boundary",
                details={"part_id": part_id, "content_type": mime_type.full_type},
            )

        split = split_parts(body, boundary)
        if not split.delimiters_found:
            raise StructuralError(
                f"Boundary '{boundary}' never appears in the body",
                details={"part_id": part_id, "boundary": boundary},
            )

        if not split.closed:
            error = TruncatedMultipartError(
                f"Missing closing delimiter for boundary '{boundary}', "
                f"kept {len(split.parts)} complete part(s)",
                details={"part_id": part_id, "boundary": boundary},
            )
            if self.options.strict_mode:
                raise error
            logger.warning(error.message, extra={"part_id": part_id})
            state.errors.append(error.to_dict())

        children = []
        for index, segment in enumerate(split.parts, start=1):
            child_id = _child_id(part_id, index)
            try:
                children.append(self._decode_entity(child_id, segment, depth + 1, state))
            except CodecError as e:
                self._record(e, child_id, state)

        return children

    def _decode_entity(
        self, part_id: str, raw: bytes, depth: int, state: _DecodeState
    ) -> MessagePart:
        split = split_header_body(raw)
        if split is None:
            headers: HeaderList = ()
            body = raw
        else:
            headers = parse_header_block(split[0])
            body = split[1]

        mime_type = parse_content_type(get_header(headers, "Content-Type"))

        if mime_type.is_multipart():
            children = self._decode_children(part_id, mime_type, body, depth, state)
            return self._make_part(part_id, headers, mime_type, body, children=tuple(children))

        part = self._make_part(part_id, headers, mime_type, body)
        self._collect_leaf(part, state)
        return part

    def _make_part(
        self,
        part_id: str,
        headers: HeaderList,
        mime_type: MimeTypeDescriptor,
        body: bytes,
        children: tuple = (),
    ) -> MessagePart:
        return MessagePart(
            part_id=part_id,
            headers=headers,
            mime_type=mime_type,
            raw_content=body,
            transfer_encoding=normalize_scheme(get_header(headers, "Content-Transfer-Encoding")),
            disposition=parse_content_disposition(get_header(headers, "Content-Disposition")),
            content_id=strip_angle_brackets(get_header(headers, "Content-ID")),
            children=children,
        )

    def _record(self, error: CodecError, part_id: str, state: _DecodeState) -> None:
        """Re-raise in strict mode, otherwise log and remember a skipped branch."""
        error.details.setdefault("part_id", part_id)
        if self.options.strict_mode:
            raise error
        state.errors.append(
            ErrorHandler.handle(error, f"Skipping MIME part '{part_id}'", log_traceback=False)
        )

    ## Leaf handling

    def _collect_leaf(
        self, part: MessagePart, state: _DecodeState, attachment_id: Optional[str] = None
    ) -> None:
        disposition = part.disposition
        mime_type = part.mime_type

        if disposition is not None and disposition.is_attachment:
            state.attachments.append(self._attachment_info(part, attachment_id))
        elif disposition is not None and disposition.is_inline and part.content_id:
            state.inline_attachments.append(self._attachment_info(part, attachment_id))
        elif mime_type.is_plain_text() and not state.text_body:
            state.text_body = self._decode_body(part)
        elif mime_type.is_html() and not state.html_body:
            state.html_body = self._decode_body(part)

    def _decode_body(self, part: MessagePart) -> str:
        charset = part.mime_type.get_charset()
        try:
            data = decode_content(part.raw_content, part.transfer_encoding, charset)
        except EncodingError as e:
            logger.warning(
                f"Failed to decode {part.mime_type.full_type} content: {e.message}, "
                "trying fallback strategies",
                extra={"part_id": part.part_id},
            )
            data = decode_with_fallback_strategies(
                part.raw_content, part.transfer_encoding, charset
            )
        return _decode_text(data)

    def _attachment_info(
        self, part: MessagePart, attachment_id: Optional[str] = None
    ) -> AttachmentInfo:
        filename = part.disposition.filename if part.disposition else ""
        if not filename:
            filename = decode_header_value(part.mime_type.get_param("name"))

        content = None
        if self.options.include_attachment_content:
            content = self._attachment_content(part)

        return AttachmentInfo(
            part_id=attachment_id or part.part_id,
            filename=filename,
            content_type=part.mime_type.full_type,
            size=len(part.raw_content),
            content_id=part.content_id,
            disposition=part.disposition.kind.value if part.disposition else "attachment",
            transfer_encoding=part.transfer_encoding,
            content=content,
        )

    def _attachment_content(self, part: MessagePart) -> Optional[bytes]:
        try:
            content = decode_transfer(part.raw_content, part.transfer_encoding)
        except EncodingError as e:
            e.details.setdefault("part_id", part.part_id)
            if self.options.strict_mode:
                raise
            logger.warning(
                f"Could not decode attachment content: {e.message}",
                extra={"part_id": part.part_id},
            )
            return None

        if len(content) > self.options.max_attachment_size:
            logger.warning(
                f"Attachment of {len(content)} bytes exceeds limit of "
                f"{self.options.max_attachment_size}, content dropped",
                extra={"part_id": part.part_id},
            )
            return None

        return content

    ## Fallbacks

    def _simple_message(self, raw: bytes) -> ParsedMessage:
        text = _decode_text(decode_with_fallback_strategies(raw, None, None))
        return ParsedMessage(text_body=text)


@ErrorHandler.wrap
def decode_message(
    raw: Union[bytes, bytearray, memoryview], options: Optional[DecodeOptions] = None
) -> ParsedMessage:
    """Decode raw message bytes with the given (or configured) options."""
    return MessageDecoder(options).decode(raw)
