"""Decoded message models."""

import html
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .mime import HeaderPairs, MessagePart

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(r"<(script|style)\b.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_SPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class AttachmentInfo:
    """Metadata (and optionally content) of an attachment or inline resource."""

    part_id: str
    filename: str
    content_type: str
    size: int
    content_id: str = ""
    disposition: str = "attachment"
    transfer_encoding: str = "7bit"
    content: Optional[bytes] = None

    @property
    def is_inline(self) -> bool:
        return self.disposition == "inline"


@dataclass(frozen=True)
class ParsedMessage:
    """Result of decoding a raw message."""

    text_body: str = ""
    html_body: str = ""
    attachments: Tuple[AttachmentInfo, ...] = ()
    inline_attachments: Tuple[AttachmentInfo, ...] = ()
    root_part: Optional[MessagePart] = None
    headers: HeaderPairs = ()
    subject: str = ""
    errors: Tuple[Dict[str, Any], ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_header(self, name: str, default: str = "") -> str:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return default

    def find_inline(self, content_id: str) -> Optional[AttachmentInfo]:
        """Look up an inline resource by content-id (``cid:`` prefix allowed)."""
        wanted = content_id.strip()
        if wanted.lower().startswith("cid:"):
            wanted = wanted[4:]
        wanted = wanted.strip("<>")
        for info in self.inline_attachments:
            if info.content_id == wanted:
                return info
        return None

    def preview(self, length: int = 200) -> str:
        """Short single-line summary of the body for listings and notifications."""
        if self.text_body.strip():
            text = self.text_body
        else:
            text = html.unescape(_TAG_RE.sub(" ", _BLOCK_RE.sub(" ", self.html_body)))
        text = _SPACE_RE.sub(" ", text).strip()
        if len(text) <= length:
            return text
        return text[: max(length - 3, 0)].rstrip() + "..."
