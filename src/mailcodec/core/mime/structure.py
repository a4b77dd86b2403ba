"""Queries over a decoded part tree."""

from typing import Any, Dict, List, Optional

from mailcodec.core.models.message import ParsedMessage
from mailcodec.core.models.mime import MessagePart


def count_parts(part: Optional[MessagePart]) -> int:
    """Number of nodes in the tree, the root included."""
    if part is None:
        return 0
    return sum(1 for _ in part.walk())


def find_part(root: Optional[MessagePart], part_id: str) -> Optional[MessagePart]:
    """Follow a dotted part ID from the root."""
    if root is None:
        return None
    if not part_id:
        return root

    node = root
    for token in part_id.split("."):
        if not token.isdigit():
            return None
        wanted = token if not node.part_id else f"{node.part_id}.{token}"
        node = next((child for child in node.children if child.part_id == wanted), None)
        if node is None:
            return None
    return node


def find_by_content_id(root: Optional[MessagePart], content_id: str) -> Optional[MessagePart]:
    if root is None:
        return None
    wanted = content_id.strip().strip("<>")
    if wanted.lower().startswith("cid:"):
        wanted = wanted[4:]
    for part in root.walk():
        if part.content_id and part.content_id == wanted:
            return part
    return None


def find_by_type(root: Optional[MessagePart], full_type: str) -> List[MessagePart]:
    """All parts whose type matches ``full_type`` (``image/*`` wildcards allowed)."""
    if root is None:
        return []
    wanted = full_type.strip().lower()
    if wanted.endswith("/*"):
        main = wanted[:-2]
        return [p for p in root.walk() if p.mime_type.main_type == main]
    return [p for p in root.walk() if p.mime_type.full_type == wanted]


def describe_structure(root: Optional[MessagePart]) -> str:
    """Indented outline of the tree, one line per part."""
    if root is None:
        return ""

    lines = []
    for part in root.walk():
        line = f"{'  ' * part.depth}- {part.mime_type.full_type}"
        if part.disposition is not None:
            line += f" [{part.disposition.kind.value}]"
            if part.disposition.filename:
                line += f" ({part.disposition.filename})"
        if part.mime_type.is_multipart() and part.mime_type.get_boundary():
            line += f" boundary={part.mime_type.get_boundary()}"
        lines.append(line)
    return "\n".join(lines) + "\n"


def validate_structure(message: ParsedMessage) -> List[str]:
    """Warnings about a decoded message; an empty list means nothing looked wrong."""
    warnings = []

    if not message.text_body and not message.html_body and not message.attachments:
        warnings.append("message has no content")

    if message.root_part is None:
        warnings.append("root part is missing")
        return warnings

    for part in message.root_part.walk():
        path = f"root.{part.part_id}" if part.part_id else "root"
        for problem in part.mime_type.validate():
            warnings.append(f"{path}: {problem}")
        if part.mime_type.is_multipart() and not part.children:
            warnings.append(f"{path}: multipart has no parts")

    return warnings


def content_summary(message: ParsedMessage) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "subject": message.subject,
        "text_length": len(message.text_body),
        "html_length": len(message.html_body),
        "attachment_count": len(message.attachments),
        "inline_attachment_count": len(message.inline_attachments),
        "error_count": len(message.errors),
    }
    if message.root_part is not None:
        summary["part_count"] = count_parts(message.root_part)
        summary["root_type"] = message.root_part.mime_type.full_type
    return summary
