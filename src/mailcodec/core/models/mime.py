"""MIME structure models: content types, dispositions and the part tree."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

HeaderPairs = Tuple[Tuple[str, str], ...]


def _frozen_mapping(values: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class MimeTypeDescriptor:
    """Parsed Content-Type value.

    ``main_type``, ``sub_type`` and parameter names are always lowercase.
    A ``boundary`` parameter only survives on multipart types.
    """

    main_type: str
    sub_type: str
    parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "main_type", self.main_type.lower())
        object.__setattr__(self, "sub_type", self.sub_type.lower())
        params = {k.lower(): v for k, v in dict(self.parameters).items()}
        if self.main_type != "multipart":
            params.pop("boundary", None)
        object.__setattr__(self, "parameters", _frozen_mapping(params))

    @property
    def full_type(self) -> str:
        return f"{self.main_type}/{self.sub_type}"

    ## Predicates

    def is_multipart(self) -> bool:
        return self.main_type == "multipart"

    def is_text(self) -> bool:
        return self.main_type == "text"

    def is_plain_text(self) -> bool:
        return self.full_type == "text/plain"

    def is_html(self) -> bool:
        return self.full_type == "text/html"

    def is_alternative(self) -> bool:
        return self.full_type == "multipart/alternative"

    def is_related(self) -> bool:
        return self.full_type == "multipart/related"

    def is_mixed(self) -> bool:
        return self.full_type == "multipart/mixed"

    ## Accessors

    def get_boundary(self) -> str:
        return self.parameters.get("boundary", "")

    def get_charset(self) -> str:
        return self.parameters.get("charset", "")

    def get_type(self) -> str:
        return self.full_type

    def get_param(self, name: str, default: str = "") -> str:
        return self.parameters.get(name.lower(), default)

    def validate(self) -> List[str]:
        """Return a list of structural problems with this descriptor."""
        problems = []
        if not self.main_type:
            problems.append("missing main type")
        if not self.sub_type:
            problems.append("missing subtype")
        if self.is_multipart() and not self.get_boundary():
            problems.append("multipart type without boundary parameter")
        return problems

    def __str__(self) -> str:
        params = "".join(f'; {k}="{v}"' for k, v in self.parameters.items())
        return f"{self.full_type}{params}"


class DispositionKind(str, Enum):
    """Content-Disposition kinds the decoder acts on."""

    ATTACHMENT = "attachment"
    INLINE = "inline"


@dataclass(frozen=True)
class Disposition:
    """Parsed Content-Disposition value."""

    kind: DispositionKind
    filename: str = ""
    parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "parameters", _frozen_mapping(self.parameters))

    @property
    def is_attachment(self) -> bool:
        return self.kind is DispositionKind.ATTACHMENT

    @property
    def is_inline(self) -> bool:
        return self.kind is DispositionKind.INLINE


@dataclass(frozen=True)
class MessagePart:
    """One node of the decoded MIME tree.

    ``part_id`` is the dotted IMAP-style path of the node; the root is ``""``.
    ``raw_content`` holds the body bytes exactly as they appeared on the wire.
    """

    part_id: str
    headers: HeaderPairs
    mime_type: MimeTypeDescriptor
    raw_content: bytes = b""
    transfer_encoding: str = "7bit"
    disposition: Optional[Disposition] = None
    content_id: str = ""
    children: Tuple["MessagePart", ...] = ()

    @property
    def is_multipart(self) -> bool:
        return bool(self.children) or self.mime_type.is_multipart()

    @property
    def depth(self) -> int:
        return self.part_id.count(".") + 1 if self.part_id else 0

    def get_header(self, name: str, default: str = "") -> str:
        """Return the first header value named ``name`` (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return default

    def get_all(self, name: str) -> List[str]:
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def walk(self) -> Iterator["MessagePart"]:
        """Yield this part and every descendant, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()
