"""
Comprehensive tests for the multipart tree decoder

Tests cover:
- Part ID assignment in nested trees
- Text/HTML body selection
- Attachment and inline resource extraction
- Truncated and malformed structures in strict and lenient modes
- Charset recovery for bodies and headers
"""
import pytest

from mailcodec.core.mime.decoder import MessageDecoder, decode_message
from mailcodec.core.mime.structure import find_part
from mailcodec.utils.config_manager import DecodeOptions
from mailcodec.utils.errors import (
    DepthLimitExceededError,
    MissingBoundaryError,
    TruncatedMultipartError,
)

from .helpers import crlf


class TestNestedStructure:
    """Tests for mixed/alternative trees"""

    def test_part_ids(self, mixed_alternative_message):
        """Test IMAP-style part IDs at every level"""
        parsed = decode_message(mixed_alternative_message)
        root = parsed.root_part

        assert root.part_id == ""
        assert [child.part_id for child in root.children] == ["1", "2"]
        assert [child.part_id for child in root.children[0].children] == ["1.1", "1.2"]
        assert find_part(root, "1").mime_type.is_alternative()
        assert find_part(root, "1.1").mime_type.is_plain_text()
        assert find_part(root, "1.2").mime_type.is_html()
        assert find_part(root, "2").mime_type.full_type == "application/pdf"

    def test_bodies_and_attachment(self, mixed_alternative_message):
        """Test body selection and attachment metadata"""
        parsed = decode_message(mixed_alternative_message)

        assert parsed.text_body == "Hello 世界"
        assert parsed.html_body == "<p>Hello</p>"
        assert len(parsed.attachments) == 1

        attachment = parsed.attachments[0]
        assert attachment.part_id == "2"
        assert attachment.filename == "a.pdf"
        assert attachment.content_type == "application/pdf"
        assert attachment.size == len(b"JVBERi0xLjQK")
        assert attachment.transfer_encoding == "base64"
        assert attachment.content is None
        assert parsed.errors == ()

    def test_subject_and_headers(self, mixed_alternative_message):
        """Test root headers are kept and the subject decoded"""
        parsed = decode_message(mixed_alternative_message)

        assert parsed.subject == "测试 report"
        assert parsed.get_header("to") == "bob@example.com"

    def test_attachment_content_included(self, mixed_alternative_message):
        """Test attachment content is transfer-decoded on request"""
        options = DecodeOptions(include_attachment_content=True)

        parsed = MessageDecoder(options).decode(mixed_alternative_message)

        assert parsed.attachments[0].content == b"%PDF-1.4\n"

    def test_attachment_content_size_limit(self, mixed_alternative_message):
        """Test oversized attachment content is dropped but metadata kept"""
        options = DecodeOptions(include_attachment_content=True, max_attachment_size=4)

        parsed = MessageDecoder(options).decode(mixed_alternative_message)

        assert parsed.attachments[0].content is None
        assert parsed.attachments[0].filename == "a.pdf"

    def test_structure_not_preserved(self, mixed_alternative_message):
        """Test the tree is omitted when not requested"""
        parsed = MessageDecoder(DecodeOptions(preserve_structure=False)).decode(
            mixed_alternative_message
        )

        assert parsed.root_part is None
        assert parsed.text_body == "Hello 世界"

    def test_simple_mixed(self, simple_mixed_message):
        """Test the plain hello plus attachment scenario"""
        parsed = decode_message(simple_mixed_message)

        assert parsed.text_body == "hello"
        assert [a.filename for a in parsed.attachments] == ["a.pdf"]
        assert parsed.attachments[0].part_id == "2"

    def test_lf_only_line_endings(self, simple_mixed_message):
        """Test bare-LF messages decode the same way"""
        parsed = decode_message(simple_mixed_message.replace(b"\r\n", b"\n"))

        assert parsed.text_body == "hello"
        assert parsed.attachments[0].filename == "a.pdf"

    def test_decode_parts_with_split_input(self):
        """Test decoding from separately supplied header and body bytes"""
        parsed = MessageDecoder().decode_parts(
            b"Content-Type: text/html; charset=utf-8",
            b"<b>hi</b>",
        )

        assert parsed.html_body == "<b>hi</b>"
        assert parsed.text_body == ""


class TestBodySelection:
    """Tests for first-wins text and HTML selection"""

    def test_first_text_part_wins(self):
        """Test later text/plain parts are ignored"""
        raw = crlf(
            "Content-Type: multipart/mixed; boundary=B\n"
            "\n"
            "--B\n"
            "Content-Type: text/plain\n"
            "\n"
            "first\n"
            "--B\n"
            "Content-Type: text/plain\n"
            "\n"
            "second\n"
            "--B--\n"
        )

        assert decode_message(raw).text_body == "first"

    def test_empty_part_does_not_claim_body(self):
        """Test an empty text part leaves the slot for the next one"""
        raw = crlf(
            "Content-Type: multipart/mixed; boundary=B\n"
            "\n"
            "--B\n"
            "Content-Type: text/plain\n"
            "\n"
            "\n"
            "--B\n"
            "Content-Type: text/plain\n"
            "\n"
            "real\n"
            "--B--\n"
        )

        assert decode_message(raw).text_body == "real"

    def test_inline_without_content_id_is_body(self):
        """Test inline text without a content-id is treated as body text"""
        raw = crlf(
            "Content-Type: text/plain\n"
            "Content-Disposition: inline\n"
            "\n"
            "inline text"
        )

        parsed = decode_message(raw)

        assert parsed.text_body == "inline text"
        assert parsed.inline_attachments == ()

    def test_inline_resource_with_content_id(self):
        """Test inline parts with a content-id are addressable resources"""
        raw = crlf(
            'Content-Type: multipart/related; boundary="R"\n'
            "\n"
            "--R\n"
            "Content-Type: text/html\n"
            "\n"
            '<img src="cid:logo@example.com">\n'
            "--R\n"
            "Content-Type: image/png\n"
            "Content-Disposition: inline\n"
            "Content-ID: <logo@example.com>\n"
            "Content-Transfer-Encoding: base64\n"
            "\n"
            "iVBORw0KGgo=\n"
            "--R--\n"
        )

        parsed = MessageDecoder(DecodeOptions(include_attachment_content=True)).decode(raw)

        assert parsed.html_body == '<img src="cid:logo@example.com">'
        inline = parsed.find_inline("cid:logo@example.com")
        assert inline is not None
        assert inline.part_id == "2"
        assert inline.disposition == "inline"
        assert inline.content == b"\x89PNG\r\n\x1a\n"
        assert parsed.attachments == ()

    def test_filename_from_content_type_name(self):
        """Test the Content-Type name parameter is used without a disposition filename"""
        raw = crlf(
            "Content-Type: multipart/mixed; boundary=B\n"
            "\n"
            "--B\n"
            'Content-Type: text/csv; name="data.csv"\n'
            "Content-Disposition: attachment\n"
            "\n"
            "a,b\n"
            "--B--\n"
        )

        parsed = decode_message(raw)

        assert parsed.attachments[0].filename == "data.csv"
        assert parsed.attachments[0].part_id == "1"

    def test_single_part_attachment(self):
        """Test a non-multipart attachment message uses part ID 1"""
        raw = crlf(
            "Content-Type: application/pdf\n"
            "Content-Disposition: attachment; filename=x.pdf\n"
            "\n"
            "%PDF"
        )

        parsed = decode_message(raw)

        assert parsed.attachments[0].part_id == "1"
        assert parsed.attachments[0].filename == "x.pdf"
        assert parsed.root_part.part_id == ""


class TestMalformedStructure:
    """Tests for recovery from broken structure"""

    def test_truncated_lenient(self, truncated_message):
        """Test complete leading parts survive a missing close delimiter"""
        parsed = decode_message(truncated_message)

        assert parsed.text_body == "first"
        assert [c.part_id for c in parsed.root_part.children] == ["1"]
        assert parsed.errors[0]["error_type"] == "TruncatedMultipartError"

    def test_truncated_strict(self, truncated_message):
        """Test strict mode raises on truncation"""
        decoder = MessageDecoder(DecodeOptions(strict_mode=True))

        with pytest.raises(TruncatedMultipartError) as exc_info:
            decoder.decode(truncated_message)

        assert exc_info.value.part_id == ""

    def _missing_inner_boundary(self):
        return crlf(
            "Content-Type: multipart/mixed; boundary=B\n"
            "\n"
            "--B\n"
            "Content-Type: multipart/alternative\n"
            "\n"
            "lost\n"
            "--B\n"
            "Content-Type: text/plain\n"
            "\n"
            "after\n"
            "--B--\n"
        )

    def test_missing_inner_boundary_skips_branch(self):
        """Test a broken branch is skipped without renumbering siblings"""
        parsed = decode_message(self._missing_inner_boundary())

        assert parsed.text_body == "after"
        assert [c.part_id for c in parsed.root_part.children] == ["2"]
        assert len(parsed.errors) == 1
        assert parsed.errors[0]["category"] == "structure"
        assert parsed.errors[0]["details"]["part_id"] == "1"

    def test_missing_inner_boundary_strict(self):
        """Test strict mode reports the failing part ID"""
        decoder = MessageDecoder(DecodeOptions(strict_mode=True))

        with pytest.raises(MissingBoundaryError) as exc_info:
            decoder.decode(self._missing_inner_boundary())

        assert exc_info.value.part_id == "1"

    def test_missing_root_boundary_falls_back_to_text(self):
        """Test a boundary-less multipart root becomes plain text"""
        raw = crlf("Content-Type: multipart/mixed; charset=utf-8\n\njust text")

        parsed = decode_message(raw)

        assert parsed.text_body == "just text"
        assert parsed.root_part.mime_type.full_type == "text/plain"
        assert parsed.errors[0]["error_type"] == "MissingBoundaryError"

    def test_boundary_never_found(self):
        """Test a body without delimiters yields no parts and a recorded error"""
        raw = crlf("Content-Type: multipart/mixed; boundary=nope\n\nno parts here")

        parsed = decode_message(raw)

        assert parsed.root_part.children == ()
        assert parsed.errors[0]["category"] == "structure"

    def test_depth_limit(self, mixed_alternative_message):
        """Test branches nested deeper than the limit are skipped"""
        parsed = MessageDecoder(DecodeOptions(max_depth=1)).decode(mixed_alternative_message)

        assert parsed.text_body == ""
        assert parsed.attachments[0].filename == "a.pdf"
        assert parsed.errors[0]["error_type"] == DepthLimitExceededError.__name__

    def test_no_header_separator(self):
        """Test input without a blank line is treated as a plain body"""
        parsed = decode_message(b"no headers at all")

        assert parsed.text_body == "no headers at all"
        assert parsed.root_part is None

    def test_preamble_and_epilogue_ignored(self):
        """Test text around the delimiters is not treated as parts"""
        raw = crlf(
            "Content-Type: multipart/mixed; boundary=B\n"
            "\n"
            "preamble\n"
            "--B\n"
            "\n"
            "body\n"
            "--B--\n"
            "epilogue\n"
        )

        parsed = decode_message(raw)

        assert parsed.text_body == "body"
        assert len(parsed.root_part.children) == 1

    def test_delimiter_with_transport_padding(self):
        """Test trailing whitespace after a delimiter is allowed"""
        raw = b"Content-Type: multipart/mixed; boundary=B\r\n\r\n--B  \r\n\r\nbody\r\n--B-- \r\n"

        assert decode_message(raw).text_body == "body"


class TestCharsetRecovery:
    """Tests for undeclared and mislabeled charsets"""

    def test_gbk_body_without_charset(self, gbk_text):
        """Test undeclared GBK body text is converted"""
        raw = b"Content-Type: text/plain\r\n\r\n" + gbk_text

        assert decode_message(raw).text_body == "测试"

    def test_raw_gbk_subject(self, gbk_text):
        """Test an 8-bit GBK subject is recovered"""
        raw = b"Subject: " + gbk_text + b"\r\nContent-Type: text/plain\r\n\r\nbody"

        assert decode_message(raw).subject == "测试"

    def test_declared_charset_with_qp(self):
        """Test declared charset and transfer encoding are applied in order"""
        raw = crlf(
            "Content-Type: text/plain; charset=gb2312\n"
            "Content-Transfer-Encoding: quoted-printable\n"
            "\n"
            "=B2=E2=CA=D4"
        )

        assert decode_message(raw).text_body == "测试"

    def test_unknown_charset_falls_back(self):
        """Test an unknown charset label still yields readable text"""
        raw = crlf("Content-Type: text/plain; charset=x-made-up\n\nhello")

        assert decode_message(raw).text_body == "hello"

    def test_bytearray_input(self):
        """Test bytes-like input is accepted"""
        raw = bytearray(b"Content-Type: text/plain\r\n\r\nhi")

        assert decode_message(raw).text_body == "hi"

    def test_malformed_charset_keeps_siblings(self):
        """Test a NUL byte in a charset label does not abort the decode"""
        raw = crlf(
            "Content-Type: multipart/alternative; boundary=b\n"
            "\n"
            "--b\n"
            'Content-Type: text/plain; charset="utf\x008"\n'
            "\n"
            "hello\n"
            "--b\n"
            "Content-Type: text/html; charset=utf-8\n"
            "\n"
            "<p>hi</p>\n"
            "--b--\n"
        )

        parsed = decode_message(raw)

        assert parsed.text_body == "hello"
        assert parsed.html_body == "<p>hi</p>"

    def test_malformed_encoded_word_charset(self):
        """Test an encoded-word with a NUL byte in its charset still decodes"""
        raw = crlf("Subject: =?utf\x008?q?hi?=\nContent-Type: text/plain\n\nbody")

        parsed = decode_message(raw)

        assert parsed.subject == "hi"
        assert parsed.text_body == "body"
