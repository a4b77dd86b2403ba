"""
Shared test fixtures and configuration for pytest
"""
import pytest

from mailcodec.utils.config_manager import ConfigManager

from .helpers import crlf


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the config loader at an empty temp location for every test"""
    monkeypatch.setenv("MAILCODEC_CONFIG", str(tmp_path / "config.json"))
    ConfigManager.reset()
    yield tmp_path / "config.json"
    ConfigManager.reset()


@pytest.fixture
def mixed_alternative_message():
    """multipart/mixed holding multipart/alternative plus a PDF attachment"""
    return crlf(
        "From: Alice <alice@example.com>\n"
        "To: bob@example.com\n"
        "Subject: =?utf-8?B?5rWL6K+V?= report\n"
        "MIME-Version: 1.0\n"
        'Content-Type: multipart/mixed; boundary="outer"\n'
        "\n"
        "This is a multi-part message in MIME format.\n"
        "--outer\n"
        'Content-Type: multipart/alternative; boundary="inner"\n'
        "\n"
        "--inner\n"
        "Content-Type: text/plain; charset=utf-8\n"
        "Content-Transfer-Encoding: quoted-printable\n"
        "\n"
        "Hello =E4=B8=96=E7=95=8C\n"
        "--inner\n"
        "Content-Type: text/html; charset=utf-8\n"
        "\n"
        "<p>Hello</p>\n"
        "--inner--\n"
        "\n"
        "--outer\n"
        'Content-Type: application/pdf; name="a.pdf"\n'
        'Content-Disposition: attachment; filename="a.pdf"\n'
        "Content-Transfer-Encoding: base64\n"
        "\n"
        "JVBERi0xLjQK\n"
        "--outer--\n"
    )


@pytest.fixture
def simple_mixed_message():
    """Plain 'hello' text followed by an attachment"""
    return crlf(
        "Subject: Invoice\n"
        "Content-Type: multipart/mixed; boundary=X\n"
        "\n"
        "--X\n"
        "Content-Type: text/plain\n"
        "\n"
        "hello\n"
        "--X\n"
        "Content-Type: application/pdf\n"
        "Content-Disposition: attachment; filename=a.pdf\n"
        "\n"
        "%PDF-1.4 binary\n"
        "--X--\n"
    )


@pytest.fixture
def truncated_message():
    """multipart/mixed whose second part is cut off before the closing delimiter"""
    return crlf(
        "Content-Type: multipart/mixed; boundary=b1\n"
        "\n"
        "--b1\n"
        "Content-Type: text/plain\n"
        "\n"
        "first\n"
        "--b1\n"
        "Content-Type: text/plain\n"
        "\n"
        "second part never ends"
    )


@pytest.fixture
def gbk_text():
    """'测试' encoded as GBK"""
    return b"\xb2\xe2\xca\xd4"
