"""
Tests for SASL initial-response encoding
"""
import base64

import pytest

from mailcodec.core.email.auth import (
    encode_login_step,
    encode_plain,
    encode_xoauth2,
    initial_response,
)
from mailcodec.core.email.constants import AuthMechanism
from mailcodec.utils.errors import ValidationError


class TestMechanismEncoders:
    """Tests for raw mechanism messages"""

    def test_plain(self):
        """Test the PLAIN message layout"""
        assert encode_plain("user", "pass") == b"\x00user\x00pass"
        assert encode_plain("user", "pass", authzid="admin") == b"admin\x00user\x00pass"

    def test_xoauth2(self):
        """Test the XOAUTH2 message layout"""
        assert (
            encode_xoauth2("user@example.com", "ya29.token")
            == b"user=user@example.com\x01auth=Bearer ya29.token\x01\x01"
        )

    def test_login_step(self):
        """Test LOGIN challenge responses are base64"""
        assert encode_login_step("user") == "dXNlcg=="

    def test_nul_in_plain_rejected(self):
        """Test NUL bytes cannot be smuggled into PLAIN fields"""
        with pytest.raises(ValidationError) as exc_info:
            encode_plain("us\x00er", "pass")

        assert exc_info.value.details["field"] == "username"

    def test_separator_in_xoauth2_rejected(self):
        """Test ^A cannot appear in XOAUTH2 fields"""
        with pytest.raises(ValidationError):
            encode_xoauth2("user", "tok\x01en")


class TestInitialResponse:
    """Tests for AUTH initial responses"""

    def test_plain_response(self):
        """Test the PLAIN initial response is base64 of the message"""
        assert initial_response(AuthMechanism.PLAIN, "user", "pass") == "AHVzZXIAcGFzcw=="

    def test_mechanism_name_case_insensitive(self):
        """Test string mechanism names are accepted in any case"""
        assert initial_response("xoauth2", "u", "t") == base64.b64encode(
            b"user=u\x01auth=Bearer t\x01\x01"
        ).decode("ascii")

    def test_login_has_no_initial_response(self):
        """Test LOGIN is rejected since it is challenge driven"""
        with pytest.raises(ValidationError):
            initial_response(AuthMechanism.LOGIN, "user", "pass")

    def test_unknown_mechanism(self):
        """Test unknown mechanisms are rejected"""
        with pytest.raises(ValidationError) as exc_info:
            initial_response("CRAM-MD5", "user", "pass")

        assert exc_info.value.details["mechanism"] == "CRAM-MD5"
