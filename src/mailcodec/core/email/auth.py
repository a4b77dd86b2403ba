"""SASL initial-response encoders for the SMTP/IMAP session layer.

These only build the byte strings a mechanism expects; they hold no
connection state and never talk to a server.
"""

import base64
from typing import Union

from mailcodec.utils.errors import ValidationError
from mailcodec.utils.logging import get_logger

from .constants import AuthMechanism

logger = get_logger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _check_no(separator: str, **values: str) -> None:
    for name, value in values.items():
        if separator in value:
            raise ValidationError(
                f"{name} may not contain {separator!r}", details={"field": name}
            )


def encode_plain(username: str, password: str, authzid: str = "") -> bytes:
    """RFC 4616 PLAIN message: ``authzid NUL username NUL password``."""
    _check_no("\x00", authzid=authzid, username=username, password=password)
    return f"{authzid}\x00{username}\x00{password}".encode("utf-8")


def encode_xoauth2(username: str, token: str) -> bytes:
    """XOAUTH2 message: ``user=<u>^Aauth=Bearer <token>^A^A``."""
    _check_no("\x01", username=username, token=token)
    return f"user={username}\x01auth=Bearer {token}\x01\x01".encode("utf-8")


def encode_login_step(value: str) -> str:
    """Base64 response to one LOGIN challenge (username, then password)."""
    return _b64(value.encode("utf-8"))


def initial_response(
    mechanism: Union[AuthMechanism, str], username: str, secret: str, authzid: str = ""
) -> str:
    """Base64 initial client response for ``AUTH <mechanism> <response>``.

    Args:
        mechanism: PLAIN or XOAUTH2; LOGIN has no initial response.
        username: Account name.
        secret: Password for PLAIN, access token for XOAUTH2.
        authzid: Optional authorization identity (PLAIN only).

    Raises:
        ValidationError: Unsupported mechanism or forbidden characters.
    """
    name = mechanism.value if isinstance(mechanism, AuthMechanism) else str(mechanism)
    try:
        mechanism = AuthMechanism(name.upper())
    except ValueError as e:
        raise ValidationError(
            f"Unsupported auth mechanism: {name}", details={"mechanism": name}
        ) from e

    if mechanism is AuthMechanism.PLAIN:
        response = _b64(encode_plain(username, secret, authzid))
    elif mechanism is AuthMechanism.XOAUTH2:
        response = _b64(encode_xoauth2(username, secret))
    else:
        raise ValidationError(
            f"{mechanism.value} has no initial response", details={"mechanism": mechanism.value}
        )

    logger.debug(f"Built {mechanism.value} initial response for {username}")
    return response
