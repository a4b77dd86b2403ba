"""
Test helper functions shared across test modules
"""


def crlf(text: str) -> bytes:
    """Build wire bytes from a readable multi-line literal."""
    return text.replace("\n", "\r\n").encode("utf-8")
