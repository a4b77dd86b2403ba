"""Centralized error handling for the codec."""

from enum import Enum
from functools import wraps
from typing import Any, Dict, Optional

from .logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    STRUCTURE = "structure"
    ENCODING = "encoding"
    IO = "io"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Custom Exceptions


class CodecError(Exception):
    """Base exception for all codec errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise CodecError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def part_id(self) -> Optional[str]:
        """Part ID of the failing MIME part, if known."""
        return self.details.get("part_id")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Structural Errors


class StructuralError(CodecError):
    """Base exception for malformed MIME structure."""

    category = ErrorCategory.STRUCTURE
    user_message = "The message structure is malformed"


class MissingBoundaryError(StructuralError):
    """Exception for a multipart part declaring no boundary."""

    user_message = "Multipart content has no boundary parameter"


class TruncatedMultipartError(StructuralError):
    """Exception for a multipart body missing its closing delimiter."""

    user_message = "Multipart content ended before its closing delimiter"


class DepthLimitExceededError(StructuralError):
    """Exception when multipart nesting exceeds the configured limit."""

    user_message = "Multipart nesting is too deep"


## Encoding Errors


class EncodingError(CodecError):
    """Base exception for transfer-encoding and charset failures."""

    category = ErrorCategory.ENCODING
    user_message = "Content could not be decoded"


class UnsupportedTransferEncodingError(EncodingError):
    """Exception for an unknown Content-Transfer-Encoding."""

    user_message = "Unsupported transfer encoding"


class UnsupportedCharsetError(EncodingError):
    """Exception for an unknown character set."""

    user_message = "Unsupported character encoding"


## I/O Errors


class AttachmentReadError(CodecError):
    """Exception when an outgoing attachment stream cannot be read."""

    category = ErrorCategory.IO
    user_message = "Failed to read attachment content"


## Validation Errors


class ValidationError(CodecError):
    """Base exception for invalid caller input."""

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


## File System Errors


class FileSystemError(CodecError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Configuration Errors


class ConfigurationError(CodecError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and return a serialisable record."""
        if isinstance(error, CodecError):
            extra = {"context": context, "details": error.details}
            if error.part_id is not None:
                extra["part_id"] = error.part_id
            _get_logger().error(f"{context}: {error.message}", extra=extra)
            if log_traceback:
                _get_logger().exception(error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}", extra={"context": context})
            if log_traceback:
                _get_logger().exception(error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }

    @staticmethod
    def wrap(func):
        """Decorator converting unexpected exceptions into CodecError."""

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)

            except CodecError:
                raise

            except Exception as e:
                _get_logger().exception(f"Unexpected error in {func.__name__}")
                raise CodecError(
                    message=f"Unexpected error: {str(e)}",
                    details={"function": func.__name__},
                ) from e

        return wrapper
