"""Shared utilities: errors, logging, configuration and paths."""

from .config_manager import (
    CodecConfig,
    ConfigManager,
    DecodeOptions,
    EncodeOptions,
    LoggingConfig,
    get_config,
)
from .errors import (
    AttachmentReadError,
    CodecError,
    ConfigurationError,
    DepthLimitExceededError,
    EncodingError,
    ErrorCategory,
    ErrorHandler,
    FileSystemError,
    InvalidConfigError,
    MissingBoundaryError,
    StructuralError,
    TruncatedMultipartError,
    UnsupportedCharsetError,
    UnsupportedTransferEncodingError,
    ValidationError,
)
from .logging import get_logger, init_logging, log_call

__all__ = [
    # Config
    "CodecConfig",
    "ConfigManager",
    "DecodeOptions",
    "EncodeOptions",
    "LoggingConfig",
    "get_config",
    # Errors
    "AttachmentReadError",
    "CodecError",
    "ConfigurationError",
    "DepthLimitExceededError",
    "EncodingError",
    "ErrorCategory",
    "ErrorHandler",
    "FileSystemError",
    "InvalidConfigError",
    "MissingBoundaryError",
    "StructuralError",
    "TruncatedMultipartError",
    "UnsupportedCharsetError",
    "UnsupportedTransferEncodingError",
    "ValidationError",
    # Logging
    "get_logger",
    "init_logging",
    "log_call",
]
