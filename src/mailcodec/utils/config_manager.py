"""Configuration manager for codec settings stored as JSON."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import (
    CodecError,
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
)
from .logging import get_logger, init_logging
from .paths import resolve_config_path

logger = get_logger(__name__)

DEFAULT_MAX_ATTACHMENT_SIZE = 25 * 1024 * 1024  # 25 MiB


class DecodeOptions(BaseModel):
    """Pydantic model for decoder behaviour."""

    model_config = ConfigDict(frozen=True)

    include_attachment_content: bool = False
    max_attachment_size: int = Field(default=DEFAULT_MAX_ATTACHMENT_SIZE, ge=0)
    strict_mode: bool = False
    preserve_structure: bool = True
    max_depth: int = Field(default=50, ge=1)


class EncodeOptions(BaseModel):
    """Pydantic model for encoder behaviour."""

    model_config = ConfigDict(frozen=True)

    line_length: int = Field(default=76, ge=4, le=998)
    boundary_prefix: str = "boundary_"
    generate_message_id: bool = True
    message_id_domain: Optional[str] = None


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    console_level: str = "WARNING"
    log_to_file: bool = False
    log_dir: Optional[str] = None
    max_file_size: int = 5_242_880  # 5 MB
    backup_count: int = 5


class CodecConfig(BaseModel):
    """Pydantic model for overall codec configuration."""

    version: str = "0.1.0"
    decode: DecodeOptions = Field(default_factory=DecodeOptions)
    encode: EncodeOptions = Field(default_factory=EncodeOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Loads codec configuration once per process."""

    _instance = None
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        if not ConfigManager._initialized:
            self.path = Path(config_path) if config_path else resolve_config_path()
            self.config = self._load_config()
            ConfigManager._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded configuration so the next access reloads it."""
        cls._instance = None
        cls._initialized = False

    def _load_config(self) -> CodecConfig:
        """Load configuration from file, or use defaults when none exists."""

        from pydantic import ValidationError

        if not self.path.exists():
            logger.debug(f"No config file at {self.path}, using defaults.")
            return CodecConfig()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = CodecConfig(**data)
            logger.debug(f"Configuration loaded from {self.path}")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(
                f"Configuration file is not valid JSON: {str(e)}"
            ) from e
        except ValidationError as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(
                f"Configuration data does not match expected schema: {str(e)}"
            ) from e
        except OSError as e:
            raise FileSystemError(
                f"Failed to read configuration file {self.path}: {str(e)}"
            ) from e
        except CodecError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e

    @property
    def decode_options(self) -> DecodeOptions:
        return self.config.decode

    @property
    def encode_options(self) -> EncodeOptions:
        return self.config.encode

    def apply_logging(self) -> None:
        """Rebuild log handlers from the loaded logging section."""

        settings = self.config.logging
        init_logging(
            force=True,
            log_level=settings.log_level,
            console_level=settings.console_level,
            log_to_file=settings.log_to_file,
            log_dir=Path(settings.log_dir) if settings.log_dir else None,
            max_file_size=settings.max_file_size,
            backup_count=settings.backup_count,
        )
        logger.info("Logging configured from codec settings")


def get_config() -> CodecConfig:
    """Return the process-wide codec configuration."""
    return ConfigManager().config
