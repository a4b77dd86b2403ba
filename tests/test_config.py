"""
Tests for configuration loading
"""
import json

import pytest
from pydantic import ValidationError

from mailcodec.core.mime.decoder import MessageDecoder
from mailcodec.utils.config_manager import (
    CodecConfig,
    ConfigManager,
    DecodeOptions,
    EncodeOptions,
    get_config,
)
from mailcodec.utils.errors import InvalidConfigError, TruncatedMultipartError
from mailcodec.utils.logging import init_logging


@pytest.fixture
def write_config(isolated_config):
    """Write a JSON config to the isolated config path"""

    def _write(data):
        if isinstance(data, str):
            isolated_config.write_text(data, encoding="utf-8")
        else:
            isolated_config.write_text(json.dumps(data), encoding="utf-8")
        ConfigManager.reset()
        return isolated_config

    return _write


class TestDefaults:
    """Tests for built-in defaults"""

    def test_defaults_without_file(self, isolated_config):
        """Test a missing file means defaults and nothing is written"""
        manager = ConfigManager()

        assert manager.decode_options == DecodeOptions()
        assert manager.encode_options == EncodeOptions()
        assert not isolated_config.exists()

    def test_default_values(self):
        """Test the documented default option values"""
        decode = DecodeOptions()
        encode = EncodeOptions()

        assert decode.include_attachment_content is False
        assert decode.max_attachment_size == 25 * 1024 * 1024
        assert decode.strict_mode is False
        assert decode.preserve_structure is True
        assert decode.max_depth == 50
        assert encode.line_length == 76
        assert encode.boundary_prefix == "boundary_"

    def test_singleton(self):
        """Test the manager is shared until reset"""
        assert ConfigManager() is ConfigManager()
        assert isinstance(get_config(), CodecConfig)

    def test_options_frozen(self):
        """Test option objects cannot be changed in place"""
        options = DecodeOptions()

        with pytest.raises(ValidationError):
            options.strict_mode = True


class TestFileLoading:
    """Tests for reading the JSON file"""

    def test_partial_file(self, write_config):
        """Test missing sections fall back to defaults"""
        write_config({"decode": {"strict_mode": True, "max_depth": 5}})

        options = ConfigManager().decode_options

        assert options.strict_mode is True
        assert options.max_depth == 5
        assert options.preserve_structure is True
        assert ConfigManager().encode_options.line_length == 76

    def test_decoder_uses_configured_options(self, write_config, truncated_message):
        """Test decoders built without options read the config file"""
        write_config({"decode": {"strict_mode": True}})

        with pytest.raises(TruncatedMultipartError):
            MessageDecoder().decode(truncated_message)

    def test_invalid_json(self, write_config):
        """Test malformed JSON is reported as invalid config"""
        write_config("{not json")

        with pytest.raises(InvalidConfigError):
            ConfigManager()

    def test_schema_violation(self, write_config):
        """Test out-of-range values are rejected"""
        write_config({"decode": {"max_depth": 0}})

        with pytest.raises(InvalidConfigError):
            ConfigManager()

    def test_line_length_bounds(self):
        """Test encode line length limits"""
        with pytest.raises(ValidationError):
            EncodeOptions(line_length=1000)

    def test_apply_logging(self, write_config, tmp_path):
        """Test the logging section rebuilds the handlers"""
        log_dir = tmp_path / "logs"
        write_config({"logging": {"log_to_file": True, "log_dir": str(log_dir)}})

        try:
            ConfigManager().apply_logging()
            assert (log_dir / "mailcodec.log").exists()
        finally:
            init_logging(force=True)
