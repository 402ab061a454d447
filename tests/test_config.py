"""Tests for agro_canvas.config."""

from agro_canvas.config import Settings
from agro_canvas.validation import CanvasValidationOptions


class TestDefaults:
    def test_storage_defaults(self):
        """Test storage layout defaults."""
        config = Settings(_env_file=None)
        assert config.storage_key_prefix == "agroecologia-"
        assert config.history_limit == 50
        assert config.storage_quota_bytes == 5 * 1024 * 1024

    def test_validation_defaults(self):
        """Test validation bound defaults."""
        config = Settings(_env_file=None)
        assert config.max_elements == 1000
        assert (config.min_canvas_width, config.max_canvas_width) == (1, 200)
        assert config.max_file_size == 10 * 1024 * 1024
        assert "image/png" in config.allowed_file_types

    def test_auto_save_default(self):
        """Test the auto-save interval default."""
        assert Settings(_env_file=None).auto_save_interval_minutes == 5


class TestListParsing:
    def test_comma_separated_string(self):
        """Test list settings accept comma-separated strings."""
        config = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")
        assert config.cors_origins == ["http://a.test", "http://b.test"]

    def test_json_string(self):
        """Test list settings accept JSON arrays."""
        config = Settings(_env_file=None, allowed_file_types='["image/gif"]')
        assert config.allowed_file_types == ["image/gif"]

    def test_list_passthrough(self):
        """Test list settings accept lists."""
        config = Settings(_env_file=None, cors_origins=["http://a.test"])
        assert config.cors_origins == ["http://a.test"]


class TestEnvironment:
    def test_reads_environment(self, monkeypatch):
        """Test settings are read from the environment."""
        monkeypatch.setenv("HISTORY_LIMIT", "10")
        monkeypatch.setenv("STORAGE_KEY_PREFIX", "test-")
        monkeypatch.setenv("CORS_ORIGINS", '["http://example.test"]')

        config = Settings(_env_file=None)

        assert config.history_limit == 10
        assert config.storage_key_prefix == "test-"
        assert config.cors_origins == ["http://example.test"]

    def test_validation_options_follow_settings(self):
        """Test validation options are built from settings."""
        config = Settings(_env_file=None, max_elements=5, max_canvas_width=20)
        options = CanvasValidationOptions.from_settings(config)
        assert options.max_elements == 5
        assert options.max_canvas_size.width == 20
        assert options.max_canvas_size.height == 200
