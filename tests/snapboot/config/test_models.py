from pathlib import Path

from snapboot.config.models import BootSettings


class TestBootSettings:
    """Tests for BootSettings."""

    def test_defaults(self, monkeypatch, temp_dir):
        """Test default bootstrap settings."""
        monkeypatch.chdir(temp_dir)
        monkeypatch.delenv("BOOT_CONFIG_PATH", raising=False)
        monkeypatch.delenv("BOOT_PROFILE", raising=False)

        settings = BootSettings()

        assert settings.config_path == Path("configs")
        assert settings.profile is None
        assert settings.load_environment is True

    def test_environment_overrides(self, monkeypatch, temp_dir):
        """Test BOOT_* variables override the defaults."""
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("BOOT_CONFIG_PATH", str(temp_dir))
        monkeypatch.setenv("BOOT_PROFILE", "production")
        monkeypatch.setenv("BOOT_LOAD_ENVIRONMENT", "false")

        settings = BootSettings()

        assert settings.config_path == temp_dir
        assert settings.profile == "production"
        assert settings.load_environment is False

    def test_dotenv_file(self, monkeypatch, temp_dir):
        """Test values are read from a .env file."""
        monkeypatch.chdir(temp_dir)
        monkeypatch.delenv("BOOT_PROFILE", raising=False)
        (temp_dir / ".env").write_text("BOOT_PROFILE=staging\n")

        assert BootSettings().profile == "staging"
