from pathlib import Path
from typing import Optional

import pydantic
import pydantic_settings as settings


class BootSettings(settings.BaseSettings):
    """Process-level bootstrap options read from the environment or a ``.env`` file."""
    model_config = settings.SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BOOT_",
        extra="ignore",
        validate_default=True
    )

    config_path: Path = pydantic.Field(
        default=Path("configs"),
        description="Directory (or file) holding the application configuration"
    )
    profile: Optional[str] = pydantic.Field(
        default=None,
        description="Configuration profile overlay; defaults to app.env"
    )
    load_environment: bool = pydantic.Field(
        default=True,
        description="Copy process environment variables into the property source"
    )
