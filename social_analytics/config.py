"""Application configuration loaded from environment variables."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_port: int = 8050
    data_dir: Path = Path("/app/data")
    log_level: str = "info"
    max_upload_size_mb: int = 50

    # Sign-in sessions
    session_ttl_hours: int = 24 * 7
    min_password_length: int = 6

    # Number of characters of the audience export kept in import diagnostics
    import_preview_chars: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("session_ttl_hours", "min_password_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def db_path(self) -> Path:
        return self.data_dir / "social_analytics.db"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"


settings = Settings()
