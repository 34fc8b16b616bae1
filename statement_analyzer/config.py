"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Claude Messages API
    claude_api_key: str = ""
    claude_api_base: str = "https://api.anthropic.com"
    claude_api_version: str = "2023-06-01"
    claude_model: str = "claude-3-5-sonnet-latest"
    detection_max_tokens: int = 500
    extraction_max_tokens: int = 4000

    # Service
    service_name: str = "statement-analyzer"
    environment: str = "development"
    log_level: str = "INFO"
    frontend_url: str = ""

    # Uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # HTTP Client
    http_timeout_seconds: float = 60.0

    @property
    def claude_configured(self) -> bool:
        return bool(self.claude_api_key)


settings = Settings()
