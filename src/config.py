from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Marketplace REST API
    api_base_url: str = "http://localhost:8080"
    api_token: str | None = None
    request_timeout: float = 30.0
    upload_timeout: float = 300.0

    # Synthetic upload progress
    progress_interval: float = Field(default=0.1, gt=0.0)
    progress_step: float = Field(default=0.1, gt=0.0)
    progress_ceiling: float = Field(default=0.9, ge=0.0, lt=1.0)

    # None means one transport call per job with no upper bound
    max_concurrent_uploads: int | None = Field(default=None, ge=1)

    log_level: str = "INFO"


settings = Settings()
