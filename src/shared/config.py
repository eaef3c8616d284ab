"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 30.0
    log_level: str = "INFO"
    otel_exporter_endpoint: str = ""
    trace_console: bool = False

    model_config = {"env_file": "config/.env.local", "extra": "ignore"}


settings = Settings()
