from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Probe definitions (absolute or relative to CWD)
    probes_file: str = "probes.yaml"

    # Background refresh
    cache_enabled: bool = True
    check_interval_seconds: float = 30.0  # used when probes.yaml sets no interval

    # Probe timeout when a probe entry doesn't set timeout_ms
    default_timeout_ms: int = 5_000

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()
