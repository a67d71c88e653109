from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORGD_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Web API
    api_host: str = "127.0.0.1"
    api_port: int = 5000
    api_debug: bool = False

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Optional[str] = None  # e.g. "logs/forgd_launchpad_{time:YYYY-MM-DD}.log"
    log_retention: str = "7 days"

    # Calibration
    calibration_tolerance_bps: int = 100  # 1% of the target raise
    status_sample_points: int = 20


settings = Settings()
