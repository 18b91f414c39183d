# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SERVERCAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    # Runtime mode: "production" hides internal error details from clients
    environment: str = "development"

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 3000
    api_workers: int = 1
    public_base_url: str = "https://ejemplo.com"
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v if isinstance(v, list) else []

    # Credentials
    # HS256 keys need at least 32 bytes
    jwt_secret: str = "servercat-development-signing-secret"
    jwt_algorithm: str = "HS256"
    credential_ttl_seconds: int = 3600

    # Global rate limiting (fixed window, keyed by client address)
    rate_limit_window_seconds: float = 900.0
    rate_limit_max: int = 100
    rate_limit_sweep_interval: float = 300.0

    # /health has its own, tighter limiter
    health_rate_limit_window_seconds: float = 60.0
    health_rate_limit_max: int = 10

    # Request content
    max_body_bytes: int = 1_048_576
    allowed_content_types: Annotated[list[str], NoDecode] = [
        "application/json",
        "application/x-www-form-urlencoded",
        "multipart/form-data",
    ]
    block_suspicious_agents: bool = False

    @field_validator("allowed_content_types", mode="before")
    @classmethod
    def _parse_allowed_content_types(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v if isinstance(v, list) else []

    # Anomaly detection
    anomaly_history_size: int = 100
    anomaly_burst_threshold: int = 50
    anomaly_burst_window_seconds: float = 60.0
    anomaly_max_origins: int = 3
    anomaly_retention_seconds: float = 86_400.0
    anomaly_sweep_interval: float = 3600.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_dir: Path | None = Path("logs")
    log_rotation_interval: float = 86_400.0

    # Integrity
    integrity_secret: str = "default-secret-key"
    integrity_max_age_seconds: float = 86_400.0
    integrity_files: Annotated[list[str], NoDecode] = []

    @field_validator("integrity_files", mode="before")
    @classmethod
    def _parse_integrity_files(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [f.strip() for f in v.split(",") if f.strip()]
        return v if isinstance(v, list) else []

    # Webhook targets (SSRF guard)
    webhook_allowed_hosts: Annotated[list[str], NoDecode] = ["hooks.slack.com", "api.github.com"]
    webhook_allowed_protocols: Annotated[list[str], NoDecode] = ["https"]

    @field_validator("webhook_allowed_hosts", mode="before")
    @classmethod
    def _parse_webhook_allowed_hosts(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [h.strip().lower() for h in v.split(",") if h.strip()]
        return v if isinstance(v, list) else []

    @field_validator("webhook_allowed_protocols", mode="before")
    @classmethod
    def _parse_webhook_allowed_protocols(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [p.strip().lower() for p in v.split(",") if p.strip()]
        return v if isinstance(v, list) else []

    # Background sweeps and log rotation
    enable_background_tasks: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def get_settings() -> Settings:
    return Settings()
