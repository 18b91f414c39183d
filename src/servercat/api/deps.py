# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Per-application service container and the dependency that exposes it."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from starlette.requests import Request

from servercat.api.credentials import CredentialIssuer
from servercat.audit.logger import SecurityLogger
from servercat.catalog.repository import InMemoryProductRepository
from servercat.catalog.service import ProductCatalog
from servercat.core.config import Settings
from servercat.security.anomaly import AnomalyDetector
from servercat.security.integrity import DataIntegrityValidator, DependencyValidator, FileIntegrityMonitor
from servercat.security.rate_limit import RateLimiter
from servercat.security.sweeper import PeriodicTask


@dataclass
class AppServices:
    """Everything a request handler or middleware needs, built once per app."""

    settings: Settings
    issuer: CredentialIssuer
    security_logger: SecurityLogger
    rate_limiter: RateLimiter
    health_limiter: RateLimiter
    anomaly_detector: AnomalyDetector
    catalog: ProductCatalog
    integrity: DataIntegrityValidator
    dependencies: DependencyValidator
    file_monitor: FileIntegrityMonitor
    started_at: float = field(default_factory=time.monotonic)
    periodic_tasks: list[PeriodicTask] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings) -> AppServices:
        security_logger = SecurityLogger(settings.log_dir)
        services = cls(
            settings=settings,
            issuer=CredentialIssuer(
                settings.jwt_secret,
                ttl_seconds=settings.credential_ttl_seconds,
                algorithm=settings.jwt_algorithm,
            ),
            security_logger=security_logger,
            rate_limiter=RateLimiter(settings.rate_limit_window_seconds, settings.rate_limit_max),
            health_limiter=RateLimiter(
                settings.health_rate_limit_window_seconds,
                settings.health_rate_limit_max,
            ),
            anomaly_detector=AnomalyDetector(
                history_size=settings.anomaly_history_size,
                burst_threshold=settings.anomaly_burst_threshold,
                burst_window_seconds=settings.anomaly_burst_window_seconds,
                max_origins=settings.anomaly_max_origins,
                retention_seconds=settings.anomaly_retention_seconds,
                security_logger=security_logger,
            ),
            catalog=ProductCatalog(
                InMemoryProductRepository(),
                public_base_url=settings.public_base_url,
            ),
            integrity=DataIntegrityValidator(
                settings.integrity_secret,
                max_age_seconds=settings.integrity_max_age_seconds,
            ),
            dependencies=DependencyValidator(),
            file_monitor=FileIntegrityMonitor(settings.integrity_files),
        )
        services.periodic_tasks = [
            PeriodicTask("rate-limit-sweep", services.rate_limiter.sweep, settings.rate_limit_sweep_interval),
            PeriodicTask("health-limit-sweep", services.health_limiter.sweep, settings.rate_limit_sweep_interval),
            PeriodicTask("anomaly-sweep", services.anomaly_detector.sweep, settings.anomaly_sweep_interval),
            PeriodicTask("log-rotation", security_logger.rotate, settings.log_rotation_interval),
        ]
        return services

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    async def start_background(self) -> None:
        for task in self.periodic_tasks:
            await task.start()

    async def stop_background(self) -> None:
        for task in self.periodic_tasks:
            await task.stop()


def get_services(request: Request) -> AppServices:
    """FastAPI dependency returning the services bound to the running app."""
    return request.app.state.services


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"
