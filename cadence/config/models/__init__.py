"""Configuration section models."""

from cadence.config.models.observability import LoggingConfig, MetricsConfig, ObservabilityConfig
from cadence.config.models.scheduler import DispatcherConfig, SchedulerConfig

__all__ = [
    "DispatcherConfig",
    "SchedulerConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
]
