"""Runtime configuration for proxhub, read from ``PROXHUB_*`` variables."""
from __future__ import annotations

import dataclasses
import os
from typing import Any, Callable, Mapping, Optional, Tuple

ENV_PREFIX = "PROXHUB_"


def _env_value(
    environ: Mapping[str, str],
    name: str,
    default: Any,
    cast: Callable[[str], Any],
) -> Any:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"invalid value for {ENV_PREFIX}{name}: {raw!r}") from exc


def _split_origins(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclasses.dataclass(frozen=True)
class MonitorConfig:
    """Tunables for the monitoring service.

    Distances are in the same units the producers report (metres in
    practice). Durations are in seconds.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: Tuple[str, ...] = ("*",)

    reference_power: int = -59
    default_distance: float = 5.0
    near_threshold: float = 2.0
    medium_threshold: float = 5.0

    inline_eviction_seconds: float = 120.0
    sweep_eviction_seconds: float = 300.0
    sweep_interval_seconds: float = 300.0

    notification_capacity: int = 100
    notification_retention_seconds: float = 7200.0
    snapshot_notifications: int = 20
    default_notification_limit: int = 50
    recent_notification_window_seconds: float = 3600.0

    health_interval_seconds: float = 60.0
    active_window_seconds: float = 60.0
    healthy_window_seconds: float = 120.0

    def __post_init__(self) -> None:
        if self.notification_capacity < 1:
            raise ValueError("notification_capacity must be at least 1")
        if self.sweep_interval_seconds <= 0 or self.health_interval_seconds <= 0:
            raise ValueError("timer intervals must be positive")
        if self.near_threshold > self.medium_threshold:
            raise ValueError("near_threshold must not exceed medium_threshold")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MonitorConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            host=_env_value(env, "HOST", defaults.host, str),
            port=_env_value(env, "PORT", defaults.port, int),
            cors_origins=_env_value(env, "CORS_ORIGINS", defaults.cors_origins, _split_origins),
            reference_power=_env_value(env, "REFERENCE_POWER", defaults.reference_power, int),
            default_distance=_env_value(env, "DEFAULT_DISTANCE", defaults.default_distance, float),
            near_threshold=_env_value(env, "NEAR_THRESHOLD", defaults.near_threshold, float),
            medium_threshold=_env_value(env, "MEDIUM_THRESHOLD", defaults.medium_threshold, float),
            inline_eviction_seconds=_env_value(
                env, "INLINE_EVICTION_SECONDS", defaults.inline_eviction_seconds, float
            ),
            sweep_eviction_seconds=_env_value(
                env, "SWEEP_EVICTION_SECONDS", defaults.sweep_eviction_seconds, float
            ),
            sweep_interval_seconds=_env_value(
                env, "SWEEP_INTERVAL_SECONDS", defaults.sweep_interval_seconds, float
            ),
            notification_capacity=_env_value(
                env, "NOTIFICATION_CAPACITY", defaults.notification_capacity, int
            ),
            notification_retention_seconds=_env_value(
                env, "NOTIFICATION_RETENTION_SECONDS", defaults.notification_retention_seconds, float
            ),
            snapshot_notifications=_env_value(
                env, "SNAPSHOT_NOTIFICATIONS", defaults.snapshot_notifications, int
            ),
            default_notification_limit=_env_value(
                env, "DEFAULT_NOTIFICATION_LIMIT", defaults.default_notification_limit, int
            ),
            recent_notification_window_seconds=_env_value(
                env,
                "RECENT_NOTIFICATION_WINDOW_SECONDS",
                defaults.recent_notification_window_seconds,
                float,
            ),
            health_interval_seconds=_env_value(
                env, "HEALTH_INTERVAL_SECONDS", defaults.health_interval_seconds, float
            ),
            active_window_seconds=_env_value(
                env, "ACTIVE_WINDOW_SECONDS", defaults.active_window_seconds, float
            ),
            healthy_window_seconds=_env_value(
                env, "HEALTHY_WINDOW_SECONDS", defaults.healthy_window_seconds, float
            ),
        )


__all__ = ["MonitorConfig", "ENV_PREFIX"]
