"""Runtime settings read from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    throttle_ms: float = 50.0
    sample_interval: float = 1 / 60
    subscription_channel: str = "full"
    simulator_update_interval: float = 0.5
    instruments_csv: str | None = None


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive, using %s", name, raw, default)
        return default
    return value


def load_settings() -> Settings:
    """Build Settings from the environment.

    - SPOT_THROTTLE_MS            minimum gap between spot price emissions
    - SPOT_SAMPLE_INTERVAL        seconds between tick cache samples
    - SPOT_SUBSCRIPTION_CHANNEL   market-data channel for subscriptions
    - SIMULATOR_UPDATE_INTERVAL   seconds between simulated ticks
    - INSTRUMENTS_CSV             optional path to an instruments dump
    """
    defaults = Settings()
    return Settings(
        throttle_ms=_float_env("SPOT_THROTTLE_MS", defaults.throttle_ms),
        sample_interval=_float_env("SPOT_SAMPLE_INTERVAL", defaults.sample_interval),
        subscription_channel=os.environ.get("SPOT_SUBSCRIPTION_CHANNEL", "").strip()
        or defaults.subscription_channel,
        simulator_update_interval=_float_env(
            "SIMULATOR_UPDATE_INTERVAL", defaults.simulator_update_interval
        ),
        instruments_csv=os.environ.get("INSTRUMENTS_CSV", "").strip() or None,
    )
