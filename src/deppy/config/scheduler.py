"""Timing defaults for update triggers."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env

DEFAULT_UPDATE_INTERVAL_HOURS = 6.0
DEFAULT_PUSH_DEBOUNCE_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    update_interval_seconds: float = DEFAULT_UPDATE_INTERVAL_HOURS * 3600
    push_debounce_seconds: float = DEFAULT_PUSH_DEBOUNCE_SECONDS


def get_scheduler_config() -> SchedulerConfig:
    hours = float_env("DEPPY_UPDATE_INTERVAL_HOURS", DEFAULT_UPDATE_INTERVAL_HOURS)
    debounce = float_env("DEPPY_PUSH_DEBOUNCE_SECONDS", DEFAULT_PUSH_DEBOUNCE_SECONDS)
    return SchedulerConfig(update_interval_seconds=hours * 3600, push_debounce_seconds=debounce)
