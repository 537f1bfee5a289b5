"""Lethe configuration module."""

from lethe.config.settings import (
    EvaluationSettings,
    LoggingSettings,
    PolicySettings,
    Settings,
    load_settings,
)

__all__ = [
    "Settings",
    "EvaluationSettings",
    "PolicySettings",
    "LoggingSettings",
    "load_settings",
]
