"""Configuration loader for gke_prom_metrics.

Reads defaults, `.configs` (environment variables format) and OS environment variables (env wins).
"""
import logging
import os
from typing import Optional

from dotenv import dotenv_values

from .exceptions import ValidationError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_KEYS = (
    "APP_NAME",
    "APP_TYPE",
    "OWNER",
    "LOG_LEVEL",
    "METRICS_ENABLED",
    "PROMETHEUS_ENABLED",
    "METRICS_HOST",
    "METRICS_PORT",
    "METRICS_PATH",
    "HEALTH_PATH",
)


def _as_bool(value) -> bool:
    return str(value).strip().lower() == "true"


class Config:
    def __init__(self, config_file: Optional[str] = None):
        # defaults
        self.APP_NAME = "default_app"
        self.APP_TYPE = "default_type"
        self.OWNER = "default_owner"
        self.LOG_LEVEL = "INFO"
        self.METRICS_ENABLED = True
        self.PROMETHEUS_ENABLED = True
        self.METRICS_HOST = "0.0.0.0"
        self.METRICS_PORT = 9090
        self.METRICS_PATH = "/metrics"
        self.HEALTH_PATH = "/healthz"

        # load file if provided (environment variables format: KEY=VALUE)
        cfg_path = config_file or os.getenv("CONFIG_FILE") or os.path.join(os.getcwd(), ".configs")
        if cfg_path and os.path.isfile(cfg_path):
            try:
                values = dotenv_values(cfg_path)
            except Exception as e:
                raise ValidationError(f"Failed to read config file {cfg_path}: {e}")
            for key, value in values.items():
                if key in _KEYS and value is not None:
                    setattr(self, key, value)

        # environment overrides
        for key in _KEYS:
            env_value = os.getenv(key)
            if env_value is not None:
                setattr(self, key, env_value)

        self.METRICS_ENABLED = _as_bool(self.METRICS_ENABLED)
        self.PROMETHEUS_ENABLED = _as_bool(self.PROMETHEUS_ENABLED)
        self.LOG_LEVEL = str(self.LOG_LEVEL).strip().upper()
        try:
            self.METRICS_PORT = int(self.METRICS_PORT)
        except (TypeError, ValueError):
            raise ValidationError(f"METRICS_PORT must be an integer, got {self.METRICS_PORT!r}")

    @property
    def log_level(self) -> int:
        return getattr(logging, self.LOG_LEVEL, logging.INFO)

    def validate(self) -> None:
        if not self.APP_NAME:
            raise ValidationError("APP_NAME must be set")
        if self.LOG_LEVEL not in _LOG_LEVELS:
            raise ValidationError(f"LOG_LEVEL must be one of {_LOG_LEVELS}, got {self.LOG_LEVEL!r}")
        if not 0 <= self.METRICS_PORT <= 65535:
            raise ValidationError(f"METRICS_PORT out of range: {self.METRICS_PORT}")
        for key in ("METRICS_PATH", "HEALTH_PATH"):
            if not str(getattr(self, key)).startswith("/"):
                raise ValidationError(f"{key} must start with '/'")
        if self.METRICS_PATH == self.HEALTH_PATH:
            raise ValidationError("METRICS_PATH and HEALTH_PATH must differ")
