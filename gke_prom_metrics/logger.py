"""Logger API: normal logs + JSON log-based metrics + Prometheus exposition text."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import Config
from .exposition import encode
from .registry import Registry


class Logger:
    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.logger = logging.getLogger("gke_prom_metrics")
        self.logger.setLevel(cfg.log_level)

        # small stdout handler for normal logs
        if not self.logger.handlers:
            ch = logging.StreamHandler()
            ch.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
            self.logger.addHandler(ch)

    def log(self, message: str, info: Optional[Dict[str, Any]] = None, level: str = "info", extra: Optional[Dict[str, Any]] = None) -> None:
        """Normal application log that follows LOG_LEVEL."""
        log_method = getattr(self.logger, level.lower(), self.logger.info)
        if extra:
            log_method(f"{message} | extra={extra} | info={info}")
        else:
            log_method(f"{message} | info={info}")

    def json_metric(self, name: str, value: float, info: Optional[Dict[str, Any]] = None, labels: Optional[Dict[str, str]] = None, extra: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> None:
        """Emit a log-based metric as JSON to STDOUT.

        If `METRICS_ENABLED` in config is True, this will be printed regardless
        of `LOG_LEVEL`.
        """
        if not self.cfg.METRICS_ENABLED:
            return

        entry = {
            "info": info or {},
            "app_name": self.cfg.APP_NAME,
            "app_type": self.cfg.APP_TYPE,
            "owner": self.cfg.OWNER,
            "metric_name": name,
            "metric_value": value,
            "labels": labels or {},
            "event_type": "metric",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if message:
            entry["message"] = message

        if extra:
            for k, v in extra.items():
                if k in entry:
                    continue
                entry[k] = v

        # Print to stdout for log-based metrics ingestion
        print(json.dumps(entry))

    def json_snapshot(self, registry: Registry, message: Optional[str] = None) -> None:
        """Emit one JSON metric line per series currently in the registry."""
        for descriptor, samples in registry.snapshot():
            for labels, value in samples:
                self.json_metric(
                    descriptor.name,
                    value,
                    labels=dict(labels),
                    extra={"metric_kind": descriptor.kind.value},
                    message=message,
                )

    def metrics_to_prometheus(self, registry: Registry) -> str:
        return encode(registry.snapshot())


def get_logger(cfg: Config) -> Logger:
    cfg.validate()
    return Logger(cfg)
