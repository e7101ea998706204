"""HTTP exposition endpoint serving a registry to pull-based scrapers."""
import http.server
import logging
import threading
from typing import Optional
from urllib.parse import urlsplit

from .config import Config
from .exposition import CONTENT_TYPE, encode
from .registry import Registry

logger = logging.getLogger(__name__)


class MetricsHandler(http.server.BaseHTTPRequestHandler):
    """Answers GET on the metrics and health paths; everything else is 404/405."""

    server_version = "gke_prom_metrics"

    def do_GET(self):  # noqa: N802
        path = urlsplit(self.path).path
        if path == self.server.metrics_path:
            self._serve_metrics()
        elif path == self.server.health_path:
            self._reply(200, b"ok\n", "text/plain; charset=utf-8")
        else:
            self._reply(404, b"not found\n", "text/plain; charset=utf-8")

    def _not_allowed(self):
        self.send_response(405)
        self.send_header("Allow", "GET")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def __getattr__(self, name):
        # every verb other than GET, including ones http.server does not know
        if name.startswith("do_") and name != "do_GET":
            return self._not_allowed
        raise AttributeError(name)

    def _serve_metrics(self):
        # body is fully built before anything is written to the socket
        try:
            body = encode(self.server.registry.snapshot()).encode("utf-8", errors="backslashreplace")
        except Exception:
            logger.exception("Failed to render metrics for %s", self.client_address[0])
            self._reply(500, b"internal error\n", "text/plain; charset=utf-8")
            return
        self._reply(200, body, CONTENT_TYPE)

    def _reply(self, status: int, body: bytes, content_type: str):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class _ExpositionHTTPServer(http.server.ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, registry: Registry, metrics_path: str, health_path: str):
        self.registry = registry
        self.metrics_path = metrics_path
        self.health_path = health_path
        super().__init__(address, MetricsHandler)


class MetricsServer:
    """Background HTTP server exposing a Registry.

    Example:
        registry = Registry()
        with MetricsServer(registry, port=9090):
            ...
    """

    def __init__(
        self,
        registry: Registry,
        host: str = "0.0.0.0",
        port: int = 9090,
        path: str = "/metrics",
        health_path: str = "/healthz",
        enabled: bool = True,
    ):
        self.registry = registry
        self.host = host
        self.requested_port = port
        self.path = path
        self.health_path = health_path
        self.enabled = enabled
        self._server: Optional[_ExpositionHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, registry: Registry, cfg: Config) -> "MetricsServer":
        cfg.validate()
        return cls(
            registry,
            host=cfg.METRICS_HOST,
            port=cfg.METRICS_PORT,
            path=cfg.METRICS_PATH,
            health_path=cfg.HEALTH_PATH,
            enabled=cfg.PROMETHEUS_ENABLED,
        )

    @property
    def port(self) -> int:
        if self._server is None:
            return self.requested_port
        return self._server.server_address[1]

    @property
    def url(self) -> str:
        host = "127.0.0.1" if self.host in ("", "0.0.0.0") else self.host
        return f"http://{host}:{self.port}{self.path}"

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        if self._server is not None:
            return
        if not self.enabled:
            logger.info("PROMETHEUS_ENABLED is false; metrics endpoint not started")
            return
        self._server = _ExpositionHTTPServer(
            (self.host, self.requested_port), self.registry, self.path, self.health_path
        )
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="metrics-server", daemon=True
        )
        self._thread.start()
        logger.info(f"Serving metrics on {self.host}:{self.port}{self.path}")

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None
        logger.info("Metrics server stopped")

    def __enter__(self) -> "MetricsServer":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
