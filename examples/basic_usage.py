"""Example usage of gke_prom_metrics: a sample web service counting its requests."""
import http.server
import threading
import urllib.request

from gke_prom_metrics import (
    Config,
    MetricDescriptor,
    MetricKind,
    MetricsServer,
    Registry,
    get_logger,
)


def make_app_handler(requests_total, in_progress):
    class AppHandler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            in_progress.inc()
            try:
                requests_total.with_labels(method="GET", path=self.path).inc()
                body = b"Hello, Kubernetes!\n"
                self.send_response(200)
                self.send_header("Content-Type", "text/plain")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)
            finally:
                in_progress.dec()

        def log_message(self, format, *args):
            pass

    return AppHandler


def main():
    # Create config (loads from .configs or env vars)
    cfg = Config()
    logger = get_logger(cfg)

    registry = Registry()
    requests_total = registry.register(
        MetricDescriptor("requests_total", MetricKind.COUNTER, "Total HTTP requests", ("method", "path"))
    )
    in_progress = registry.register(
        MetricDescriptor("in_progress_requests", MetricKind.GAUGE, "Requests currently being handled")
    )

    app = http.server.ThreadingHTTPServer(("127.0.0.1", 0), make_app_handler(requests_total, in_progress))
    threading.Thread(target=app.serve_forever, daemon=True).start()
    app_url = f"http://127.0.0.1:{app.server_address[1]}"
    logger.log("Application started", info={"url": app_url})

    for path in ("/", "/", "/orders"):
        urllib.request.urlopen(app_url + path).read()

    if cfg.PROMETHEUS_ENABLED:
        # ephemeral port so the example never clashes with a real exporter
        cfg.METRICS_PORT = 0
        with MetricsServer.from_config(registry, cfg) as metrics_server:
            print("=== Scrape of", metrics_server.url, "===")
            print(urllib.request.urlopen(metrics_server.url).read().decode("utf-8"))
    else:
        print(logger.metrics_to_prometheus(registry))

    print("=== JSON log-based metrics ===")
    logger.json_snapshot(registry, message="periodic export")

    app.shutdown()
    app.server_close()


if __name__ == "__main__":
    main()
