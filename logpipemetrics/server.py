"""HTTP exposition of the metrics registry in Prometheus text format."""

import logging
import sys
import threading
from typing import Optional, TextIO
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

METRICS_ADDRESS = "0.0.0.0"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_METRICS_PORT = 9000


class _LoggingHandler(WSGIRequestHandler):
    """Routes per-request access logs to the logging module instead of stderr."""

    def log_message(self, format, *args):
        logging.getLogger("ExpositionServer").debug(format % args)


class ExpositionServer:
    """Serves a registry on a single path, answering 404 everywhere else."""

    def __init__(
        self,
        registry: CollectorRegistry,
        path: str = DEFAULT_METRICS_PATH,
        port: int = DEFAULT_METRICS_PORT,
        address: str = METRICS_ADDRESS,
    ):
        self.registry = registry
        self.path = path
        self.port = port
        self.address = address
        self.metrics_app = make_wsgi_app(registry)
        self.httpd = None
        self.thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def metrics_uri(self) -> str:
        return f"http://{self.address}:{self.port}{self.path}"

    @property
    def started(self) -> bool:
        return self.httpd is not None

    def app(self, environ, start_response):
        if environ.get("PATH_INFO") != self.path:
            start_response("404 Not Found", [("Content-Type", "text/plain")])
            return [b"Not Found\n"]
        return self.metrics_app(environ, start_response)

    def start(self, stderr: Optional[TextIO] = None) -> None:
        """Bind the listening socket and serve from a daemon thread.

        Args:
            stderr: Stream the listening URI is announced on, sys.stderr by default
        """
        if self.started:
            self.stop()

        self.httpd = make_server(
            self.address,
            self.port,
            self.app,
            server_class=ThreadingWSGIServer,
            handler_class=_LoggingHandler,
        )
        # Port 0 binds an ephemeral port; report the real one.
        self.port = self.httpd.server_port

        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self.thread.start()

        stream = stderr or sys.stderr
        stream.write(f"Listening on {self.metrics_uri}\n")
        self.logger.info(f"Serving metrics on {self.metrics_uri}")

    def stop(self) -> None:
        """Shut the server down and release its socket."""
        if not self.started:
            return
        self.httpd.shutdown()
        self.httpd.server_close()
        if self.thread is not None:
            self.thread.join(timeout=1.0)
        self.httpd = None
        self.thread = None
        self.logger.info("Metrics server stopped")
