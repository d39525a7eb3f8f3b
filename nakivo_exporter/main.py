"""Main application entry point for the NAKIVO Prometheus exporter."""

import argparse
import logging
import os
import signal
import socket
import sys
from typing import Any, Dict, List, Optional
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, Info, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

from .collectors.base import BaseCollector
from .collectors.group_collector import JobGroupCollector
from .collectors.job_collector import JobCollector
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .services.nakivo_client import NakivoClient, NakivoError
from .utils.logger import setup_logger
from .version import __version__


LANDING_PAGE = """<html>
<head><title>Nakivo Exporter</title></head>
<body>
<h1>Nakivo Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class _SilentHandler(WSGIRequestHandler):
    """WSGI handler that does not write an access log line per scrape."""

    def log_message(self, format, *args):
        pass


def create_wsgi_app(registry: CollectorRegistry, telemetry_path: str):
    """
    Build the exporter WSGI application.

    Args:
        registry: Registry rendered on the telemetry path
        telemetry_path: Path under which metrics are exposed

    Returns:
        WSGI callable serving metrics, a landing page on / and 404 elsewhere
    """
    metrics_app = make_wsgi_app(registry)
    landing_page = LANDING_PAGE.format(path=telemetry_path).encode("utf-8")

    def app(environ, start_response):
        path = environ.get("PATH_INFO") or "/"
        if path == telemetry_path:
            return metrics_app(environ, start_response)
        if path == "/":
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [landing_page]
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app


def create_server(host: str, port: int, app):
    """
    Bind a threaded WSGI server for the given host.

    The address family follows the resolved host, so IPv6 listen
    addresses such as [::1]:9777 get an AF_INET6 socket.

    Raises:
        OSError: If the host cannot be resolved or the port cannot be bound
    """
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    family, _, _, _, sockaddr = next(iter(infos))

    class Server(ThreadingWSGIServer):
        address_family = family

    return make_server(sockaddr[0], port, app, Server, handler_class=_SilentHandler)


def build_collectors(
    config: ExporterConfig,
    client: NakivoClient,
    logger: logging.Logger
) -> List[BaseCollector]:
    """
    Construct the collectors enabled in the configuration.

    Args:
        config: Exporter configuration
        client: Authenticated NAKIVO client shared by all collectors
        logger: Parent logger

    Returns:
        List[BaseCollector]: Collectors to register
    """
    namespace = config.collectors.namespace
    collectors: List[BaseCollector] = []

    if config.collectors.job_id is not None:
        collectors.append(
            JobCollector(client, config.collectors.job_id, logger, namespace=namespace)
        )
    if config.collectors.job_group:
        collectors.append(JobGroupCollector(client, logger, namespace=namespace))

    return collectors


class ExporterApp:
    """
    Exporter process.

    Logs in to the appliance once, registers the collectors and serves the
    metrics endpoint until interrupted.
    """

    def __init__(self, config: ExporterConfig, logger: logging.Logger):
        """
        Initialize exporter application.

        Args:
            config: Validated exporter configuration
            logger: Application logger
        """
        self.config = config
        self.logger = logger
        self.registry = CollectorRegistry()
        self.client: Optional[NakivoClient] = None
        self.server = None

        # Setup signal handlers for graceful shutdown
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, shutting down")
        sys.exit(0)

    def setup(self):
        """
        Authenticate against the appliance and register collectors.

        Raises:
            NakivoError: If login fails
        """
        nakivo = self.config.nakivo
        self.client = NakivoClient(nakivo, self.logger)
        self.client.login(nakivo.user, nakivo.password)
        self.logger.info("Login to Nakivo succeeded")

        build_info = Info(
            "nakivo_exporter_build",
            "A metric with a constant '1' value labeled by the exporter version.",
            registry=self.registry
        )
        build_info.info({"version": __version__})

        for collector in build_collectors(self.config, self.client, self.logger):
            self.registry.register(collector)
            self.logger.info(f"Registered {collector.__class__.__name__}")

    def serve(self):
        """
        Serve metrics until the process is interrupted.

        Raises:
            OSError: If the listener cannot be bound
        """
        web = self.config.web
        app = create_wsgi_app(self.registry, web.telemetry_path)
        self.server = create_server(web.host, web.port, app)

        self.logger.info(
            f"Listening on {web.listen_address}",
            extra={"telemetry_path": web.telemetry_path}
        )
        self.server.serve_forever()

    def close(self):
        """Release the listener and the backend client."""
        if self.server is not None:
            self.server.server_close()
        if self.client is not None:
            self.client.close()

    def run(self) -> int:
        """
        Run the exporter.

        Returns:
            int: Process exit code
        """
        self.logger.info(f"Starting nakivo_exporter {__version__}")
        try:
            self.setup()
        except NakivoError as e:
            self.logger.error(f"Failed to log in to Nakivo: {e}")
            self.close()
            return 1

        try:
            self.serve()
        except OSError as e:
            self.logger.error(f"Error starting HTTP server: {e}")
            return 1
        finally:
            self.close()
        return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Prometheus exporter for NAKIVO Backup & Replication',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape job 9 on a local appliance
  nakivo-exporter --nakivo.password secret

  # Use a configuration file
  nakivo-exporter --config /etc/nakivo_exporter/config.yaml
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to YAML configuration file (optional)'
    )
    parser.add_argument(
        '--web.listen-address', dest='listen_address',
        help='Address to listen on for web interface and telemetry (default: :9777)'
    )
    parser.add_argument(
        '--web.telemetry-path', dest='telemetry_path',
        help='Path under which to expose metrics (default: /metrics)'
    )
    parser.add_argument(
        '--tls.insecure-skip-verify', dest='insecure_skip_verify',
        action=argparse.BooleanOptionalAction, default=None,
        help='Ignore certificate and server verification when using a tls connection'
    )
    parser.add_argument(
        '--nakivo.addr', dest='nakivo_address',
        help='HTTP API address of the nakivo endpoint'
    )
    parser.add_argument(
        '--nakivo.port', dest='nakivo_port', type=int,
        help='HTTP API port of the nakivo endpoint'
    )
    parser.add_argument(
        '--nakivo.user', dest='nakivo_user',
        help='The nakivo user'
    )
    parser.add_argument(
        '--nakivo.password', dest='nakivo_password',
        default=os.getenv('NAKIVO_PASSWORD'),
        help='The nakivo user password (default: NAKIVO_PASSWORD env var)'
    )
    parser.add_argument(
        '--nakivo.timeout', dest='nakivo_timeout', type=float,
        help='Timeout in seconds for trying to get stats from Nakivo'
    )
    parser.add_argument(
        '--nakivo.job-id', dest='job_id', type=int,
        help='Id of the job to export statistics for'
    )
    parser.add_argument(
        '--log.level', dest='log_level',
        default=os.getenv('LOG_LEVEL'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )
    parser.add_argument(
        '--log.format', dest='log_format',
        choices=['json', 'text'],
        help='Log output format (default: json)'
    )
    parser.add_argument(
        '--version', action='version',
        version=f'nakivo_exporter {__version__}'
    )

    return parser.parse_args(argv)


def config_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Map parsed flags onto configuration sections."""
    return {
        "web": {
            "listen_address": args.listen_address,
            "telemetry_path": args.telemetry_path,
        },
        "nakivo": {
            "address": args.nakivo_address,
            "port": args.nakivo_port,
            "user": args.nakivo_user,
            "password": args.nakivo_password,
            "timeout_seconds": args.nakivo_timeout,
            "insecure_skip_verify": args.insecure_skip_verify,
        },
        "collectors": {
            "job_id": args.job_id,
        },
        "logging": {
            "level": args.log_level,
            "format": args.log_format,
        },
    }


def main(argv: Optional[List[str]] = None):
    """
    CLI entry point.

    Parses command-line arguments and starts the exporter.
    """
    args = parse_args(argv)

    try:
        config = ConfigLoader.load(args.config, config_overrides(args))
    except Exception as e:
        logging.basicConfig()
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    logger = setup_logger(
        "nakivo_exporter",
        level=config.logging.level,
        fmt=config.logging.format
    )

    app = ExporterApp(config, logger)
    sys.exit(app.run())


if __name__ == '__main__':
    main()
