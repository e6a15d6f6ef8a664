"""Entry point for the log pipe metrics exporter."""

import logging
import sys
import time

from logpipemetrics.config import ConfigurationError, MetricsConfig
from logpipemetrics.session import MetricsModule, setup_module
from logpipemetrics.utils import FifoError

LOGGER_NAME = "LogPipeMetrics"


class ConfigManager:
    """Manages application configuration and module creation."""

    def __init__(self):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.config = MetricsConfig.from_env()

    def setup_logging(self) -> None:
        """Configure application logging with a console handler."""
        numeric_level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )

    def create_module(self) -> MetricsModule:
        """Create the pipe and start reading from it."""
        config = self.config
        return setup_module(
            config.pipe_path,
            sys.stdout,
            sys.stderr,
            labels=config.labels,
            geo_hash_precision=config.geo_hash_precision,
            max_hostnames=config.max_hostnames,
            metrics_path=config.metrics_path,
            metrics_port=config.metrics_port,
        )


def main() -> int:
    """Main entry point for the application."""
    try:
        config_manager = ConfigManager()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logging.getLogger(LOGGER_NAME).error(f"Configuration error: {e}")
        return 1

    config_manager.setup_logging()
    logger = logging.getLogger(LOGGER_NAME)

    try:
        logger.info(f"Creating log pipe at: {config_manager.config.pipe_path}")
        module = config_manager.create_module()
    except FifoError as e:
        logger.error(f"Failed to set up log pipe: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid label configuration: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")
        return 1

    module.session.show_labels(lambda fmt, *args: logger.info(fmt, *args))

    try:
        while module.alive:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        module.stop()
        logger.info("Shutdown complete.")
        return 0

    # The reader only exits on its own after a fatal pipe error.
    logger.error(f"Log reader stopped: {module.monitor.error}")
    module.stop()
    return 1


if __name__ == "__main__":
    sys.exit(main())
