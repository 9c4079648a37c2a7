#!/usr/bin/env python3
"""
perfdash - performance-test metrics dashboard

Serves a single-page dashboard that charts metrics fetched from a remote
Data Service for a selectable date range.
"""

import argparse
import logging

import uvicorn

# Support running as script or as package
try:
    from .core.config import load_config_from
    from .core.server import create_app
except ImportError:
    from core.config import load_config_from
    from core.server import create_app

logger = logging.getLogger("perfdash.server")


def main():
    """Main entry point for perfdash."""
    parser = argparse.ArgumentParser(description="perfdash dashboard")
    parser.add_argument("-c", "--config", help="Path to YAML config", default="config.yaml")
    parser.add_argument("--data-service-url", dest="data_service_url",
                        help="Data Service base URL (e.g., http://localhost:8080)")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="logging level")
    args = parser.parse_args()

    # Load config: YAML + environment first, then CLI overrides
    config = load_config_from(args.config)
    if args.data_service_url:
        config.data_service_url = args.data_service_url
    if args.log_level:
        config.log_level = args.log_level

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info(f"perfdash starting with config: host={config.host}, port={config.port}, "
                f"data_service={config.data_service_url}")

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, reload=False, access_log=False)


if __name__ == "__main__":
    main()
