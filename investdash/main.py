"""Main entry point for the investment dashboard API."""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from .config import Config
from .services.investment_client import InvestmentServiceClient
from .services.portfolio_service import PortfolioViewService
from .web_api import configure_api_dependencies, web_api

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point."""
    load_dotenv()

    # Load configuration
    config = Config.from_env()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.log_level, logging.INFO),
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    client = InvestmentServiceClient.from_config(config)
    configure_api_dependencies(PortfolioViewService(client))

    logger.info(
        "Starting API on %s:%d (data service: %s)",
        config.web_host, config.web_port, config.data_service_url,
    )
    uvicorn.run(web_api, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
