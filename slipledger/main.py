"""Run the Slip Ledger API under uvicorn."""

import uvicorn

from slipledger.utils.config import load_config
from slipledger.utils.logger import setup_logging


def main() -> None:
    """Load configuration, set up logging, and serve the API."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(
        "slipledger.api.app:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
