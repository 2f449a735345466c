"""Run the listings API with uvicorn: ``python -m listings``."""

from __future__ import annotations

import uvicorn

from listings.config import get_settings
from listings.logging_config import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "listings.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
