"""Run the API server with uvicorn."""
from __future__ import annotations

import logging

from uvicorn import run

from blogit.core.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run("blogit.main:app", host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
