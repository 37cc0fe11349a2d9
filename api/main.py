"""Process entrypoint: resolve settings once and serve the API."""

from __future__ import annotations

import logging

import uvicorn

from api.app import create_app
from shared.config import load_settings


logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = create_app(settings)
    logger.info("server_starting host=%s port=%s prefix=%s", settings.host, settings.port, settings.api_prefix)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
