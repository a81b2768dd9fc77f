"""Entry point: serve the JSON REST store with uvicorn."""

import uvicorn

from menu_store.core.config import get_settings, setup_logging
from menu_store.server.app import create_app


def main() -> None:
    settings = get_settings()
    setup_logging()
    uvicorn.run(
        create_app(),
        host=settings.server_host,
        port=settings.server_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
