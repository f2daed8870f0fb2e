# eduask/server.py
from __future__ import annotations

import logging
import threading
import webbrowser

import uvicorn

from .config import settings
from .logger import setup_logging

logger = logging.getLogger(__name__)


def _open_browser(url: str) -> None:
    if webbrowser.open(url):
        logger.info("Browser opened automatically")
    else:
        logger.info("Please open %s manually", url)


def main() -> None:
    """Запуск: `eduask` или `uvicorn eduask.main:app --port 3000`."""
    setup_logging()
    url = f"http://localhost:{settings.port}"
    logger.info("Server running at %s", url)

    if settings.open_browser:
        # небольшая задержка, чтобы uvicorn успел занять порт
        timer = threading.Timer(1.0, _open_browser, args=(url,))
        timer.daemon = True
        timer.start()

    uvicorn.run("eduask.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
