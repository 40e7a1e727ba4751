# src/clinic_workflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (stores, allocator, controller), then
serves the HTTP API with uvicorn until interrupted.
"""

from __future__ import annotations

import logging

import uvicorn

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..logging_setup import setup_logging
from ..web.app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)
    if settings.debug:
        logging.getLogger("clinic_workflow").setLevel(logging.DEBUG)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    app = create_app(state)

    try:
        # log_config=None: uvicorn logs go through the handlers configured above.
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        state.task_store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
