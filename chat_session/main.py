"""Main application entry point.

Serves the streaming chat API on port 8000, with the NiceGUI chat page
mounted at ``/`` unless ``RUN_MODE=api``. Environment variables are loaded
from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def mount_ui(app: FastAPI) -> None:
    """Mount the NiceGUI chat page onto the FastAPI app."""
    from nicegui import ui

    from chat_session.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    ui.run_with(
        app,
        title="Chat",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "chat-session-secret"),
    )
    logger.info("Chat UI available at /")


def main() -> None:
    """Application entry point.

    RUN_MODE=api serves only the HTTP API; the default also mounts the UI.
    """
    import uvicorn

    from chat_session.api.app import create_app

    mode = os.getenv("RUN_MODE", "integrated").lower()
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    app = create_app()
    if mode != "api":
        mount_ui(app)

    logger.info(f"Starting chat session server in {mode} mode on http://{host}:{port}")
    logger.info(f"API docs available at http://{host}:{port}/docs")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
