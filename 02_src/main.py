"""Main entry point for the Teams log relay service."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from teams_sink.api import create_fastapi_app
from teams_sink.logging_config import setup_logging


def main():
    """Run the relay service."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    # Fails here on a missing or invalid TEAMS_WEBHOOK_URL
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
