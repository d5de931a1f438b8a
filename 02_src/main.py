"""Main entry point for the Beat Market API."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from beatmarket.api import create_fastapi_app
from beatmarket.config import DEFAULT_LOG_PATH
from beatmarket.logging_config import setup_logging


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    os.environ.setdefault("PUBLIC_BASE_URL", f"http://{api_host}:{api_port}")

    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE", str(DEFAULT_LOG_PATH)),
    )

    # Create FastAPI app
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
