"""
SeedMix Main Application

Process entry point: loads `.env`, then serves the FastAPI backend with uvicorn.
"""

import os

import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def main() -> None:
    """Run the API server."""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "seedmix.api.backend:app",
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
        reload=False
    )


if __name__ == "__main__":
    main()
