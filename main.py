"""Entry point for running the FastAPI application."""

import logging
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # Can be overridden: PORT=8000 python main.py
    port = int(os.getenv("PORT", "8080"))

    uvicorn.run(
        "tutorly.api.main:app",
        host="0.0.0.0",
        port=port,
        timeout_keep_alive=10,
    )
