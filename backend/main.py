"""Entry point for running the FastAPI application."""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    # Read port from environment variable, default to 3001 (matches the web client)
    # Can be overridden: PORT=8000 python main.py
    port = int(os.getenv("PORT", "3001"))

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
    )
