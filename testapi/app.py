"""
Test API - FastAPI Application

A tiny live service for exercising client behaviour against a real socket.

Usage:
    uvicorn testapi.app:app --port 7010

    # Or run directly
    python -m testapi.app
"""

import asyncio
import logging
import os

from fastapi import APIRouter, FastAPI
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

# Delay for the slow endpoint, in seconds
SLOW_DELAY = 2.0

router = APIRouter(prefix="/Test", tags=["test"])


@router.get("/name", response_class=PlainTextResponse)
async def get_name() -> str:
    """Return a fixed name immediately."""
    return "bob"


@router.get("/name_timesout", response_class=PlainTextResponse)
async def get_name_slowly() -> str:
    """Return a fixed name after ``SLOW_DELAY`` seconds."""
    await asyncio.sleep(SLOW_DELAY)
    return "bob"


def create_app() -> FastAPI:
    """Create and configure the test application."""
    app = FastAPI(title="MondoCore Test API", version="0.1.0")
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    uvicorn.run(
        "testapi.app:app",
        host=os.getenv("TESTAPI_HOST", "127.0.0.1"),
        port=int(os.getenv("TESTAPI_PORT", "7010")),
    )
