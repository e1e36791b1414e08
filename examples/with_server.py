#!/usr/bin/env python3
"""Callback round trip through a local FastAPI server.

GET /health fires a JSON callback at /callback on the same server, and
/callback logs what it received. Install the example extras first:

    pip install -e ".[examples]"
    python examples/with_server.py

Then, in another terminal:

    curl http://localhost:8888/health
"""

from __future__ import annotations

import time

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from webcallback import CallbackError, configure_logging, get_logger, post_callback

configure_logging(level="INFO", format="text")
logger = get_logger("examples.with_server")

app = FastAPI(title="webcallback demo")


@app.post("/callback")
async def receive_callback(request: Request) -> PlainTextResponse:
    payload = await request.body()
    logger.info("Got a callback", url=str(request.url), payload=payload.decode("utf-8"))
    return PlainTextResponse("received")


@app.get("/health")
async def health(request: Request) -> PlainTextResponse:
    try:
        await post_callback(
            "http://localhost:8888/callback",
            {"origin": request.headers.get("host", ""), "time": int(time.time())},
            timeout=10.0,
        )
    except (CallbackError, httpx.HTTPError) as e:
        return PlainTextResponse(str(e), status_code=400)
    return PlainTextResponse("OK")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8888)
