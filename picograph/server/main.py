"""
picoGraph editing service: FastAPI + Socket.IO.

Start with:
    python -m picograph.server.main

Or via uvicorn directly:
    uvicorn picograph.server.main:socket_app --port 3001 --reload

Configuration is read from the environment (a ``.env`` file in the working
directory is loaded first):

    PICOGRAPH_HOST    bind address       (default 0.0.0.0)
    PICOGRAPH_PORT    port               (default 3001)
    PICOGRAPH_RELOAD  auto-reload 1/0    (default 1)
"""
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from picograph import __version__
from picograph.server.events.socket_server import create_socket_app
from picograph.server.routes.graph_routes import router

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="picoGraph API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Wrap with Socket.IO ASGI layer
# ---------------------------------------------------------------------------

# socket_app is the top-level ASGI app passed to uvicorn.
# Socket.IO connections are handled at the root; all other requests are
# forwarded to the inner FastAPI app.
socket_app = create_socket_app(app)

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "picograph.server.main:socket_app",
        host=os.environ.get("PICOGRAPH_HOST", "0.0.0.0"),
        port=int(os.environ.get("PICOGRAPH_PORT", "3001")),
        reload=os.environ.get("PICOGRAPH_RELOAD", "1") not in ("0", "false", "False"),
    )
