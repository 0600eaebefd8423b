#!/usr/bin/env python3
"""
ASGI entry point: ``uvicorn eventdesk.main:app``.
"""

from __future__ import annotations

import os

from .core.app import create_app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventdesk.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
    )
