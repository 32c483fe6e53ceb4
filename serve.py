"""Run the program builder API locally.

Run with:  python3 serve.py
"""

from __future__ import annotations

import os

import uvicorn

from core.config import get_settings

API_PORT = int(os.getenv("PORT", "8000"))


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=API_PORT, reload=get_settings().is_dev)
