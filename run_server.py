"""Entry point for running the FastAPI application with Uvicorn."""
from __future__ import annotations

import os

import uvicorn


def main() -> None:
  port = int(os.getenv("SERVER_PORT", "8000"))
  reload = os.getenv("UVICORN_RELOAD", "true").lower() == "true"
  log_level = os.getenv("LOG_LEVEL", "info").lower()
  uvicorn.run("feature_toggle.main:app", host="0.0.0.0", port=port, reload=reload, log_level=log_level)


if __name__ == "__main__":
  main()
