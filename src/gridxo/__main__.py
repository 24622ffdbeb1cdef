"""Entry point for running gridxo via ``python -m gridxo``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered tic-tac-toe web server."""

    host = os.environ.get("GRIDXO_HOST", "0.0.0.0")
    port = int(os.environ.get("GRIDXO_PORT", "8000"))
    log_level = os.environ.get("GRIDXO_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "gridxo.ui:app",
        host=host,
        port=port,
        reload=False,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
