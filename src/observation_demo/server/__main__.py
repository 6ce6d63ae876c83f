"""
observation_demo.server.__main__

Entrypoint for running the demo server via `python -m observation_demo.server`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from observation_demo.server.app import create_app
from observation_demo.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Run the client (`python -m observation_demo.client`) against it. Each process records
# its own traces; trace context is not propagated over HTTP.
