"""
rolegate.api.__main__

`python -m rolegate.api` entrypoint.
"""

from __future__ import annotations

import uvicorn

from rolegate.api.app import create_app
from rolegate.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        # structlog owns the output; RequestContextMiddleware writes the access log.
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
