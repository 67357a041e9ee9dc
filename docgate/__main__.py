"""Run the gateway: ``python -m docgate`` or the ``docgate`` console script."""

import uvicorn

from docgate.config import settings


def main() -> None:
    # lifespan="on": a failed MongoDB connection at startup stops the process
    # with a non-zero exit status instead of serving requests without a store
    uvicorn.run(
        "docgate.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
