"""Main entry point for the Order Assembly Service."""

import uvicorn

from order_assembly_service.server import app, settings


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
