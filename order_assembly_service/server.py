"""FastAPI entry point for the Order Assembly Service."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from . import SERVICE_NAME, __version__
from .logger import logger
from .pipeline import AssemblyPipeline, build_pipeline
from .schemas import utc_timestamp
from .settings import Settings

settings = Settings.from_env()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline on startup and release its clients on shutdown.

    Args:
        app: The FastAPI application instance
    """
    app.state.pipeline = build_pipeline(settings)
    logger.info(f"{settings.service_name} {__version__} ready")
    yield
    await app.state.pipeline.aclose()
    logger.info(f"{settings.service_name} stopped")


app = FastAPI(title="Order Assembly Service", version=__version__, lifespan=lifespan)


def get_pipeline(request: Request) -> AssemblyPipeline:
    """Pipeline built by the lifespan handler."""
    return request.app.state.pipeline


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


@app.get("/health")
async def health_check():
    """Liveness probe, no authentication required."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": utc_timestamp(),
        "version": __version__,
    }


@app.get("/health/ready")
def readiness_check(pipeline: AssemblyPipeline = Depends(get_pipeline)):
    """Check if the queue behind the service is reachable.

    Returns:
        dict: Service readiness status and Kafka connection status.
    """
    kafka_ok = pipeline.publisher.is_ready()
    return {"status": "ready" if kafka_ok else "not_ready", "kafka": kafka_ok}


@app.post("/orders/assemble")
async def assemble_order(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    pipeline: AssemblyPipeline = Depends(get_pipeline),
):
    """Authenticate, validate, enrich and publish an order.

    The body is read raw so that authentication is decided before the payload
    is parsed.

    Returns:
        JSONResponse: Success body with the assembly id, or ``{error, details}``.
    """
    body = await request.body()
    result = await pipeline.run(x_api_key, body)
    return JSONResponse(status_code=result.http_status, content=result.to_response())
