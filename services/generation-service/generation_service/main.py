import uuid

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from .dependencies import build_tracker
from .logging_config import configure_logging
from .routers import training_programs

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="Generation Service")

app.state.read_after_write_tracker = build_tracker()

app.add_middleware(
    CorrelationIdMiddleware,
    header_name="X-Request-ID",
    generator=lambda: str(uuid.uuid4()),
    update_request_header=True,
)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.include_router(training_programs.router, prefix="/training-programs", tags=["Training Programs"])


@app.get("/")
def read_root():
    return {"message": "Generation service is running"}
