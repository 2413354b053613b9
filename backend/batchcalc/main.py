import logging
import os
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .errors import BatchCalcError, InternalError
from .logging_config import configure_logging
from .routes import batches, formulations, health, ingredients

configure_logging()
logger = logging.getLogger(__name__)

dsn = os.getenv("SENTRY_DSN")
if dsn:
    sentry_sdk.init(dsn=dsn, integrations=[FastApiIntegration()])

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

app = FastAPI(title="Batch Calculator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[os.getenv("RATE_LIMIT", "120/minute")],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
if os.getenv("TESTING") != "1":
    app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    endpoint = request.url.path
    REQUEST_COUNT.labels(request.method, endpoint).inc()
    REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
    return response


@app.exception_handler(BatchCalcError)
async def batchcalc_error_handler(request: Request, exc: BatchCalcError):
    # routes translate these themselves; this covers anything raised outside a route body
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(health.router)
app.include_router(ingredients.router)
app.include_router(formulations.router)
app.include_router(batches.router)
