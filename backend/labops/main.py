import logging
import time

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .auth import get_current_user
from .config import Settings, load_settings
from .database import make_engine, make_session_factory
from .routes import (
    auth,
    users,
    equipment,
    calibration_frequency,
    air_pump_calibrations,
    flowmeter_calibrations,
    graticule_calibrations,
    filter_holder_calibrations,
    acetone_vaporiser_calibrations,
    ri_liquid_calibrations,
    incidents,
    controlled_documents,
    iaq,
    projects,
    lead_clearances,
    air_monitoring_samples,
    audit,
)

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

PUBLIC_PATHS = {
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
    "/metrics",
}


def _depends_on(dependant, target) -> bool:
    for dep in dependant.dependencies:
        if dep.call is target or _depends_on(dep, target):
            return True
    return False


def audit_routes(app: FastAPI):
    """Refuse to start if an /api route can be reached without a bearer token."""

    for route in app.routes:
        if isinstance(route, APIRoute) and route.path.startswith("/api") and route.path not in PUBLIC_PATHS:
            if not _depends_on(route.dependant, get_current_user):
                raise RuntimeError(f"Route {route.path} missing authentication")


async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, integrations=[FastApiIntegration()])

    app = FastAPI(title="LabOps API")
    engine = make_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    auth.limiter.enabled = settings.rate_limit_enabled and not settings.testing
    app.state.limiter = auth.limiter
    app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
    if auth.limiter.enabled:
        app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RequestValidationError, validation_error)
    app.add_exception_handler(Exception, unexpected_error)

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        endpoint = request.url.path
        REQUEST_COUNT.labels(request.method, endpoint).inc()
        REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
        return response

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(equipment.router)
    app.include_router(calibration_frequency.router)
    app.include_router(air_pump_calibrations.router)
    app.include_router(flowmeter_calibrations.router)
    app.include_router(graticule_calibrations.router)
    app.include_router(filter_holder_calibrations.router)
    app.include_router(acetone_vaporiser_calibrations.router)
    app.include_router(ri_liquid_calibrations.router)
    app.include_router(incidents.router)
    app.include_router(controlled_documents.router)
    app.include_router(iaq.records_router)
    app.include_router(iaq.samples_router)
    app.include_router(projects.router)
    app.include_router(lead_clearances.router)
    app.include_router(air_monitoring_samples.router)
    app.include_router(audit.router)

    audit_routes(app)
    logger.info("LabOps API configured against %s", engine.url.render_as_string(hide_password=True))
    return app


app = create_app()
