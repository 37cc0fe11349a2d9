"""FastAPI application exposing the transactions dashboard endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from backend.factory import BackendServices, build_backend_services
from backend.services.query import build_filters, build_pagination, parse_month
from shared.config import AppSettings, load_settings
from shared.models import ServiceError, ServiceErrorCode


logger = logging.getLogger(__name__)


router = APIRouter(tags=["transactions"])


def _services(request: Request) -> BackendServices:
    return request.app.state.services


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _json(payload: object) -> JSONResponse:
    return JSONResponse(status_code=200, content=jsonable_encoder(payload))


def _month_missing(month: str | None, purpose: str) -> JSONResponse | None:
    """Return the 400 response for a missing month, checked before any store access."""

    if month:
        return None
    logger.info("month_missing purpose=%s", purpose)
    return _message(400, f"Month is required for {purpose}")


@router.get("/seed")
def seed_database(request: Request) -> Response:
    """Replace stored transactions with the remote feed."""

    result = _services(request).seeder.seed()
    if isinstance(result, ServiceError):
        return PlainTextResponse(result.message, status_code=500)
    return PlainTextResponse("Database seeded successfully", status_code=200)


@router.get("/transactions")
def list_transactions(
    request: Request,
    search: str = "",
    page: str | None = None,
    per_page: str | None = Query(default=None, alias="perPage"),
    month: str | None = None,
) -> Response:
    """Return one page of transactions matching search and month plus the total count."""

    result = _services(request).transaction_service.list_transactions(
        build_filters(search=search, month=month),
        build_pagination(page=page, per_page=per_page),
    )
    if isinstance(result, ServiceError):
        return PlainTextResponse(result.message, status_code=500)
    return _json(result)


@router.get("/transactions/stats")
def transaction_statistics(request: Request, month: str | None = None) -> Response:
    missing = _month_missing(month, "statistics")
    if missing is not None:
        return missing

    result = _services(request).transaction_service.statistics(parse_month(month))
    if isinstance(result, ServiceError):
        if result.code == ServiceErrorCode.NO_DATA:
            return _message(404, result.message)
        return PlainTextResponse(result.message, status_code=500)
    return _json(result)


@router.get("/transactions/bar-chart")
async def transaction_bar_chart(request: Request, month: str | None = None) -> Response:
    missing = _month_missing(month, "chart data")
    if missing is not None:
        return missing

    try:
        bands = await _services(request).transaction_service.price_histogram(parse_month(month))
    except Exception:
        logger.exception("bar_chart_failed month=%s", month)
        return _message(500, "Internal server error")
    return _json(bands)


@router.get("/transactions/pie-chart")
async def transaction_pie_chart(request: Request, month: str | None = None) -> Response:
    missing = _month_missing(month, "pie chart data")
    if missing is not None:
        return missing

    result = await _services(request).transaction_service.sold_split(parse_month(month))
    if isinstance(result, ServiceError):
        return PlainTextResponse(result.message, status_code=500)
    return _json(result)


@router.get("/transactions/combined-data")
async def transaction_combined_data(request: Request, month: str | None = None) -> Response:
    missing = _month_missing(month, "the combined response")
    if missing is not None:
        return missing

    result = await _services(request).transaction_service.combined_data(parse_month(month))
    if isinstance(result, ServiceError):
        return _message(500, result.message)
    return _json(result)


@router.get("/transactions/{transaction_id}")
def get_transaction(request: Request, transaction_id: str) -> Response:
    result = _services(request).transaction_service.get_transaction(transaction_id)
    if isinstance(result, ServiceError):
        if result.code == ServiceErrorCode.NOT_FOUND:
            return _message(404, result.message)
        return PlainTextResponse(result.message, status_code=500)
    return _json(result)


def create_app(
    settings: AppSettings | None = None,
    services: BackendServices | None = None,
) -> FastAPI:
    """Build the application from settings resolved once at startup."""

    settings = settings or load_settings()
    app = FastAPI(title="Transactions Dashboard API")
    app.state.settings = settings
    app.state.services = services if services is not None else build_backend_services(settings)

    @app.middleware("http")
    async def log_http_requests(request: Request, call_next):
        """Log incoming requests, HTTP status codes and unexpected errors."""

        logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http_request_failed method=%s path=%s",
                request.method,
                request.url.path,
            )
            raise

        logger.info(
            "http_response_sent method=%s path=%s status_code=%s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("cors_allow_origins=%s", settings.cors_allow_origins)

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        """Return a JSON 500 response for unhandled exceptions."""

        logger.exception(
            "unhandled_exception method=%s path=%s exception_type=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    @app.get("/health")
    def health() -> dict[str, str]:
        """Healthcheck endpoint."""

        return {"status": "ok"}

    app.include_router(router, prefix=settings.api_prefix)
    return app
