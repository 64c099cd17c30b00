"""
Sales dashboard API.

Serves the paginated, filterable sales listing and the filter-panel options
over whichever DataAccess backend DATA_SOURCE selects.

Run:
  python -m salesdash.app
"""
from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salesdash.config import get_config
from salesdash.data.engine import SalesQueryEngine
from salesdash.data.fields import check_field_table
from salesdash.data.interface import DataAccess
from salesdash.data.models import FilterOptions, SalesListResponse, SalesQueryParams
from salesdash.data.util import get_data_access
from salesdash.errors import QueryValidationError, SalesDashboardError, StoreError
from salesdash.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_engine(request: Request) -> SalesQueryEngine:
    return request.app.state.engine


# ---------- routes ----------

@router.get("/", tags=["Root"])
def root(request: Request):
    """API root endpoint"""
    return {
        "message": "API is running...",
        "dataSource": request.app.state.data_access.name,
        "timestamp": _now(),
    }


@router.get("/api/health", tags=["Health"])
def health(request: Request):
    """Report the data source and how many records it holds."""
    try:
        info = request.app.state.data_access.describe()
    except SalesDashboardError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "unhealthy", "error": str(e)},
        )
    return {
        "status": "healthy",
        "dataSource": info["data_source"],
        "recordCount": info["record_count"],
        "timestamp": _now(),
    }


@router.get(
    "/api/sales",
    response_model=SalesListResponse,
    response_model_by_alias=True,
    tags=["Sales"],
)
def list_sales(
    search: Optional[str] = Query(None, description="Comma-separated search terms"),
    region: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    min_age: Optional[str] = Query(None, alias="minAge"),
    max_age: Optional[str] = Query(None, alias="maxAge"),
    category: Optional[str] = Query(None),
    tags: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query("asc", alias="sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    engine: SalesQueryEngine = Depends(get_engine),
):
    """One page of sales records with stats over the whole filtered set."""
    params = SalesQueryParams(
        search=search,
        region=region,
        gender=gender,
        min_age=min_age,
        max_age=max_age,
        category=category,
        tags=tags,
        payment_method=payment_method,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return engine.query_sales(params)


@router.get(
    "/api/sales/filters",
    response_model=FilterOptions,
    response_model_by_alias=True,
    tags=["Sales"],
)
def filter_options(engine: SalesQueryEngine = Depends(get_engine)):
    return engine.filter_options()


# ---------- error handling ----------

def _server_error_body(exc: Exception) -> dict:
    body = {"message": "Internal Server Error"}
    if not get_config().is_production:
        body["error"] = str(exc)
    return body


async def validation_error_handler(request: Request, exc: QueryValidationError):
    logger.warning(f"Rejected {request.url.path}: {exc.error_code} - {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "error": exc.error_code},
    )


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_server_error_body(exc),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_server_error_body(exc),
    )


# ---------- app factory ----------

def _install_data_access(app: FastAPI, data_access: DataAccess) -> None:
    app.state.data_access = data_access
    app.state.engine = SalesQueryEngine(data_access)


def create_app(data_access: Optional[DataAccess] = None) -> FastAPI:
    """Build the API; without `data_access` the configured backend is opened at startup."""
    config = get_config()
    check_field_table()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if not hasattr(app.state, "engine"):
            owned = get_data_access(config.data_source)
            _install_data_access(app, owned)
        logger.info(f"Serving sales from the {app.state.data_access.name} data source")
        yield
        close = getattr(owned, "close", None)
        if close is not None:
            close()

    app = FastAPI(
        title="Sales Dashboard API",
        description="Paginated, filterable retail sales listing",
        version="0.1.0",
        lifespan=lifespan,
    )
    if data_access is not None:
        _install_data_access(app, data_access)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its status and duration; tag it with X-Request-ID."""
        request_id = str(uuid.uuid4())
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed_ms:.1f} ms [{request_id}]"
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(QueryValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    return app


def main() -> None:
    config = get_config()
    uvicorn.run("salesdash.app:create_app", factory=True, host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    main()
