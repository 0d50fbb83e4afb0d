"""Orders service API built with FastAPI.

This module exposes endpoints to list, create and delete orders and a
health probe. Validation is performed with Pydantic models, derivation
of order totals by ``domain.OrderService`` and persistence by the
SQLAlchemy-backed ``repository.OrderRepository``.

The database engine is created once in the application lifespan (or
injected through ``create_app(engine=...)``) and disposed at shutdown.
"""

import os
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from .config import Settings
from .domain import OrderService
from .errors import NotFoundError, StorageError, ValidationError
from .logs import REQUEST_ID_CTX, get_logger
from .repository import OrderRepository, build_engine, init_db
from .schemas import CreateOrderDTO, OrderCreatedDTO, OrderReadDTO

logger = get_logger()

router = APIRouter(prefix="/api")


def get_order_service(request: Request) -> OrderService:
    """Return the ``OrderService`` wired at startup."""
    return request.app.state.order_service


@router.get("/health")
def health():
    """Liveness/health probe endpoint.

    Returns:
        dict: A small JSON payload indicating service health.
    """
    return {"status": "healthy"}


@router.get("/orders", response_model=list[OrderReadDTO])
def list_orders(service: OrderService = Depends(get_order_service)):
    """List every order, newest first. No pagination."""
    return [OrderReadDTO.from_domain(o) for o in service.list_orders()]


@router.post("/orders", response_model=OrderCreatedDTO, status_code=201)
def create_order(req: CreateOrderDTO, service: OrderService = Depends(get_order_service)):
    """Create an order with its items.

    Totals are derived server side from the submitted items; order and
    items are written in a single transaction.

    Args:
        req: Validated body with ``customer_id`` and a non-empty ``items`` list.

    Returns:
        OrderCreatedDTO: The persisted order, with HTTP 201.

    Raises:
        StorageError: Mapped to HTTP 500 by the registered handler.
    """
    order = service.place_order(req.customer_id, [it.to_domain() for it in req.items])
    return OrderCreatedDTO.from_domain(order)


@router.delete("/orders/{order_id}")
def delete_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """Delete an order and its items.

    Raises:
        NotFoundError: Mapped to HTTP 404 when the order does not exist.
    """
    service.delete_order(order_id)
    return {"message": "Order deleted successfully"}


def _validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": ValidationError.code, "errors": jsonable_encoder(exc.errors())},
    )


def _domain_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.code, "error": exc.message})


def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.code, "error": exc.message})


def _storage_handler(request: Request, exc: StorageError):
    # driver text stays in the logs, clients only get the generic message
    logger.error(exc.message, exc_info=exc, extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"detail": exc.code, "error": exc.message})


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings. Read from the environment at startup
            when omitted and no engine is injected.
        engine: Pre-built engine to use instead of creating one. An
            injected engine is left open at shutdown; its owner disposes it.

    Returns:
        FastAPI: The configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings
        if cfg is None and engine is None:
            cfg = Settings.from_env()
        if cfg is not None:
            logger.setLevel(cfg.log_level.upper())

        eng = engine if engine is not None else build_engine(cfg)
        # fatal when the database is unreachable
        init_db(eng)
        logger.info("Successfully connected to database")

        app.state.order_service = OrderService(OrderRepository(eng))
        try:
            yield
        finally:
            if engine is None:
                eng.dispose()

    app = FastAPI(title="Orders Service", lifespan=lifespan)
    app.include_router(router)

    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(ValidationError, _domain_validation_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(StorageError, _storage_handler)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = REQUEST_ID_CTX.set(rid)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            logger.info(
                "request handled",
                extra={"path": request.url.path, "method": request.method, "status_code": status_code},
            )
            REQUEST_ID_CTX.reset(token)
        response.headers["X-Request-ID"] = rid
        return response

    return app


app = create_app()


def run():
    """Serve ``app`` with uvicorn on ``PORT`` (default 5001)."""
    settings = Settings.from_env()
    workers = int(os.getenv("UVICORN_WORKERS", "1"))
    logger.info(f"Server starting on port {settings.port}...")
    uvicorn.run(
        "orders.main:app",
        host="0.0.0.0",
        port=settings.port,
        workers=workers,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
