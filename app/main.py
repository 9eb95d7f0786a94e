# app/main.py
import time
import uuid

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool

from app.data import models  # noqa: F401  registers every model on Base.metadata
from app.api.deps import integrity_error
from app.api.routers import (
    auth,
    carts,
    categories,
    deliveries,
    health,
    orders,
    payments,
    products,
    reviews,
    users,
    variants,
)
from app.data.database import Base, engine
from app.services.rate_limiter import RateLimiter
from app.utils import settings
from app.utils.logging import add_context, clear_context, configure_logging, get_logger

logger = get_logger(__name__)


def init_db() -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    logger.info("Database tables ready")


def create_app() -> FastAPI:
    configure_logging()
    init_db()

    app = FastAPI(
        title="Storefront API",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Authorization", "X-Request-ID", "Retry-After"],
    )

    limiter = RateLimiter(settings.RATE_LIMIT_PER_MINUTE) if settings.RATE_LIMIT_ENABLED else None

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        if limiter is not None and not await run_in_threadpool(limiter.hit, client_ip):
            logger.warning(f"Rate limit exceeded for {client_ip}")
            return JSONResponse(
                status_code=429,
                content={
                    "statusCode": 429,
                    "error": "Too Many Requests",
                    "message": "Too many requests, please try again later.",
                },
                headers={"Retry-After": str(limiter.retry_after())},
            )
        return await call_next(request)

    # registered last so it wraps the rate limiter and sees every request
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        clear_context()
        add_context(request_id=request_id, method=request.method, path=request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {duration_ms}ms")
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.info(f"Validation failed for {request.method} {request.url.path}")
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_failure(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        http_exc = integrity_error(exc)
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    # Include routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(variants.router)
    app.include_router(reviews.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(deliveries.router)
    app.include_router(payments.router)

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
