import logging
import time
from datetime import datetime, timezone
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import health_router, orders_router
from config import settings
from errors import OrderError
from schemas import WelcomeResponse
from services.order_validation import format_error

logger = logging.getLogger("flavorverse")

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}

app = FastAPI(title="FlavorVerse Backend API", version=settings.api_version)

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

app.include_router(health_router)
app.include_router(orders_router)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.exception_handler(OrderError)
async def _order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "details": [format_error(err) for err in exc.errors()],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    content = {
        "error": exc.detail,
        "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        "timestamp": _timestamp(),
    }
    if exc.status_code == 404 and exc.detail == "Not Found":
        content["error"] = "Route not found"
        content["path"] = request.url.path
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
    )


def _cors_headers(request: Request) -> Dict[str, str]:
    # Unhandled errors are rendered outside CORSMiddleware, so the headers are added here.
    origin = request.headers.get("origin")
    if not origin:
        return {}
    if allow_origins != ["*"] and origin not in allow_origins:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "timestamp": _timestamp(),
        },
        headers=_cors_headers(request),
    )


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        "FlavorVerse backend started env=%s version=%s origins=%s",
        settings.environment,
        settings.api_version,
        ",".join(allow_origins),
    )
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values for local dev."
        )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "")
        logger.info("CORS preflight %s %s origin=%s", request.method, request.url.path, origin)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s %s %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.get("/", response_model=WelcomeResponse)
async def welcome() -> WelcomeResponse:
    return WelcomeResponse(
        message="FlavorVerse Backend API",
        version=settings.api_version,
        status="running",
        timestamp=datetime.now(timezone.utc),
        endpoints={
            "health": "/api/health",
            "orders": "/api/orders",
        },
    )


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
