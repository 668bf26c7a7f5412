# main.py
import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import models  # noqa: F401  registers tables on Base.metadata
from api import auth, cart, chat, contact, orders, products, upload
from config import configure_logging, settings
from database import connect_with_retry, create_tables, database
from errors import StoreError
from ratelimit import RateLimitMiddleware

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Storefront backend: catalog, cart, orders, admin auth, chat and contact intake",
    version=settings.version,
)

app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.rate_limit_max_requests,
    window_ms=settings.rate_limit_window_ms,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; font-src 'self' https://fonts.googleapis.com https://fonts.gstatic.com; "
        "connect-src 'self' https:"
    ),
}


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


for module in (auth, products, cart, orders, chat, contact, upload):
    app.include_router(module.router)

# Serve uploaded files
app.mount("/uploads", StaticFiles(directory=upload.upload_dir()), name="uploads")


# Startup event
@app.on_event("startup")
async def startup():
    # fatal after the last attempt: uvicorn aborts startup and exits
    await connect_with_retry(database)
    create_tables()
    logger.info("=====================================")
    logger.info(f"✅ {settings.app_name} running ({settings.environment})")
    logger.info("=====================================")


# Shutdown event
@app.on_event("shutdown")
async def shutdown():
    await database.disconnect()
    logger.info("👋 Database disconnected, server closed")


# ========== ERROR HANDLERS ==========
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    content = {"success": False, "error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation errors on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Endpoint not found", "path": request.url.path},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc) or "Server error", "timestamp": datetime.utcnow().isoformat()},
    )


# ========== ROOT ENDPOINTS ==========
@app.get("/")
async def read_root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.version,
        "endpoints": {
            "docs": "/docs",
            "health": "/api/health",
            "auth": "/api/auth/admin-login",
            "products": "/api/products",
            "cart": "/api/cart/{userId}",
            "orders": "/api/orders",
            "chat": "/api/chat/send",
            "contact": "/api/contact",
            "upload": "/api/upload",
        },
    }


@app.get("/api/health")
async def health_check():
    db_status = "connected"
    try:
        await database.execute("SELECT 1")
    except Exception as e:
        logger.error(f"❌ Health check query failed: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


if __name__ == "__main__":
    import uvicorn

    # uvicorn stops accepting connections on SIGTERM and drains in-flight requests
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
