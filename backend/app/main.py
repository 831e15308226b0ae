"""
FastAPI Main Application

Hypervisor vault API over an in-memory Uniswap V3 style pool.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime

from hypervisor.errors import (
    ExternalCallError,
    HypervisorError,
    ReentrancyError,
    UnauthorizedError,
)

from app.config import settings
from app.api.schemas import ErrorResponse
from app.api.v1 import health, vault
from app.core.registry import registry

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(vault.router, prefix="/api/v1", tags=["Vault"])
app.include_router(health.router, prefix="/api/v1", tags=["Health"])


def status_code_for(exc: HypervisorError) -> int:
    """Map vault errors to HTTP status codes"""
    if isinstance(exc, UnauthorizedError):
        return 403
    if isinstance(exc, ReentrancyError):
        return 409
    if isinstance(exc, ExternalCallError):
        return 502
    return 400


@app.exception_handler(HypervisorError)
async def hypervisor_error_handler(request: Request, exc: HypervisorError):
    status_code = status_code_for(exc)
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path,
                   status_code, type(exc).__name__, exc)
    body = ErrorResponse(message=type(exc).__name__, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": settings.API_TITLE,
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION,
        "docs": "/docs",
        "health": "/api/v1/health",
        "vault": "/api/v1/vault",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.on_event("startup")
async def startup_event():
    """Actions to perform on application startup"""
    print(f"🚀 Starting {settings.API_TITLE} v{settings.API_VERSION}")
    print(f"🏦 Vault: {registry.vault.address}")
    print(f"💧 Pool: {registry.pool.address} (fee {registry.pool.fee}, tick {registry.pool.tick})")
    print(f"👤 Owner: {registry.vault.owner}")


@app.on_event("shutdown")
async def shutdown_event():
    """Actions to perform on application shutdown"""
    print("👋 Shutting down Hypervisor Vault API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
