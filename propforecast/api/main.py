"""
FastAPI application for PropForecast.

Provides REST API endpoints for:
- Factor config validation
- Scenario projections
- Scenario comparison
"""

import os
import logging
import traceback
from typing import Dict, Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from propforecast import __version__
from propforecast.api.routes import factors, projections
from propforecast.api.schemas import ErrorResponse
from propforecast.utils.error_utils import ForecastError

logger = logging.getLogger("propforecast")


app = FastAPI(
    title="PropForecast API",
    description="Property Portfolio Scenario Projection API",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS configuration for the dashboard frontend
_default_origins = "http://localhost:3000,http://localhost:5173"
_cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ForecastError)
async def forecast_exception_handler(request: Request, exc: ForecastError):
    """Report engine errors as bad requests."""
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="Projection error",
            detail=exc.message,
            type=type(exc).__name__,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc),
            type=type(exc).__name__,
        ).model_dump(),
    )


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """API health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "propforecast-api",
    }


app.include_router(factors.router, prefix="/api/factors", tags=["Factors"])
app.include_router(projections.router, prefix="/api/projections", tags=["Projections"])


@app.get("/")
async def root() -> Dict[str, Any]:
    """API root endpoint with service information."""
    return {
        "service": "PropForecast API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "propforecast.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
