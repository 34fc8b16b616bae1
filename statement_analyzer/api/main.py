"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from statement_analyzer.api.middleware import RequestIDMiddleware, MetricsMiddleware
from statement_analyzer.api.v1 import analyze
from statement_analyzer.api.v1.schemas import HealthResponse
from statement_analyzer.domain.exceptions import ConfigurationError
from statement_analyzer.infrastructure.observability.logging import setup_logging
from statement_analyzer.infrastructure.observability.metrics import record_analysis
from statement_analyzer.infrastructure.storage.uploads import UploadStore
from statement_analyzer.config import settings

# Setup structured logging
setup_logging(settings.log_level)

ENDPOINTS = [
    "GET /",
    "POST /api/analyze-base64",
    "POST /api/analyze-pdf",
    "GET /health",
    "GET /test",
    "GET /metrics",
]

LOCAL_FRONTEND_ORIGIN = "http://localhost:3000"


@asynccontextmanager
async def lifespan(app: FastAPI):
    UploadStore().ensure_directory()
    logging.info(
        "Service started",
        extra={
            "environment": settings.environment,
            "claude_api_configured": settings.claude_configured,
        },
    )
    if not settings.claude_configured:
        logging.warning("CLAUDE_API_KEY is not configured; analysis requests will fail")
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Statement Analyzer",
        description="Mexican bank statement analysis backed by Claude",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    origins = [LOCAL_FRONTEND_ORIGIN] + ([settings.frontend_url] if settings.frontend_url else [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logging.error(f"Configuration error: {exc}")
        record_analysis("configuration_error")
        return JSONResponse(
            status_code=503,
            content={"error": "Servicio no configurado", "details": str(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        return JSONResponse(
            status_code=404,
            content={"error": "Ruta no encontrada", "availableEndpoints": ENDPOINTS},
        )

    @app.get("/", response_class=HTMLResponse)
    def index():
        configured = "Configurada" if settings.claude_configured else "No configurada"
        items = "".join(f"<li>{endpoint}</li>" for endpoint in ENDPOINTS)
        return f"""<!DOCTYPE html>
<html lang="es">
<head><meta charset="UTF-8"><title>Analizador de Estados de Cuenta</title></head>
<body>
<h1>Analizador de Estados de Cuenta</h1>
<p>Servidor funcionando correctamente</p>
<ul>{items}</ul>
<p>CLAUDE_API_KEY: {configured}</p>
<p>Entorno: {settings.environment}</p>
</body>
</html>"""

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.environment,
            service=settings.service_name,
            claude_api_configured=settings.claude_configured,
        )

    @app.get("/test")
    def test_endpoint():
        return {"message": "Servidor funcionando correctamente", "endpoints": ENDPOINTS}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(analyze.router, prefix="/api", tags=["analysis"])

    return app


app = create_app()
