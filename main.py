"""
Main entry point for the Monthly Store Report Backend.

Builds per-store monthly P&L reports (FLR ratios, year-over-year comparison,
13-month trend and AI commentary) from the stores' Excel workbooks.

Architecture: N-Layer Monolith
- Presentation Layer: API routers (presentation/api/)
- Application Layer: Use cases and orchestration (application/)
- Domain Layer: Business logic (domain/)
- Infrastructure Layer: External dependencies (infrastructure/)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.exceptions import register_exception_handlers
from app.core.unified_config import get_unified_config
from app.shared.utils.logging_config import setup_logging

# Import routers from presentation layer
from app.presentation.api import health_router
from app.presentation.api import store_report_router
from app.presentation.middleware.config_middleware import RequestMonitoringMiddleware

config = get_unified_config()
setup_logging(config.app.log_level, config.app.log_file)

# Create the root application
app = FastAPI(
    title=config.app.app_name,
    description="Monthly store P&L reports from Excel workbooks | N-Layer Architecture",
    version=config.app.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Allow CORS (the report UI calls this API from the browser)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.app.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestMonitoringMiddleware)

register_exception_handlers(app)

app.include_router(health_router.router, prefix="/api", tags=["Health"])
app.include_router(store_report_router.router, prefix="/api")


# Root health check
@app.get("/", tags=["Root"])
def root():
    return {
        "message": "Monthly Store Report Backend running",
        "version": config.app.app_version,
        "architecture": "N-Layer Monolith",
        "layers": {
            "presentation": "API routers, middleware, request/response schemas",
            "application": "Use cases, orchestration",
            "domain": "Sheet layout detection, record extraction, metrics, report assembly",
            "infrastructure": "Google Drive transport, AI commentary"
        },
        "endpoints": [
            "/api/health",
            "/api/reports/stores",
            "/api/reports/months",
            "/api/reports/generate",
            "/api/reports/upload",
            "/api/reports/csv",
            "/api/reports/detect-sheets",
            "/api/reports/inspect-layout",
            "/api/reports/comments/regenerate",
            "/api/reports/drive-file/{file_id}"
        ],
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }

# Local run
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
