# app/presentation/api/health_router.py
"""Health check endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from app.presentation.schemas.report_schemas import HealthResponse
from app.core.dependencies import get_config
from app.core.unified_config import UnifiedConfig
from app.presentation.middleware.config_middleware import create_config_health_response

router = APIRouter(tags=["health"])

@router.get("/health", response_model=HealthResponse)
async def health_check(config: UnifiedConfig = Depends(get_config)):
    """Basic health check endpoint."""
    return HealthResponse(
        status="ok",
        version=config.app.app_version
    )

@router.get("/health/config")
async def config_health_check():
    """Detailed configuration health check endpoint."""
    health_data = create_config_health_response()

    # Return appropriate HTTP status based on health
    status_code = 503 if health_data["status"] == "unhealthy" else 200

    return JSONResponse(
        status_code=status_code,
        content=health_data
    )

@router.get("/ai-config")
async def get_ai_config(config: UnifiedConfig = Depends(get_config)):
    """Get current AI commentary configuration for display in frontend."""
    ai = config.ai_analysis
    return JSONResponse(
        content={
            "provider": ai.provider,
            "model": ai.model,
            "commentary_enabled": ai.enable_ai_commentary,
            "api_key_configured": ai.api_key is not None,
        }
    )
