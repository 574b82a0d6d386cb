# app/presentation/middleware/config_middleware.py
"""Configuration health and request monitoring middleware."""

import time
from typing import Dict, Any
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.unified_config import get_unified_config
from app.shared.utils.logging_config import get_logger

logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 5.0


class RequestMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Tracks per-endpoint request counts and timings and logs slow requests.
    """

    def __init__(self, app, slow_request_seconds: float = SLOW_REQUEST_SECONDS):
        super().__init__(app)
        self.slow_request_seconds = slow_request_seconds
        self.request_count: Dict[str, int] = {}
        self.request_times: Dict[str, list] = {}

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()
        endpoint = request.url.path
        self.request_count[endpoint] = self.request_count.get(endpoint, 0) + 1

        response = await call_next(request)

        process_time = time.time() - start_time
        self.request_times.setdefault(endpoint, []).append(process_time)

        if process_time > self.slow_request_seconds:
            logger.warning(f"Slow request detected: {endpoint} took {process_time:.2f}s")

        return response

    def get_metrics(self) -> Dict[str, Any]:
        """Get request monitoring metrics."""
        return {
            endpoint: {
                "count": len(times),
                "avg_time": sum(times) / len(times) if times else 0,
                "max_time": max(times) if times else 0,
            }
            for endpoint, times in self.request_times.items()
        }


# Configuration health check endpoint helper
def create_config_health_response() -> Dict[str, Any]:
    """Create a configuration health check response."""
    try:
        config = get_unified_config()
        summary = config.summary()

        checks = {
            "config_loaded": True,
            "stores_configured": summary["store_count"] > 0,
            "drive_credentials_configured": summary["drive_credentials_configured"],
            "ai_commentary_enabled": summary["ai_enabled"],
        }

        # Reports cannot be fetched from Drive without credentials
        status = "healthy" if checks["stores_configured"] and checks["drive_credentials_configured"] else "degraded"

        return {
            "status": status,
            "timestamp": time.time(),
            "version": config.app.app_version,
            "environment": "debug" if config.app.debug else "production",
            "checks": checks,
            "configuration_summary": summary,
        }

    except Exception as e:
        logger.error(f"Configuration health check failed: {str(e)}", exc_info=True)
        return {
            "status": "unhealthy",
            "timestamp": time.time(),
            "error": str(e),
            "checks": {
                "config_loaded": False
            }
        }
