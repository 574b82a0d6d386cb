# app/core/dependencies.py
"""Dependency injection for FastAPI."""

from functools import lru_cache
from typing import TYPE_CHECKING

from .unified_config import get_unified_config, UnifiedConfig

if TYPE_CHECKING:
    from app.application.store_report.generate_store_report import GenerateStoreReportUseCase


# =============================================================================
# Configuration Dependencies
# =============================================================================

def get_config() -> UnifiedConfig:
    """FastAPI dependency returning the cached unified configuration."""
    return get_unified_config()


# =============================================================================
# Use Case Dependencies
# =============================================================================

@lru_cache()
def get_store_report_use_case() -> "GenerateStoreReportUseCase":
    """
    Get the shared GenerateStoreReportUseCase instance.

    Usage:
        @router.post("/generate")
        async def generate(use_case = Depends(get_store_report_use_case)):
            ...
    """
    # Lazy import to avoid circular imports
    from app.application.store_report.generate_store_report import GenerateStoreReportUseCase
    return GenerateStoreReportUseCase(get_unified_config())
