# app/core/unified_config.py
"""Unified configuration management system with validation."""

import os
from typing import List, Dict, Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.store_report.models.report_models import ExtractionProfile
from app.domain.store_report.services.grid_loader import (
    ANALYSIS_MAX_COLS,
    ANALYSIS_MAX_ROWS,
    EXTRACTION_MAX_COLS,
    EXTRACTION_MAX_ROWS,
)
from app.shared.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()


class ApplicationConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PL_REPORT_APP__")
    """Main application configuration section."""

    app_name: str = Field(
        default="Monthly Store Report API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # CORS configuration
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v.upper()


class ExtractionConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PL_REPORT_EXTRACTION__")
    """Spreadsheet layout conventions used by the extraction engine."""

    max_rows: int = Field(
        default=EXTRACTION_MAX_ROWS,
        description="Rows read from the report sheet",
        ge=10,
        le=1000
    )
    max_cols: int = Field(
        default=EXTRACTION_MAX_COLS,
        description="Columns read from the report sheet",
        ge=5,
        le=500
    )
    analysis_max_rows: int = Field(
        default=ANALYSIS_MAX_ROWS,
        description="Rows read when inspecting a sheet's layout",
        ge=10,
        le=1000
    )
    analysis_max_cols: int = Field(
        default=ANALYSIS_MAX_COLS,
        description="Columns read when inspecting a sheet's layout",
        ge=5,
        le=500
    )
    year_row: int = Field(default=1, description="0-indexed row holding '2026年' labels", ge=0)
    marker_row: int = Field(default=2, description="0-indexed row holding the '実績' marker", ge=0)
    month_row: int = Field(default=3, description="0-indexed row holding '1月' labels", ge=0)
    label_candidate_cols: List[int] = Field(
        default=[38, 1, 2],
        description="Columns tried, in order, when looking for line-item labels"
    )
    fallback_label_col: int = Field(
        default=38,
        description="Label column used when no candidate matches",
        ge=0
    )
    label_window_start: int = Field(default=5, ge=0)
    label_window_end: int = Field(default=15, ge=1)
    item_row_start: int = Field(default=5, ge=0)
    item_row_end: int = Field(default=60, ge=1)
    actual_marker: str = Field(default="実績", description="Marker of realized months")
    window_months: int = Field(
        default=13,
        description="Months in the trailing window",
        ge=1,
        le=60
    )

    @model_validator(mode='after')
    def validate_windows(self):
        if self.label_window_end <= self.label_window_start:
            raise ValueError("label_window_end must be greater than label_window_start")
        if self.item_row_end <= self.item_row_start:
            raise ValueError("item_row_end must be greater than item_row_start")
        return self

    def to_profile(self) -> ExtractionProfile:
        """Build the domain extraction profile from these settings."""
        return ExtractionProfile(
            year_row=self.year_row,
            marker_row=self.marker_row,
            month_row=self.month_row,
            label_candidate_cols=tuple(self.label_candidate_cols),
            fallback_label_col=self.fallback_label_col,
            label_window=(self.label_window_start, self.label_window_end),
            item_row_range=(self.item_row_start, self.item_row_end),
            actual_marker=self.actual_marker,
            window_months=self.window_months,
        )


class DriveConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PL_REPORT_DRIVE__")
    """Google Drive transport configuration section."""

    service_account_json: Optional[str] = Field(
        default=None,
        description="Service account key JSON (contents, not a path)"
    )
    service_account_file: Optional[str] = Field(
        default=None,
        description="Path to a service account key file"
    )
    api_base_url: str = Field(
        default="https://www.googleapis.com/drive/v3",
        description="Drive API base URL"
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for a single download",
        gt=0,
        le=600
    )
    cache_max_age_seconds: int = Field(
        default=300,
        description="Client-side cache lifetime advertised for fetched files",
        ge=0
    )


class AIAnalysisConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PL_REPORT_AI__")
    """AI commentary configuration section."""

    enable_ai_commentary: bool = Field(
        default=True,
        description="Generate commentary automatically after extraction"
    )
    provider: str = Field(
        default="openai",
        description="AI provider: openai or anthropic"
    )
    openai_model: str = Field(default="gpt-4o-mini")
    anthropic_model: str = Field(default="claude-3-5-sonnet-20241022")
    temperature: float = Field(default=0.4, ge=0, le=2)
    max_tokens: int = Field(default=2048, ge=256, le=16000)
    timeout_seconds: float = Field(default=120.0, gt=0)

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v):
        if v.lower() not in ("openai", "anthropic"):
            raise ValueError("provider must be 'openai' or 'anthropic'")
        return v.lower()

    @property
    def model(self) -> str:
        return self.anthropic_model if self.provider == "anthropic" else self.openai_model

    @property
    def api_key(self) -> Optional[str]:
        env_name = "ANTHROPIC_API_KEY" if self.provider == "anthropic" else "OPENAI_API_KEY"
        key = os.getenv(env_name)
        if not key or key.startswith("your_"):
            return None
        return key


class StoreSource(BaseModel):
    """Where a store's monthly P&L workbook lives."""
    file_id: str
    sheet_name: str


class StoreDirectoryConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PL_REPORT_STORES__")
    """Store name -> source workbook mapping."""

    stores: Dict[str, StoreSource] = Field(
        default={
            'かね子': StoreSource(file_id='1nvZSdgqpq4AS7Gqei3p37J5m7ZydbCzm', sheet_name='かね子報告書'),
            'スロパチコンカフェ': StoreSource(file_id='1YkG8ZpIzUiNI3OgXq2KE7HzYco0GzRtd', sheet_name='スロパチ　報告書'),
            'ダルマ池袋': StoreSource(file_id='10QBWZJ3sJnymsQCuG20RQY2TuvCr-UPj', sheet_name='DARUMA池袋　報告書'),
            'ダーツバーW': StoreSource(file_id='11XhsK3GdFssl4yJSpeNaiSUUdqbCm0q8', sheet_name='ダーツバーW　報告書'),
            'ダルマ田町': StoreSource(file_id='1DO5eox-YIvetPelR-eb862mBvF8qtZhP', sheet_name='DARUMA田町　報告書'),
            '池袋サンガ': StoreSource(file_id='1YHcxdarVt6MK71J-aT0Lufm36ccJYTPb', sheet_name='SANGA 報告書'),
            'どないや': StoreSource(file_id='1MG3K9QV4xF5I9CYZ4WBws2jEGVlARfTZ', sheet_name='どないや　報告書'),
            '紗心': StoreSource(file_id='1Pil1CXM-WHPawLhSnd6H9_o4KZH-D9iQ', sheet_name='紗心　報告書'),
        },
        description="Configured stores (JSON in PL_REPORT_STORES__STORES)"
    )


class UnifiedConfig(BaseSettings):
    """
    Unified configuration system that consolidates all application settings.

    Every section can be overridden from the environment, for example
    PL_REPORT_EXTRACTION__MAX_COLS=60 or PL_REPORT_AI__PROVIDER=anthropic.
    """

    # Configuration sections
    app: ApplicationConfig = Field(default_factory=ApplicationConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    drive: DriveConfig = Field(default_factory=DriveConfig)
    ai_analysis: AIAnalysisConfig = Field(default_factory=AIAnalysisConfig)
    store_directory: StoreDirectoryConfig = Field(default_factory=StoreDirectoryConfig)

    model_config = SettingsConfigDict(
        env_prefix="PL_REPORT_",
        env_nested_delimiter="__",
        case_sensitive=False
    )

    def summary(self) -> Dict[str, object]:
        """Non-secret configuration overview for health endpoints."""
        return {
            "app_version": self.app.app_version,
            "log_level": self.app.log_level,
            "grid_bounds": f"{self.extraction.max_rows}x{self.extraction.max_cols}",
            "window_months": self.extraction.window_months,
            "label_candidate_cols": self.extraction.label_candidate_cols,
            "store_count": len(self.store_directory.stores),
            "drive_credentials_configured": bool(
                self.drive.service_account_json or self.drive.service_account_file
            ),
            "ai_provider": self.ai_analysis.provider,
            "ai_enabled": self.ai_analysis.enable_ai_commentary and self.ai_analysis.api_key is not None,
        }


# Global configuration instance
@lru_cache()
def get_unified_config() -> UnifiedConfig:
    """Get the unified configuration instance with caching."""
    try:
        config = UnifiedConfig()
        logger.info("Unified configuration loaded successfully")
        return config
    except Exception as e:
        logger.error(f"Failed to load unified configuration: {e}", exc_info=True)
        raise


@lru_cache()
def get_settings() -> ApplicationConfig:
    """Application section of the unified configuration."""
    return get_unified_config().app
