"""
Centralized AI Prompts Module
=============================

All AI prompts used by the report service.

- Store report: monthly P&L commentary
"""

from .report_prompts import (
    COMMENTARY_SYSTEM_PROMPT,
    FLR_BENCHMARKS,
    get_commentary_user_prompt,
)

__all__ = [
    "COMMENTARY_SYSTEM_PROMPT",
    "FLR_BENCHMARKS",
    "get_commentary_user_prompt",
]
