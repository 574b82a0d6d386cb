"""
AI Commentary Generator
Turns an assembled report into consultant-style comment sections using
OpenAI or Anthropic Claude.
"""
import itertools
import json
import re
import time
from typing import Any, Dict, List

import anthropic
from openai import OpenAI

from app.core.exceptions import CommentaryError, ConfigurationError
from app.core.unified_config import AIAnalysisConfig
from app.domain.store_report.models import CommentSection, ReportData
from app.shared.prompts import COMMENTARY_SYSTEM_PROMPT, get_commentary_user_prompt
from app.shared.utils.logging_config import get_logger

logger = get_logger(__name__)

JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
FIRST_COMMENT_ID = 100


class CommentaryGenerator:
    """
    Generates comment sections for a report.

    The generator is disabled when no API key is configured for the chosen
    provider; callers check `enabled` before asking for commentary.
    """

    def __init__(self, config: AIAnalysisConfig, client: Any = None):
        self.config = config
        self.provider = config.provider
        self.model = config.model
        self.is_claude = self.provider == "anthropic"
        self.api_key = config.api_key
        self._ids = itertools.count(FIRST_COMMENT_ID)

        self.openai_client = None
        self.anthropic_client = None

        if client is not None:
            if self.is_claude:
                self.anthropic_client = client
            else:
                self.openai_client = client
        elif self.api_key:
            try:
                if self.is_claude:
                    self.anthropic_client = anthropic.Anthropic(
                        api_key=self.api_key, timeout=config.timeout_seconds
                    )
                else:
                    self.openai_client = OpenAI(api_key=self.api_key, timeout=config.timeout_seconds)
                logger.info(f"Commentary generator ready ({self.provider}, {self.model})")
            except Exception as e:
                logger.error(f"Failed to initialize {self.provider} client: {e}")
                raise ConfigurationError(
                    f"Failed to initialize {self.provider} client",
                    details=str(e),
                    parameter="ai_analysis.provider",
                )
        else:
            logger.info("No AI API key configured; commentary generation disabled")

    @property
    def enabled(self) -> bool:
        return self.openai_client is not None or self.anthropic_client is not None

    def generate(self, report: ReportData) -> List[CommentSection]:
        """
        Generate comment sections for a report.

        Raises:
            ConfigurationError: When no provider client is configured
            CommentaryError: When the call fails or the reply is unusable
        """
        if not self.enabled:
            raise ConfigurationError(
                "AI commentary is not configured",
                details="Set OPENAI_API_KEY or ANTHROPIC_API_KEY",
                parameter="ai_analysis",
            )
        if report.latest_record is None:
            raise CommentaryError("Report has no monthly records to comment on")

        user_prompt = get_commentary_user_prompt(report)
        logger.info(f"Generating commentary for {report.store_name} {report.report_month}")

        content = self._call_ai(COMMENTARY_SYSTEM_PROMPT, user_prompt)
        sections = self.parse_sections(content)

        logger.info(f"Generated {len(sections)} comment sections")
        return sections

    def parse_sections(self, content: str) -> List[CommentSection]:
        """Extract the JSON array of {title, content} from a model reply."""
        match = JSON_ARRAY.search(content or "")
        if not match:
            raise CommentaryError("Could not parse AI response", details=(content or "")[:200])

        try:
            items = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise CommentaryError("Could not parse AI response", details=str(e))

        if not isinstance(items, list):
            raise CommentaryError("AI response is not a list of sections")

        sections = []
        for item in items:
            if not isinstance(item, dict):
                continue
            sections.append(CommentSection(
                id=f"ai-{next(self._ids)}",
                title=str(item.get("title", "")),
                content=str(item.get("content", "")),
            ))
        return sections

    def _call_ai(self, system_prompt: str, user_prompt: str, retry_count: int = 0, max_retries: int = 2) -> str:
        """Route the call to the configured provider, retrying rate limits and timeouts."""
        try:
            if self.is_claude:
                return self._call_anthropic(system_prompt, user_prompt)
            return self._call_openai(system_prompt, user_prompt)
        except CommentaryError:
            raise
        except Exception as e:
            error_msg = str(e).lower()
            if ("rate" in error_msg or "timeout" in error_msg) and retry_count < max_retries:
                wait_time = 5 * (retry_count + 1)
                logger.warning(
                    f"AI call failed ({e}); retrying in {wait_time}s "
                    f"(attempt {retry_count + 1}/{max_retries})"
                )
                time.sleep(wait_time)
                return self._call_ai(system_prompt, user_prompt, retry_count + 1, max_retries)

            logger.error(f"{self.provider} API call failed: {e}")
            raise CommentaryError(f"{self.provider} API call failed", details=str(e))

    def _call_openai(self, system_prompt: str, user_prompt: str) -> str:
        response = self.openai_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        if not response.choices:
            raise CommentaryError("OpenAI API returned no choices")
        return response.choices[0].message.content or ""

    def _call_anthropic(self, system_prompt: str, user_prompt: str) -> str:
        message = self.anthropic_client.messages.create(
            model=self.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )

    def status(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "enabled": self.enabled,
        }
