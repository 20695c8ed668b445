"""
Audit Report Generator.

Turns a customer's business URL into an "AI-Powered Business Automation
Audit" using an OpenAI-compatible chat completions API (Groq by default).

Generation is a single attempt. Any transport error, non-success status or
malformed response body is absorbed and a deterministic placeholder report
is returned instead, so callers never see an exception.

Standalone usage:
    from src.services.report_generator import AuditReportGenerator

    generator = AuditReportGenerator()
    report = await generator.generate("acme.io")
    print(report.content, report.is_fallback)
"""

import time
from typing import Any, Optional

import httpx
import structlog

from src.config.settings import get_settings
from src.core.exceptions import ReportGenerationError
from src.models.schemas import AuditReport
from src.monitoring.metrics import record_report_generation

logger = structlog.get_logger(__name__)


# =============================================================================
# Prompt Templates
# =============================================================================

AUDIT_PROMPT_TEMPLATE = (
    "As a senior automation consultant, analyze {business_url} and create a "
    'detailed "AI-Powered Business Automation Audit". Focus on executive '
    "summary, processes to automate, quick wins, technology recommendations, "
    "a 90-day roadmap, and ROI analysis. Tone: Professional and actionable."
)

FALLBACK_REPORT_TEMPLATE = (
    "**AI-Powered Business Automation Audit for {business_url}**\n\n"
    "Your audit is being finalized and will be delivered shortly."
)

EMPTY_COMPLETION_TEXT = "Audit generation completed."


def build_audit_prompt(business_url: str) -> str:
    """Return the analysis prompt for a business URL."""
    return AUDIT_PROMPT_TEMPLATE.format(business_url=business_url)


def build_fallback_report(business_url: str) -> str:
    """Return the placeholder report used when generation fails."""
    return FALLBACK_REPORT_TEMPLATE.format(business_url=business_url)


# =============================================================================
# Generator
# =============================================================================


class AuditReportGenerator:
    """
    Generates audit reports with one chat completions call per sale.

    The HTTP client is created lazily and reused across calls; pass your own
    ``client`` to share a connection pool or to stub the transport in tests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self._api_key = api_key or (
            settings.groq_api_key.get_secret_value()
            if settings.groq_api_key
            else None
        )
        self.api_url = api_url or settings.llm_api_url
        self.model = model or settings.llm_model
        self.temperature = (
            temperature if temperature is not None else settings.llm_temperature
        )
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._timeout = timeout or settings.llm_timeout_seconds
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request_completion(self, prompt: str) -> str:
        """Call the chat completions endpoint once and return the message text.

        Raises:
            ReportGenerationError: On missing credentials, transport failure,
                non-2xx status or an unexpected response envelope.
        """
        if not self._api_key:
            raise ReportGenerationError("LLM API key not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        client = self._ensure_client()
        try:
            response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise ReportGenerationError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise ReportGenerationError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            raise ReportGenerationError(
                f"LLM API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data: Any = response.json()
        except ValueError as e:
            raise ReportGenerationError("LLM API returned invalid JSON") from e

        try:
            message = data["choices"][0].get("message") or {}
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ReportGenerationError("LLM API response missing choices") from e

        content = message.get("content") if isinstance(message, dict) else None
        if content is not None and not isinstance(content, str):
            raise ReportGenerationError("LLM API response content is not text")
        return content or EMPTY_COMPLETION_TEXT

    async def generate(self, business_url: str) -> AuditReport:
        """
        Generate an audit report for a business.

        Args:
            business_url: Normalized business URL (no scheme, no www.).

        Returns:
            An AuditReport. ``is_fallback`` is True when the placeholder
            report was substituted for the model output.
        """
        logger.info("audit_generation_started", business_url=business_url)
        start_time = time.perf_counter()

        try:
            content = await self._request_completion(build_audit_prompt(business_url))
            report = AuditReport(business_url=business_url, content=content)
        except ReportGenerationError as e:
            logger.warning(
                "audit_report_fallback",
                business_url=business_url,
                error=e.message,
                status_code=e.status_code,
            )
            report = AuditReport(
                business_url=business_url,
                content=build_fallback_report(business_url),
                is_fallback=True,
            )

        duration = time.perf_counter() - start_time
        record_report_generation(report.is_fallback, duration)
        logger.info(
            "audit_generation_finished",
            business_url=business_url,
            is_fallback=report.is_fallback,
            duration_seconds=round(duration, 3),
        )
        return report


# =============================================================================
# Singleton
# =============================================================================

_generator_instance: Optional[AuditReportGenerator] = None


def get_report_generator() -> AuditReportGenerator:
    """Get or create the singleton AuditReportGenerator."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = AuditReportGenerator()
    return _generator_instance


async def reset_report_generator() -> None:
    """Close and reset the singleton (for testing and shutdown)."""
    global _generator_instance
    if _generator_instance is not None:
        await _generator_instance.aclose()
    _generator_instance = None
