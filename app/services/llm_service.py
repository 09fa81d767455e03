"""
OpenRouter LLM service (OpenAI-compatible chat completions).
Tất cả gọi LLM nằm trong module này; caller tự parse/validate JSON.
"""
import asyncio
import time
from typing import Any, Dict, Tuple

import openai
from openai import OpenAI

from app.config import Settings
from app.logging_config import get_logger
from app.services.errors import UpstreamServiceError

UsageInfo = Dict[str, int]  # prompt_tokens, completion_tokens, total_tokens

logger = get_logger(__name__)


class LLMService:
    """Một chat completion / lần gọi, ép response_format json_object."""

    def __init__(self, settings: Settings) -> None:
        """Khởi tạo từ app config (OPENROUTER_*)."""
        self.api_key = settings.openrouter_api_key
        self.base_url = settings.openrouter_base_url
        self.model = settings.openrouter_model
        self.timeout_seconds = settings.openrouter_timeout_seconds
        self.max_retries = settings.openrouter_max_retries
        self.temperature = settings.openrouter_temperature
        self.default_headers = {
            "HTTP-Referer": settings.site_url,
            "X-Title": settings.app_name,
        }
        self._client: Any = None

    def _get_client(self) -> OpenAI:
        """Lazy init client; thiếu API key là lỗi upstream của cả job."""
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise UpstreamServiceError("Missing OPENROUTER_API_KEY")
        self._client = OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=float(self.timeout_seconds),
            max_retries=self.max_retries,
            default_headers=self.default_headers,
        )
        return self._client

    def _extract_usage(self, resp: Any) -> UsageInfo:
        """Lấy prompt_tokens, completion_tokens, total_tokens từ response."""
        usage = getattr(resp, "usage", None)
        if not usage:
            return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
        return {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "total_tokens": getattr(usage, "total_tokens", 0) or 0,
        }

    async def complete_json(self, system: str, user: str, feature: str = "plan_day") -> Tuple[str, UsageInfo]:
        """
        Gửi system + user prompt, trả về (content, usage_info).
        Raises UpstreamServiceError khi lỗi mạng, HTTP non-2xx hoặc content rỗng.
        """
        client = self._get_client()
        start = time.perf_counter()
        try:
            resp = await asyncio.to_thread(
                client.chat.completions.create,
                model=self.model,
                messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.APIStatusError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning("llm.http_error", feature=feature, model=self.model, latency_ms=round(latency_ms), status=e.status_code)
            raise UpstreamServiceError(f"OpenRouter error: {e.status_code} {e.message}") from e
        except openai.APIError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning("llm.request_failed", feature=feature, model=self.model, latency_ms=round(latency_ms), error=str(e))
            raise UpstreamServiceError(f"OpenRouter request failed: {e}") from e

        latency_ms = (time.perf_counter() - start) * 1000
        choices = getattr(resp, "choices", None) or []
        content = (choices[0].message.content or "") if choices else ""
        if not content.strip():
            logger.warning("llm.empty_content", feature=feature, model=self.model, latency_ms=round(latency_ms))
            raise UpstreamServiceError("OpenRouter returned empty content")

        usage_info = self._extract_usage(resp)
        logger.info(
            "llm.completion_success",
            feature=feature,
            model=self.model,
            latency_ms=round(latency_ms),
            total_tokens=usage_info["total_tokens"],
        )
        return content, usage_info
