"""
Async client for the Gemini generateContent endpoint.

Wire contract:
- POST {endpoint}?key={api_key}
- body: {"contents": [{"parts": [{"text": prompt}]}],
         "generationConfig": {"temperature": t}}
- reply: {"candidates": [{"content": {"parts": [{"text": completion}]}}]}

`enhance()` never raises for upstream problems. Every failure becomes an
AIFailure value and is logged exactly once with its kind. There are no
retries: the search pipeline's answer to a failed call is fallback.
"""
import asyncio
import json
import time
from typing import Any, Dict, Optional, Union

import httpx

from grocery_search.core.config import SearchSettings
from grocery_search.core.logging import excerpt, get_logger
from grocery_search.core.metrics import record_llm_error, record_llm_request
from grocery_search.services.ai.schema import AIFailure, AIFailureKind

logger = get_logger(__name__)


class LLMClient:
    """HTTP client for a single-shot completion call with a hard timeout."""

    def __init__(
        self,
        api_endpoint: str,
        api_key: Optional[str],
        temperature: float = 0.6,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_endpoint = api_endpoint
        self.api_key = (api_key or "").strip()
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: SearchSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LLMClient":
        return cls(
            api_endpoint=settings.gemini_api_endpoint,
            api_key=settings.gemini_api_key,
            temperature=settings.temperature,
            timeout_seconds=settings.timeout_seconds,
            transport=transport,
        )

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.temperature},
        }

    async def _post(self, json_payload: Dict[str, Any]) -> httpx.Response:
        """Low-level POST helper."""
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.post(
                self.api_endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=json_payload,
            )

    def _fail(
        self,
        kind: AIFailureKind,
        event: str,
        detail: str = "",
        raw: Optional[str] = None,
        **context: Any,
    ) -> AIFailure:
        """Build the failure value, count it and write its single log entry."""
        failure = AIFailure(kind=kind, detail=detail, raw_excerpt=excerpt(raw))
        record_llm_error(kind.value, failure.category.value)
        log = logger.error if kind is AIFailureKind.MISSING_API_KEY else logger.warning
        log(
            event,
            failure_kind=kind.value,
            failure_category=failure.category.value,
            detail=detail,
            raw_response=failure.raw_excerpt,
            **context,
        )
        return failure

    async def enhance(self, prompt: str) -> Union[str, AIFailure]:
        """
        Send `prompt` to the model.

        Returns:
            The model's completion text, or an AIFailure describing why
            there is none.
        """
        if not self.api_key:
            return self._fail(
                AIFailureKind.MISSING_API_KEY,
                "ai_client_missing_api_key",
                detail="API key is not configured",
            )

        logger.info(
            "ai_client_request_started",
            prompt_length=len(prompt),
            timeout_seconds=self.timeout_seconds,
        )
        start = time.time()
        response: Optional[httpx.Response] = None

        try:
            # httpx bounds each phase; wait_for bounds the call as a whole.
            response = await asyncio.wait_for(
                self._post(self.build_payload(prompt)),
                timeout=self.timeout_seconds,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            return self._fail(
                AIFailureKind.TIMEOUT,
                "ai_client_timeout",
                detail=type(exc).__name__,
                timeout_seconds=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            return self._fail(
                AIFailureKind.TRANSPORT_ERROR,
                "ai_client_transport_error",
                detail=f"{type(exc).__name__}: {exc}",
            )
        except Exception as exc:
            return self._fail(
                AIFailureKind.UNEXPECTED_ERROR,
                "ai_client_unexpected_error",
                detail=type(exc).__name__,
                exc_info=True,
            )
        finally:
            record_llm_request(
                success=response is not None and response.is_success,
                duration_seconds=time.time() - start,
            )

        raw_text = response.text
        logger.debug(
            "ai_client_raw_response",
            status_code=response.status_code,
            raw_response=excerpt(raw_text),
        )

        if not response.is_success:
            return self._fail(
                AIFailureKind.HTTP_STATUS,
                "ai_client_http_status",
                detail=f"HTTP {response.status_code}",
                raw=raw_text,
                status_code=response.status_code,
            )

        try:
            data = json.loads(raw_text)
        except ValueError as exc:
            return self._fail(
                AIFailureKind.INVALID_JSON,
                "ai_client_invalid_json",
                detail=str(exc),
                raw=raw_text,
            )

        completion = extract_completion_text(data)
        if completion is None:
            return self._fail(
                AIFailureKind.UNEXPECTED_SHAPE,
                "ai_client_unexpected_shape",
                detail="candidates[0].content.parts[0].text missing",
                raw=raw_text,
            )

        logger.info("ai_client_request_completed", completion_length=len(completion))
        return completion


def extract_completion_text(data: Any) -> Optional[str]:
    """Return candidates[0].content.parts[0].text, or None if the shape is off."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
