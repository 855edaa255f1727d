"""
Inference smoke test for a deployed workload.

Sends one chat completion to the OpenAI-compatible endpoint and measures
latency and throughput (completion tokens per second).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx
import structlog

from kserveup.core.errors import SmokeTestError

logger = structlog.get_logger()

DEFAULT_PROMPT = (
    "Explain the concept of 'PagedAttention' in vLLM to a 5-year-old using a toybox analogy."
)
CHAT_PATH = "/v1/chat/completions"
HIGH_PERFORMANCE_TPS = 50.0


@dataclass(frozen=True)
class SmokeResult:
    endpoint: str
    model: str
    content: str
    completion_tokens: int
    latency_seconds: float

    @property
    def tokens_per_second(self) -> float:
        if self.completion_tokens <= 0 or self.latency_seconds <= 0:
            return 0.0
        return self.completion_tokens / self.latency_seconds

    @property
    def high_performance(self) -> bool:
        return self.tokens_per_second > HIGH_PERFORMANCE_TPS

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "model": self.model,
            "content": self.content,
            "completion_tokens": self.completion_tokens,
            "latency_seconds": round(self.latency_seconds, 3),
            "tokens_per_second": round(self.tokens_per_second, 2),
            "high_performance": self.high_performance,
        }


class InferenceProbe:
    """Sends a single chat completion and times it."""

    def __init__(
        self,
        *,
        timeout: float = 120.0,
        verify: bool = False,
        timer: Callable[[], float] = time.perf_counter,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._timer = timer
        self._transport = transport

    def run(
        self,
        endpoint: str,
        model: str,
        prompt: str = DEFAULT_PROMPT,
        *,
        max_tokens: int = 256,
        temperature: float = 0.7,
    ) -> SmokeResult:
        url = endpoint.rstrip("/") + CHAT_PATH
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start = self._timer()
        try:
            with httpx.Client(
                timeout=self._timeout, verify=self._verify, transport=self._transport
            ) as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise SmokeTestError(
                f"Inference request failed with HTTP {exc.response.status_code}",
                details={"resource": model, "stage": "smoke", "url": url},
            ) from exc
        except (httpx.TransportError, ValueError) as exc:
            raise SmokeTestError(
                f"Inference request failed: {exc}",
                details={"resource": model, "stage": "smoke", "url": url},
            ) from exc
        latency = self._timer() - start

        choices = body.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        tokens = int((body.get("usage") or {}).get("completion_tokens") or 0)

        result = SmokeResult(
            endpoint=endpoint,
            model=model,
            content=content,
            completion_tokens=tokens,
            latency_seconds=latency,
        )
        logger.info(
            "smoke_test_completed",
            model=model,
            latency_seconds=round(latency, 3),
            completion_tokens=tokens,
            tokens_per_second=round(result.tokens_per_second, 2),
        )
        return result
