"""
Scoring oracle client.

Sends a prompt to an OpenAI-compatible chat completions endpoint, validates
the reply and retries failed calls and rejected responses with exponential
backoff.

Usage:
    client = ScoringOracleClient(create_openai_client(settings), model="gemini-2.0-flash-exp")
    result = await client.score(prompt)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx
import openai
from openai import AsyncOpenAI

from indexpilot.core.config import Settings
from indexpilot.core.exceptions import (
    OracleResponseError,
    ScoringFailedError,
    TransientUpstreamError,
)
from indexpilot.core.logging import get_logger
from indexpilot.services.oracle.schemas import ScoringResult
from indexpilot.services.oracle.validation import parse_scoring_response
from indexpilot.services.resilience import (
    RetryExhaustedError,
    exponential_backoff,
    retry_async,
)

logger = get_logger("oracle.client")


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Build an AsyncOpenAI client for the configured scoring endpoint.

    SDK-level retries are disabled; ``ScoringOracleClient`` owns the retry
    policy.
    """
    http_client = httpx.AsyncClient(
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        timeout=httpx.Timeout(settings.oracle_timeout, connect=10.0),
    )
    return AsyncOpenAI(
        api_key=settings.oracle_api_key or "unset",
        base_url=settings.oracle_base_url,
        http_client=http_client,
        max_retries=0,
    )


class ScoringOracleClient:
    """Validated, retried access to the scoring model."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        max_retries: int = 3,
        base_delay: float = 1.0,
        temperature: float = 0.2,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self.model = model
        self.max_retries = max_retries
        self.temperature = temperature
        self._backoff = exponential_backoff(base_delay=base_delay, factor=2.0)
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: AsyncOpenAI, settings: Settings) -> ScoringOracleClient:
        return cls(
            client,
            model=settings.oracle_model,
            max_retries=settings.oracle_max_retries,
            base_delay=settings.oracle_retry_base_delay,
        )

    async def _complete(self, prompt: str) -> str | None:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except (openai.APIError, httpx.HTTPError) as e:
            raise TransientUpstreamError(
                message=f"Scoring endpoint call failed: {e}",
                details={"model": self.model},
            ) from e

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def _attempt(self, prompt: str) -> ScoringResult:
        raw = await self._complete(prompt)
        return parse_scoring_response(raw)

    async def score(self, prompt: str) -> ScoringResult:
        """
        Score a prompt.

        Raises:
            ScoringFailedError: every attempt failed; ``last_error`` holds the
                final ``TransientUpstreamError`` or ``OracleResponseError``.
        """
        try:
            result = await retry_async(
                lambda: self._attempt(prompt),
                max_attempts=self.max_retries,
                backoff=self._backoff,
                retry_on=(TransientUpstreamError, OracleResponseError),
                sleep=self._sleep,
                name="scoring call",
            )
        except RetryExhaustedError as e:
            logger.error(f"Scoring failed after {e.attempts} attempts: {e.last_error}")
            raise ScoringFailedError(e.attempts, e.last_error) from e

        logger.debug(
            f"Scored prompt: score={result.score:.2f} direction={result.direction.value}"
        )
        return result

    async def close(self) -> None:
        await self._client.close()
