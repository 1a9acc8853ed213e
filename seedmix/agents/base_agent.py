"""
Base Agent Class for SeedMix LLM Components

Provides the shared plumbing for components that ask the language model for
structured output and fall back to deterministic results when it fails.
"""

import time
from abc import ABC
from typing import Any, Dict, Optional

import structlog

from ..models.errors import LLMError
from ..utils.async_utils import call_with_timeout
from .components.llm_utils import LLMUtils

logger = structlog.get_logger(__name__)


class BaseLLMAgent(ABC):
    """
    Base class for LLM-backed agents.

    Subclasses build prompts and validate the parsed JSON; this class owns the
    call itself, the timeout and success/failure bookkeeping.
    """

    agent_name = "agent"

    def __init__(
        self,
        llm_client=None,
        rate_limiter=None,
        timeout: Optional[float] = 30.0,
        llm_utils: Optional[LLMUtils] = None
    ):
        """
        Initialize base agent.

        Args:
            llm_client: Gemini-style client; None forces the deterministic fallback
            rate_limiter: Optional rate limiter for model calls
            timeout: Per-call timeout in seconds
            llm_utils: Pre-built LLMUtils (mainly for tests)
        """
        self.llm_utils = llm_utils or LLMUtils(llm_client, rate_limiter=rate_limiter)
        self.timeout = timeout
        self.logger = logger.bind(agent=self.agent_name)

        self.success_count = 0
        self.fallback_count = 0

    @property
    def is_available(self) -> bool:
        return self.llm_utils.llm_client is not None

    async def _request_json(self, user_prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        """
        Run one JSON completion with the agent's timeout.

        Raises:
            LLMError: On call failure, timeout or unparseable output
        """
        if not self.is_available:
            raise LLMError(f"{self.agent_name} has no LLM client configured")

        start_time = time.time()
        data = await call_with_timeout(
            self.llm_utils.call_llm_with_json_response(user_prompt, system_prompt),
            self.timeout,
            f"{self.agent_name} completion",
            error_cls=LLMError
        )
        self.logger.debug(
            "LLM completion finished",
            duration_seconds=round(time.time() - start_time, 3)
        )
        return data

    def _record_fallback(self, reason: Exception) -> None:
        self.fallback_count += 1
        self.logger.warning(
            "Using deterministic fallback",
            external_call="llm_json_completion",
            error=str(reason),
            error_type=type(reason).__name__
        )
