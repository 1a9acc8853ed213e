"""
Shared LLM Utilities for SeedMix Agents

Single gateway for schema-constrained JSON completions: the strategy advisor
and the playlist narrator both go through `call_llm_with_json_response`.
"""

import json
import re
from typing import Any, Dict, Optional

import structlog

from ...models.errors import LLMError

logger = structlog.get_logger(__name__)


class LLMUtils:
    """
    JSON completion helper around a Gemini-style client.

    The client must expose `generate_content_async(prompt)` or
    `generate_content(prompt)` returning an object with a `.text` attribute.
    """

    def __init__(self, llm_client, rate_limiter=None):
        """
        Initialize LLM utilities with client.

        Args:
            llm_client: LLM client (e.g. google.generativeai.GenerativeModel)
            rate_limiter: Optional UnifiedRateLimiter applied before each call
        """
        self.llm_client = llm_client
        self.rate_limiter = rate_limiter
        self.logger = logger.bind(component="LLMUtils")

    async def call_llm_with_json_response(
        self,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        max_retries: int = 0
    ) -> Dict[str, Any]:
        """
        Call LLM and parse its JSON response.

        Args:
            user_prompt: User prompt for the LLM
            system_prompt: System prompt (optional)
            max_retries: Extra attempts after a failed call or parse

        Returns:
            Parsed JSON object

        Raises:
            LLMError: If the call or JSON parsing fails on every attempt
        """
        last_error: Optional[Exception] = None

        for attempt in range(max_retries + 1):
            try:
                response_text = await self._make_llm_call(user_prompt, system_prompt)
            except Exception as e:
                self.logger.warning("LLM call failed", attempt=attempt + 1, error=str(e))
                last_error = e
                continue

            try:
                json_data = self._parse_json_response(response_text)
            except ValueError as e:
                self.logger.warning(
                    "JSON parsing failed",
                    attempt=attempt + 1,
                    error=str(e),
                    response_preview=response_text[:200]
                )
                last_error = e
                continue

            self.logger.debug(
                "LLM JSON response parsed",
                attempt=attempt + 1,
                response_keys=list(json_data.keys())
            )
            return json_data

        raise LLMError(f"LLM JSON completion failed after {max_retries + 1} attempts: {last_error}")

    async def _make_llm_call(self, user_prompt: str, system_prompt: Optional[str] = None) -> str:
        if not self.llm_client:
            raise LLMError("LLM client not initialized")

        if self.rate_limiter:
            await self.rate_limiter.wait_if_needed()

        full_prompt = f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt
        self.logger.debug(
            "Making LLM call",
            prompt_length=len(full_prompt),
            has_system_prompt=system_prompt is not None
        )

        if hasattr(self.llm_client, "generate_content_async"):
            response = await self.llm_client.generate_content_async(full_prompt)
        else:
            response = self.llm_client.generate_content(full_prompt)
            if hasattr(response, "__await__"):
                response = await response

        text = getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            raise LLMError("LLM returned an empty response")
        return text

    def _parse_json_response(self, response_text: str) -> Dict[str, Any]:
        """
        Parse a JSON object out of raw model text.

        Raises:
            ValueError: If no JSON object can be decoded (JSONDecodeError included)
        """
        cleaned_text = self._clean_response_text(response_text)
        json_str = self._clean_json_string(self._extract_json_boundaries(cleaned_text))
        json_data = json.loads(json_str)
        if not isinstance(json_data, dict):
            raise ValueError("LLM response is not a JSON object")
        return json_data

    def _clean_response_text(self, response_text: str) -> str:
        """Strip markdown code fences."""
        cleaned = response_text.strip()
        if cleaned.startswith('```'):
            lines = cleaned.split('\n')[1:]
            if lines and lines[-1].strip().startswith('```'):
                lines = lines[:-1]
            cleaned = '\n'.join(lines)
        return cleaned.strip()

    def _extract_json_boundaries(self, text: str) -> str:
        """Return the first balanced {...} block."""
        start_idx = text.find('{')
        if start_idx == -1:
            raise ValueError("No JSON object found in response")

        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(text[start_idx:], start_idx):
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start_idx:i + 1]

        raise ValueError("Unmatched braces in JSON response")

    def _clean_json_string(self, json_str: str) -> str:
        """Remove trailing commas, a common model formatting slip."""
        return re.sub(r',(\s*[}\]])', r'\1', json_str)
