"""
Tests for LLMUtils JSON completion handling.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from seedmix.agents.components.llm_utils import LLMUtils
from seedmix.models.errors import LLMError


def _response(text):
    response = Mock()
    response.text = text
    return response


class TestLLMUtils:
    """Test suite for LLMUtils."""

    @pytest.fixture
    def mock_gemini_client(self):
        client = Mock()
        client.generate_content_async = AsyncMock()
        return client

    @pytest.fixture
    def mock_rate_limiter(self):
        limiter = Mock()
        limiter.wait_if_needed = AsyncMock()
        return limiter

    @pytest.mark.asyncio
    async def test_parses_fenced_json(self, mock_gemini_client, mock_rate_limiter):
        mock_gemini_client.generate_content_async.return_value = _response(
            '```json\n{"mood": "Calm", "genres": ["folk",]}\n```'
        )
        utils = LLMUtils(mock_gemini_client, rate_limiter=mock_rate_limiter)

        data = await utils.call_llm_with_json_response("prompt", "system")

        assert data == {"mood": "Calm", "genres": ["folk"]}
        mock_rate_limiter.wait_if_needed.assert_awaited_once()
        sent_prompt = mock_gemini_client.generate_content_async.call_args.args[0]
        assert sent_prompt.startswith("system")

    @pytest.mark.asyncio
    async def test_extracts_object_from_surrounding_text(self, mock_gemini_client):
        mock_gemini_client.generate_content_async.return_value = _response(
            'Here you go: {"name": "Brace } inside", "n": 1} Enjoy!'
        )
        utils = LLMUtils(mock_gemini_client)

        data = await utils.call_llm_with_json_response("prompt")

        assert data == {"name": "Brace } inside", "n": 1}

    @pytest.mark.asyncio
    async def test_malformed_json_raises_llm_error(self, mock_gemini_client):
        mock_gemini_client.generate_content_async.return_value = _response("not json at all")
        utils = LLMUtils(mock_gemini_client)

        with pytest.raises(LLMError):
            await utils.call_llm_with_json_response("prompt")

    @pytest.mark.asyncio
    async def test_call_failure_raises_llm_error(self, mock_gemini_client):
        mock_gemini_client.generate_content_async.side_effect = RuntimeError("network down")
        utils = LLMUtils(mock_gemini_client)

        with pytest.raises(LLMError):
            await utils.call_llm_with_json_response("prompt")

    @pytest.mark.asyncio
    async def test_retries_after_bad_output(self, mock_gemini_client):
        mock_gemini_client.generate_content_async.side_effect = [
            _response("garbage"),
            _response('{"ok": true}')
        ]
        utils = LLMUtils(mock_gemini_client)

        data = await utils.call_llm_with_json_response("prompt", max_retries=1)

        assert data == {"ok": True}

    @pytest.mark.asyncio
    async def test_without_client(self):
        with pytest.raises(LLMError):
            await LLMUtils(None).call_llm_with_json_response("prompt")
