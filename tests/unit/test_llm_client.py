# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for LLMClient.

LiteLLM's acompletion is patched, so no provider is contacted.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import litellm
import pytest
from pydantic import SecretStr

from src.core.config.settings import LLMSettings
from src.core.intelligence.llm.client import (
    ChatRejectedError,
    LLMClient,
    LLMError,
    LLMResponse,
    Message,
    TruncatedOutputError,
)

ACOMPLETION = "src.core.intelligence.llm.client.acompletion"


def _completion(content: str | None, finish_reason: str = "stop") -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.choices[0].finish_reason = finish_reason
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 5
    return response


class TestLLMClientInit:
    """Test cases for LLMClient initialization."""

    def test_default_initialization(self) -> None:
        """Test that default initialization uses settings values."""
        with patch("src.core.intelligence.llm.client.get_settings") as mock_settings:
            mock_settings.return_value.llm.model = "gemini/gemini-2.5-flash"
            mock_settings.return_value.llm.request_timeout = 60.0
            mock_settings.return_value.llm.max_retries = 0

            client = LLMClient()

            assert client.model == "gemini/gemini-2.5-flash"
            assert client.timeout == 60.0
            assert client.max_retries == 0

    def test_overrides(self, llm_settings: LLMSettings) -> None:
        """Test explicit model, timeout and retries."""
        client = LLMClient(
            model="gemini/gemini-2.0-flash",
            timeout=10.0,
            max_retries=2,
            llm_settings=llm_settings,
        )

        assert client.model == "gemini/gemini-2.0-flash"
        assert client.timeout == 10.0
        assert client.max_retries == 2


class TestComplete:
    """Test cases for LLMClient.complete."""

    @pytest.mark.asyncio
    async def test_successful_completion(self, llm_settings: LLMSettings) -> None:
        """Test a normal reply and the request sent to LiteLLM."""
        client = LLMClient(llm_settings=llm_settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion("Focus on Databases.")

            response = await client.complete(
                "Which subject?",
                max_tokens=256,
                system_prompt="You are an analyst.",
                messages=[Message(role="assistant", content="Hi")],
            )

        assert isinstance(response, LLMResponse)
        assert response.content == "Focus on Databases."
        assert response.total_tokens == 15

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["model"] == "gemini/gemini-2.5-flash"
        assert kwargs["max_tokens"] == 256
        assert kwargs["num_retries"] == 0
        assert "api_key" not in kwargs
        assert [m["role"] for m in kwargs["messages"]] == ["system", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_api_key_is_passed(self) -> None:
        """Test that a configured key reaches acompletion."""
        settings = LLMSettings(GOOGLE_API_KEY=SecretStr("key-123"))
        client = LLMClient(llm_settings=settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion("ok")
            await client.complete("hello")

        assert mock_acompletion.call_args.kwargs["api_key"] == "key-123"

    @pytest.mark.asyncio
    async def test_empty_prompt(self, llm_settings: LLMSettings) -> None:
        """Test that an empty prompt is rejected before any call."""
        client = LLMClient(llm_settings=llm_settings)

        with pytest.raises(ValueError, match="Prompt cannot be empty"):
            await client.complete("   ")

    @pytest.mark.asyncio
    async def test_truncated_output(self, llm_settings: LLMSettings) -> None:
        """Test the token ceiling with no text."""
        client = LLMClient(llm_settings=llm_settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion("", finish_reason="length")

            with pytest.raises(TruncatedOutputError):
                await client.complete("hello")

    @pytest.mark.asyncio
    async def test_partial_output_is_returned(self, llm_settings: LLMSettings) -> None:
        """Test that text cut at the ceiling is still a reply."""
        client = LLMClient(llm_settings=llm_settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion("Partial", finish_reason="length")

            response = await client.complete("hello")

        assert response.content == "Partial"
        assert response.finish_reason == "length"

    @pytest.mark.asyncio
    async def test_safety_block(self, llm_settings: LLMSettings) -> None:
        """Test a content filter finish reason."""
        client = LLMClient(llm_settings=llm_settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion(None, finish_reason="content_filter")

            with pytest.raises(ChatRejectedError):
                await client.complete("hello")

    @pytest.mark.asyncio
    async def test_rate_limit_is_rejection(self, llm_settings: LLMSettings) -> None:
        """Test that provider rate limits map to ChatRejectedError."""
        client = LLMClient(llm_settings=llm_settings)
        error = litellm.RateLimitError(
            message="quota exceeded", llm_provider="gemini", model="gemini-2.5-flash"
        )

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = error

            with pytest.raises(ChatRejectedError) as exc_info:
                await client.complete("hello")

        assert exc_info.value.error_code == "rejected"
        assert exc_info.value.original_error is error

    @pytest.mark.asyncio
    async def test_other_failures_are_llm_errors(self, llm_settings: LLMSettings) -> None:
        """Test network and provider failures."""
        client = LLMClient(llm_settings=llm_settings)

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = TimeoutError("timed out")

            with pytest.raises(LLMError, match="Completion failed") as exc_info:
                await client.complete("hello")

        assert not isinstance(exc_info.value, ChatRejectedError)

    @pytest.mark.asyncio
    async def test_no_choices(self, llm_settings: LLMSettings) -> None:
        """Test an empty choice list."""
        client = LLMClient(llm_settings=llm_settings)
        response = _completion("ignored")
        response.choices = []

        with patch(ACOMPLETION, new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = response

            with pytest.raises(LLMError, match="No response"):
                await client.complete("hello")
