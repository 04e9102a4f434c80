# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client using LiteLLM.

The performance analyst only needs one operation from the chat endpoint:
send a prompt, receive text. This module wraps LiteLLM's ``acompletion``
and maps provider outcomes onto a small error taxonomy:

- LLMError: terminal failure (network, timeout, provider error)
- ChatRejectedError: the provider declined to answer (safety or rate limit)
- TruncatedOutputError: generation hit the token ceiling before producing text

There is no automatic retry unless ``max_retries`` is configured; a failure
is surfaced to the caller once.

Example:
    >>> from src.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("Summarise my week", max_tokens=512)
    >>> print(response.content)
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import litellm
from litellm import acompletion

from src.core.config.settings import LLMSettings, get_settings

logger = logging.getLogger(__name__)

# Finish reasons as normalised by LiteLLM (Gemini's SAFETY/MAX_TOKENS map here)
FINISH_REASON_LENGTH = "length"
FINISH_REASON_CONTENT_FILTER = "content_filter"


@dataclass
class LLMResponse:
    """Response from an LLM completion.

    Attributes:
        content: The generated text content.
        model: The model that generated the response.
        tokens_input: Number of input tokens used.
        tokens_output: Number of output tokens generated.
        finish_reason: Why generation stopped (stop, length, etc.).
        raw_response: Original response object from LiteLLM.
    """

    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[object] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used (input + output)."""
        return self.tokens_input + self.tokens_output


class LLMError(Exception):
    """Exception raised when LLM operation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        error_code: Error code if available.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize LLMError.

        Args:
            message: Error description.
            model: Model that caused the error.
            error_code: Error code if available.
            original_error: Original exception if any.
        """
        self.message = message
        self.model = model
        self.error_code = error_code
        self.original_error = original_error
        super().__init__(self.message)


class ChatRejectedError(LLMError):
    """The provider declined to answer (safety filter or rate limit)."""


class TruncatedOutputError(LLMError):
    """Generation hit the output token ceiling without returning text."""


@dataclass
class Message:
    """A message in a conversation.

    Attributes:
        role: Message role (system, user, assistant).
        content: Message text content.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary format for LiteLLM."""
        return {"role": self.role, "content": self.content}


class LLMClient:
    """Client for chat completions via LiteLLM.

    Attributes:
        model: Default model to use for completions.
        timeout: Request timeout in seconds.
        max_retries: Retry attempts handed to LiteLLM.

    Example:
        >>> client = LLMClient()
        >>> response = await client.complete(
        ...     prompt="Which subject needs the most work?",
        ...     max_tokens=1024,
        ... )
        >>> print(response.content)
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the LLM client.

        Args:
            model: Default model in LiteLLM format. Falls back to settings.
            timeout: Request timeout in seconds. Falls back to settings.
            max_retries: Retry attempts. Falls back to settings.
            llm_settings: LLM configuration. Uses get_settings() if None.
        """
        self._settings = llm_settings or get_settings().llm

        self._model = model or self._settings.model
        self._timeout = timeout or self._settings.request_timeout
        self._max_retries = (
            max_retries if max_retries is not None else self._settings.max_retries
        )

        self._configure_litellm()

        logger.info(
            "LLMClient initialized with model=%s, timeout=%.1fs, max_retries=%d",
            self._model,
            self._timeout,
            self._max_retries,
        )

    def _configure_litellm(self) -> None:
        """Configure LiteLLM global settings."""
        litellm.set_verbose = False
        litellm.drop_params = True

    def _get_provider_params(self) -> dict[str, str]:
        """Get the api_key to pass directly to acompletion(), if configured."""
        if self._settings.google_api_key is None:
            return {}
        return {"api_key": self._settings.google_api_key.get_secret_value()}

    @property
    def model(self) -> str:
        """Get the default model."""
        return self._model

    @property
    def timeout(self) -> float:
        """Get the request timeout."""
        return self._timeout

    @property
    def max_retries(self) -> int:
        """Get the retry budget."""
        return self._max_retries

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1024,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        messages: Optional[list[Message]] = None,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: User prompt text.
            max_tokens: Maximum output tokens.
            model: Override default model for this request.
            system_prompt: Optional system prompt to set context.
            messages: Previous conversation messages (if multi-turn).
            temperature: Sampling temperature. Falls back to settings.
            **kwargs: Additional LiteLLM parameters.

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            ChatRejectedError: If the provider declined the request.
            TruncatedOutputError: If the token ceiling was hit with no text.
            LLMError: If generation fails for any other reason.
            ValueError: If prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        use_model = model or self._model

        chat_messages: list[dict[str, str]] = []

        if system_prompt:
            chat_messages.append({"role": "system", "content": system_prompt})

        if messages:
            chat_messages.extend([m.to_dict() for m in messages])

        chat_messages.append({"role": "user", "content": prompt})

        try:
            response = await acompletion(
                model=use_model,
                messages=chat_messages,
                temperature=(
                    temperature if temperature is not None else self._settings.temperature
                ),
                max_tokens=max_tokens,
                timeout=self._timeout,
                num_retries=self._max_retries,
                **self._get_provider_params(),
                **kwargs,
            )
        except (litellm.RateLimitError, litellm.ContentPolicyViolationError) as e:
            logger.warning(
                "Completion rejected: model=%s, error=%s",
                use_model,
                str(e),
            )
            raise ChatRejectedError(
                message=f"Completion rejected: {str(e)}",
                model=use_model,
                error_code="rejected",
                original_error=e,
            ) from e
        except Exception as e:
            logger.error(
                "Completion failed: model=%s, prompt_length=%d, error=%s",
                use_model,
                len(prompt),
                str(e),
            )
            raise LLMError(
                message=f"Completion failed: {str(e)}",
                model=use_model,
                original_error=e,
            ) from e

        if not response.choices:
            raise LLMError(message="No response from model", model=use_model)

        choice = response.choices[0]
        content = choice.message.content or ""
        finish_reason = choice.finish_reason or "stop"

        if finish_reason == FINISH_REASON_CONTENT_FILTER:
            raise ChatRejectedError(
                message="Completion blocked by safety filter",
                model=use_model,
                error_code=finish_reason,
            )

        if not content.strip():
            if finish_reason == FINISH_REASON_LENGTH:
                raise TruncatedOutputError(
                    message=f"Output hit the {max_tokens} token ceiling",
                    model=use_model,
                    error_code=finish_reason,
                )
            raise LLMError(
                message="No response from model",
                model=use_model,
                error_code=finish_reason,
            )

        usage = getattr(response, "usage", None)
        tokens_input = getattr(usage, "prompt_tokens", 0) or 0
        tokens_output = getattr(usage, "completion_tokens", 0) or 0

        logger.debug(
            "Completion generated: model=%s, tokens_in=%d, tokens_out=%d",
            use_model,
            tokens_input,
            tokens_output,
        )

        return LLMResponse(
            content=content,
            model=use_model,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            finish_reason=finish_reason,
            raw_response=response,
        )
