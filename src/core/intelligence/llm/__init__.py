# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client module using LiteLLM.

Example:
    >>> from src.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("How is my accuracy trending?")
    >>> print(response.content)
"""

from src.core.intelligence.llm.client import (
    ChatRejectedError,
    LLMClient,
    LLMError,
    LLMResponse,
    Message,
    TruncatedOutputError,
)

__all__ = [
    "ChatRejectedError",
    "LLMClient",
    "LLMError",
    "LLMResponse",
    "Message",
    "TruncatedOutputError",
]
