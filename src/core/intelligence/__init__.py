# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence module for AI-powered operations.

LiteLLM is the single interface to the chat endpoint, so the configured
model can be Gemini (the default) or any other LiteLLM provider.

Example:
    >>> from src.core.intelligence import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("What is my weakest subject?")
"""

from src.core.intelligence.llm import LLMClient

__all__ = [
    "LLMClient",
]
