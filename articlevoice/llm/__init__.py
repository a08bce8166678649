"""LLM-facing abstractions for translation and social hooks.

This package defines prompt libraries, provider interfaces, and the shared
HTTP client, rate limiting, and cache utilities.
"""

from .cache import ResponseCache
from .openai_client import OpenAIChatClient
from .prompts import PromptLibrary
from .rate_limiter import RateLimiter
from .social_hooks import OpenAISocialHookGenerator, SocialHookGenerator
from .translator import OpenAITranslator, Translator

__all__ = [
    "OpenAIChatClient",
    "PromptLibrary",
    "Translator",
    "OpenAITranslator",
    "SocialHookGenerator",
    "OpenAISocialHookGenerator",
    "RateLimiter",
    "ResponseCache",
]
