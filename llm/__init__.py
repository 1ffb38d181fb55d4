"""LLM client utilities."""

from .client import ChatMessage, LLMClient, LLMUnavailableError, safe_json_loads

__all__ = ["ChatMessage", "LLMClient", "LLMUnavailableError", "safe_json_loads"]
