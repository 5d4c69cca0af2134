"""Adapters for the upstream completion service."""

from .base import CompletionAdapter
from .chat_completions import ChatCompletionsAdapter

__all__ = ["ChatCompletionsAdapter", "CompletionAdapter"]
