"""Conversation engines the completion loop runs on."""

from .chat_session import ChatSession, LiteLLMChatSession, RunResult

__all__ = ["ChatSession", "LiteLLMChatSession", "RunResult"]
