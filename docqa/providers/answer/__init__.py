"""Answer (chat completion) provider implementations.

All three build their prompts with :mod:`docqa.providers.answer.prompt`.
"""

from docqa.providers.answer.anthropic_answer_provider import AnthropicAnswerProvider
from docqa.providers.answer.gemini_answer_provider import GeminiAnswerProvider
from docqa.providers.answer.openai_answer_provider import OpenAIAnswerProvider

__all__ = ["AnthropicAnswerProvider", "GeminiAnswerProvider", "OpenAIAnswerProvider"]
