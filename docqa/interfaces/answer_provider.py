"""Abstract base class for answer-synthesis (chat completion) providers.

An answer provider receives the user's question plus the retrieved chunks
and returns the LLM's answer text.  Prompt construction is shared by all
implementations (see ``docqa/providers/answer/prompt.py``) so switching
provider never changes what the model is asked.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol


class AnswerContextInput(Protocol):
    """Anything with ``content`` and an optional ``page_number``.

    Both :class:`~docqa.models.Chunk` and :class:`~docqa.models.ContextView`
    satisfy this.
    """

    content: str
    page_number: int | None


# Concrete implementations:
#   AnthropicAnswerProvider  - Claude via the Messages API
#   OpenAIAnswerProvider     - GPT via Chat Completions
#   GeminiAnswerProvider     - Gemini via google-generativeai
# Located in: docqa/providers/answer/
class IAnswerProvider(ABC):
    """Contract for LLM services that answer a question from document context."""

    @abstractmethod
    async def answer(self, question: str, contexts: list[AnswerContextInput]) -> str:
        """Answer *question* using only the supplied *contexts*.

        Parameters
        ----------
        question:
            The user's question, already stripped and non-empty.
        contexts:
            Retrieved chunks, nearest first.

        Returns
        -------
        str
            The model's answer, or ``"Sorry, I was unable to generate an
            answer."`` when the response carried no text.

        Raises
        ------
        docqa.utils.errors.ProviderError
            On transport, authentication, or API errors.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
