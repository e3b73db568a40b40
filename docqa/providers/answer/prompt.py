"""Prompt construction shared by every answer provider.

Keeping the prompt in one place guarantees that switching
``ANSWER_PROVIDER`` changes the model, never the instructions.
"""

from __future__ import annotations

from collections.abc import Sequence

from docqa.interfaces.answer_provider import AnswerContextInput

NOT_FOUND_ANSWER = "I couldn't find information about that in your documents."
FALLBACK_ANSWER = "Sorry, I was unable to generate an answer."

SYSTEM_PROMPT = (
    "You are an intelligent assistant helping users answer questions based on uploaded documents.\n"
    "Answer the question as clearly as possible using only the provided document context.\n"
    f'If the answer is not found in the document context, say "{NOT_FOUND_ANSWER}"\n'
    "Format your answer to be reader-friendly, using bullet points or numbered lists when appropriate."
)


def format_contexts(contexts: Sequence[AnswerContextInput]) -> str:
    """Render contexts as numbered ``Context N (page P):`` blocks."""
    blocks = []
    for i, context in enumerate(contexts):
        page_info = f" (page {context.page_number})" if context.page_number is not None else ""
        blocks.append(f"Context {i + 1}{page_info}:\n{context.content}\n")
    return "\n".join(blocks)


def build_user_prompt(question: str, contexts: Sequence[AnswerContextInput]) -> str:
    return (
        f'Here\'s the question: "{question}"\n'
        "Here's the relevant context from the document:\n"
        f"{format_contexts(contexts)}"
    )
