"""Text chunking with overlapping word windows.

Splits extracted document text into strings sized for the embedding model.
The input is tokenised on whitespace and words are accumulated into a
buffer; each word costs ``len(word) + 1`` characters.  Once the running
length reaches ``max_chunk_size`` the buffer is emitted as one chunk and the
next buffer is seeded with the last ``overlap // 5`` words of the emitted
one, so concepts spanning a boundary appear in both neighbouring chunks.
Whatever remains in the buffer after the last word is emitted as a final
chunk, even when it holds only the carried-over overlap words.

Example with ``max_chunk_size=12`` and ``overlap=5`` (one word of overlap)::

    "alpha beta gamma delta"  ->  ["alpha beta gamma", "gamma delta"]

Whitespace inside the text is normalised: chunks are always joined with
single spaces.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Rough average characters per word; converts a character overlap budget
# into a word count.
_CHARS_PER_WORD = 5


class TextChunker:
    """Splits text into overlapping, roughly fixed-size word windows.

    Parameters
    ----------
    max_chunk_size:
        Character budget per chunk (default 1000).  Must be positive.
    overlap:
        Character budget shared between consecutive chunks (default 200).
        Must be non-negative; values >= ``max_chunk_size`` are capped at
        ``max_chunk_size - 1``.
    """

    def __init__(self, max_chunk_size: int = 1000, overlap: int = 200) -> None:
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {overlap}")
        self._max_chunk_size = max_chunk_size
        self._overlap = min(overlap, max_chunk_size - 1)

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    @property
    def overlap_words(self) -> int:
        """Maximum number of words carried from one chunk into the next."""
        return self._overlap // _CHARS_PER_WORD

    def split(self, text: str) -> list[str]:
        """Split *text* into overlapping chunks.

        Returns an empty list for empty or whitespace-only text.  The same
        input always produces the same output.
        """
        words = text.split()
        if not words:
            return []

        chunks: list[str] = []
        buffer: list[str] = []
        length = 0

        for word in words:
            buffer.append(word)
            length += len(word) + 1

            if length >= self._max_chunk_size:
                chunks.append(" ".join(buffer))
                # Never seed with the whole buffer or the next chunk could
                # repeat it without consuming new input.
                keep = min(self.overlap_words, len(buffer) - 1)
                buffer = buffer[len(buffer) - keep :] if keep else []
                length = len(" ".join(buffer))

        if buffer:
            chunks.append(" ".join(buffer))

        logger.debug(
            "text_chunked",
            words=len(words),
            chunks=len(chunks),
            max_chunk_size=self._max_chunk_size,
            overlap=self._overlap,
        )
        return chunks
