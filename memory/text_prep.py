"""Text preparation for embedding: field joining and recursive chunking."""

from __future__ import annotations

import re

CHUNK_SIZE = 512
MIN_CHUNK_CHARS = 24

# paragraphs, then sentences, then words
_LEVELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\n\s*\n"), "\n\n"),
    (re.compile(r"(?<=[.!?;:])\s+"), " "),
    (re.compile(r"\s+"), " "),
)


def embedding_text(statement: str, notes: str | None = None) -> str:
    """Text embedded for a memory: statement, then notes after a blank line."""
    if notes and notes.strip():
        return f"{statement}\n\n{notes}"
    return statement


def combine_fields(*values: str | None) -> str:
    """Join non-empty values with blank lines."""
    return "\n\n".join(v.strip() for v in values if v and v.strip())


def _split(text: str, level: int, size: int) -> list[str]:
    if len(text) <= size:
        return [text]
    if level >= len(_LEVELS):
        return [text[i : i + size] for i in range(0, len(text), size)]

    pattern, joiner = _LEVELS[level]
    chunks: list[str] = []
    buffer = ""
    for piece in (p.strip() for p in pattern.split(text)):
        if not piece:
            continue
        for part in _split(piece, level + 1, size):
            candidate = f"{buffer}{joiner}{part}" if buffer else part
            if len(candidate) <= size:
                buffer = candidate
            else:
                if buffer:
                    chunks.append(buffer)
                buffer = part
    if buffer:
        chunks.append(buffer)
    return chunks


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, min_chars: int = MIN_CHUNK_CHARS) -> list[str]:
    """Split text into chunks of at most ``chunk_size`` characters.

    Splits on paragraphs first, then sentences, then words, only descending a
    level when a piece is still too large. Chunks shorter than ``min_chars``
    are folded into their predecessor.
    """
    if not text or not text.strip():
        return []
    merged: list[str] = []
    for chunk in _split(text.strip(), 0, chunk_size):
        if merged and len(chunk) < min_chars and len(merged[-1]) + len(chunk) + 1 <= chunk_size:
            merged[-1] = f"{merged[-1]} {chunk}"
        else:
            merged.append(chunk)
    return merged


def prepare_chunks(*fields: str | None) -> list[str]:
    """Combine fields and chunk them; short text stays a single chunk."""
    combined = combine_fields(*fields)
    if not combined:
        return []
    if len(combined) < CHUNK_SIZE:
        return [combined]
    return chunk_text(combined)
