# rag/segmenter.py
import re

from rag.exceptions import ValidationError

DEFAULT_CHUNK_SIZE = 1000

# a sentence is a run of non-terminal characters plus its terminal
# punctuation; the trailing run without punctuation counts as a sentence too
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*|[.!?]+")


def split_sentences(text):
    return [s for s in (m.group().strip() for m in _SENTENCE_RE.finditer(text)) if s]


def segment(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """
    Greedily pack sentences into chunks of at most ``max_chunk_size`` chars.

    A sentence longer than ``max_chunk_size`` is never cut; it becomes an
    oversized chunk of its own.
    """
    if max_chunk_size is None or max_chunk_size <= 0:
        raise ValidationError("max_chunk_size must be positive", field="max_chunk_size")
    if not text or not text.strip():
        return []

    chunks, buf = [], ""
    for sentence in split_sentences(text):
        candidate = f"{buf} {sentence}" if buf else sentence
        if buf and len(candidate) > max_chunk_size:
            chunks.append(buf)
            buf = sentence
        else:
            buf = candidate
    if buf:
        chunks.append(buf)
    return chunks
