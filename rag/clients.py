# rag/clients.py
"""
Model-endpoint boundary.

Builds the OpenAI client handle and turns raw SDK responses into the two
result types the rest of the package works with. Nothing past this module
touches an SDK response object.
"""
import logging

import pydantic
from django.conf import settings
from openai import OpenAI
from pydantic import BaseModel, Field

from rag.exceptions import UpstreamError

log = logging.getLogger(__name__)


class EmbeddingResult(BaseModel):
    vector: list[float] = Field(min_length=1, description="Embedding vector")


class ChatResult(BaseModel):
    content: str = Field(min_length=1, description="Assistant message text")


def get_openai_client(api_key=None, timeout=None, max_retries=None) -> OpenAI:
    """One client per process; timeouts and retries apply to every call."""
    return OpenAI(
        api_key=api_key or settings.OPENAI_API_KEY,
        timeout=timeout if timeout is not None else settings.RAG_MODEL_TIMEOUT,
        max_retries=max_retries if max_retries is not None else settings.RAG_MODEL_MAX_RETRIES,
    )


def parse_embedding(response, model: str, dimensions: int | None = None) -> EmbeddingResult:
    data = getattr(response, "data", None) or []
    if not data:
        raise UpstreamError("embedding endpoint returned no vectors", model=model)
    try:
        result = EmbeddingResult(vector=list(data[0].embedding))
    except (pydantic.ValidationError, TypeError) as exc:
        raise UpstreamError("malformed embedding payload", model=model) from exc
    if dimensions and len(result.vector) != dimensions:
        raise UpstreamError(
            "unexpected embedding dimension", model=model,
            details={"expected": dimensions, "got": len(result.vector)},
        )
    return result


def parse_chat(response, model: str) -> ChatResult:
    choices = getattr(response, "choices", None) or []
    if not choices:
        raise UpstreamError("chat endpoint returned no choices", model=model)
    content = (choices[0].message.content or "").strip()
    try:
        return ChatResult(content=content)
    except pydantic.ValidationError as exc:
        raise UpstreamError("chat endpoint returned empty content", model=model) from exc
