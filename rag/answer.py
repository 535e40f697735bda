# rag/answer.py
import logging
from dataclasses import dataclass, field

from openai import OpenAIError

from rag.clients import parse_chat
from rag.exceptions import UpstreamError, ValidationError

log = logging.getLogger(__name__)

CHAT_MODEL  = "gpt-4o-mini"
TEMPERATURE = 0.7
MAX_TOKENS  = 500

SYSTEM_PROMPT = (
    "You are a helpful AI assistant that answers questions based only on the "
    "provided context. Always cite the source of your information when "
    "possible. If the information is not in the context, say so clearly.\n"
    "Here is the context:\n\n{context}"
)
NO_CONTEXT = "(No context was found for this question. Tell the user the workspace sources do not cover it.)"


@dataclass
class Answer:
    answer: str
    sources: list = field(default_factory=list)

    def as_dict(self):
        return {"answer": self.answer, "sources": [m.as_dict() for m in self.sources]}


def _chunk_of(item):
    # accepts ScoredChunk or a bare Chunk
    return getattr(item, "chunk", item)


def build_context(chunks) -> str:
    return "\n\n".join(c.chunk_text for c in chunks)


def distinct_sources(chunks) -> list:
    seen, out = set(), []
    for c in chunks:
        if c.media_id not in seen:
            seen.add(c.media_id)
            out.append(c.media)
    return out


class AnswerComposer:
    def __init__(self, client, model=CHAT_MODEL, temperature=TEMPERATURE, max_tokens=MAX_TOKENS):
        self.client      = client
        self.model       = model
        self.temperature = temperature
        self.max_tokens  = max_tokens

    def compose(self, query: str, context) -> Answer:
        if not query or not query.strip():
            raise ValidationError("query text is required", field="query")
        chunks = [_chunk_of(item) for item in context]
        system = SYSTEM_PROMPT.format(context=build_context(chunks) if chunks else NO_CONTEXT)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user",   "content": query},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as exc:
            raise UpstreamError("chat completion failed", model=self.model) from exc

        result = parse_chat(response, self.model)
        return Answer(answer=result.content, sources=distinct_sources(chunks))
