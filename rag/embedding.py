# rag/embedding.py
import logging
from concurrent.futures import ThreadPoolExecutor

from openai import OpenAIError

from rag.clients import parse_embedding
from rag.exceptions import UpstreamError, ValidationError

log = logging.getLogger(__name__)

EMBED_MODEL = "text-embedding-3-small"
EMBED_DIMENSIONS = 1536


class EmbeddingGenerator:
    """Text → vector through the embeddings endpoint. No caching."""

    def __init__(self, client, model=EMBED_MODEL, dimensions=EMBED_DIMENSIONS, workers=1):
        self.client     = client
        self.model      = model
        self.dimensions = dimensions
        self.workers    = max(1, int(workers or 1))

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ValidationError("cannot embed empty text", field="text")
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except OpenAIError as exc:
            raise UpstreamError("embedding call failed", model=self.model) from exc
        return parse_embedding(response, self.model, self.dimensions).vector

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """
        Embed every text, returning vectors in input order.

        With more than one worker the calls overlap; the first failure is
        re-raised and calls that have not started yet are cancelled.
        """
        if self.workers == 1 or len(texts) <= 1:
            return [self.embed(t) for t in texts]

        pool = ThreadPoolExecutor(max_workers=min(self.workers, len(texts)))
        try:
            futures = [pool.submit(self.embed, t) for t in texts]
            return [f.result() for f in futures]
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
