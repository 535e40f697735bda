# rag/retrieval.py
"""
Similarity search over stored chunk embeddings.

The engine embeds the query and hands the vector to a search backend;
backends only differ in where cosine similarity is computed (pgvector in
the database, numpy in process). Both apply the same threshold, ordering
and top-k rules, so callers never care which one is active.
"""
import logging
from dataclasses import dataclass

import numpy as np
from django.db import DatabaseError, connection
from django.db.models import Min
from pgvector.django import CosineDistance

from rag.exceptions import PersistenceError, ValidationError
from rag.models import Chunk, WorkspaceMedia

log = logging.getLogger(__name__)

DEFAULT_K         = 5
DEFAULT_THRESHOLD = 0.7


@dataclass
class ScoredChunk:
    chunk: Chunk
    similarity: float

    def as_dict(self):
        return {
            "chunk_id":    str(self.chunk.id),
            "media_id":    str(self.chunk.media_id),
            "sequence":    self.chunk.sequence,
            "page_number": self.chunk.page_number,
            "chunk_text":  self.chunk.chunk_text,
            "similarity":  round(self.similarity, 6),
        }


def _order_key(sc):
    # similarity desc, then insertion order
    return (-sc.similarity, sc.chunk.created_at, sc.chunk.sequence, sc.chunk.id)


def cosine_similarities(matrix, query):
    """Row-wise cosine similarity; rows (or a query) with zero norm score 0."""
    matrix = np.asarray(matrix, dtype=float)
    query  = np.asarray(query, dtype=float)
    norms  = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots   = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(norms > 0, dots / norms, 0.0)


# ───────── backends ─────────
class PgVectorSearch:
    name = "pgvector"

    def queryset(self, vector, media_ids, threshold):
        """Unsliced candidate query; distance = 1 - similarity."""
        return (
            Chunk.objects
            .filter(media_id__in=media_ids)
            .annotate(distance=CosineDistance("embedding", vector))
            .filter(distance__lte=1.0 - threshold)
            .select_related("media")
            .order_by("distance", "created_at", "sequence", "id")
        )

    def search(self, vector, media_ids, k, threshold):
        qs = self.queryset(vector, media_ids, threshold)[:k]
        return [ScoredChunk(chunk=c, similarity=1.0 - float(c.distance)) for c in qs]

    def rank_media(self, vector, media_ids, limit):
        rows = (
            Chunk.objects
            .filter(media_id__in=media_ids)
            .values("media_id")
            .annotate(distance=Min(CosineDistance("embedding", vector)))
            .order_by("distance")[:limit]
        )
        return [(r["media_id"], 1.0 - float(r["distance"])) for r in rows]


class InProcessSearch:
    name = "memory"

    def _scored(self, vector, media_ids):
        chunks = list(Chunk.objects.filter(media_id__in=media_ids).select_related("media"))
        if not chunks:
            return []
        sims = cosine_similarities([c.embedding for c in chunks], vector)
        return [ScoredChunk(chunk=c, similarity=float(s)) for c, s in zip(chunks, sims)]

    def search(self, vector, media_ids, k, threshold):
        hits = [sc for sc in self._scored(vector, media_ids) if sc.similarity >= threshold]
        hits.sort(key=_order_key)
        return hits[:k]

    def rank_media(self, vector, media_ids, limit):
        best = {}
        for sc in self._scored(vector, media_ids):
            mid = sc.chunk.media_id
            best[mid] = max(best.get(mid, -1.0), sc.similarity)
        ranked = sorted(best.items(), key=lambda kv: -kv[1])
        return ranked[:limit]


def get_search_backend(name="auto"):
    if name == "auto":
        name = "pgvector" if connection.vendor == "postgresql" else "memory"
    if name == "pgvector":
        return PgVectorSearch()
    if name == "memory":
        return InProcessSearch()
    raise ValueError(f"unknown search backend {name!r}")


# ───────── engine ─────────
class RetrievalEngine:
    def __init__(self, embedder, backend, k=DEFAULT_K, threshold=DEFAULT_THRESHOLD):
        self.embedder  = embedder
        self.backend   = backend
        self.k         = k
        self.threshold = threshold

    def workspace_media_ids(self, workspace_id) -> set:
        try:
            return set(
                WorkspaceMedia.objects
                .filter(workspace_id=workspace_id)
                .values_list("media_id", flat=True)
            )
        except DatabaseError as exc:
            raise PersistenceError("workspace lookup failed", operation="select",
                                   details={"workspace_id": workspace_id}) from exc

    def retrieve(self, query: str, scope_media_ids, k: int | None = None,
                 threshold: float | None = None) -> list[ScoredChunk]:
        k = self.k if k is None else k
        threshold = self.threshold if threshold is None else threshold
        if not query or not query.strip():
            raise ValidationError("query text is required", field="query")
        if k < 1:
            raise ValidationError("k must be at least 1", field="k")
        if not -1.0 <= threshold <= 1.0:
            raise ValidationError("threshold must be within [-1, 1]", field="threshold")

        scope = set(scope_media_ids or ())
        if not scope:
            return []

        vector = self.embedder.embed(query)
        try:
            hits = self.backend.search(vector, scope, k, threshold)
        except DatabaseError as exc:
            raise PersistenceError("similarity search failed", operation="search") from exc
        log.debug("retrieve backend=%s scope=%d hits=%d", self.backend.name, len(scope), len(hits))
        return hits

    def retrieve_for_workspace(self, query, workspace_id, k=None, threshold=None):
        if not workspace_id:
            raise ValidationError("workspace id is required", field="workspace_id")
        return self.retrieve(query, self.workspace_media_ids(workspace_id), k, threshold)

    def rank_media(self, query: str, media_ids, limit: int = 50):
        """Media ranked by the best similarity of any of their chunks."""
        if not query or not query.strip():
            raise ValidationError("query text is required", field="query")
        scope = set(media_ids or ())
        if not scope:
            return []
        vector = self.embedder.embed(query)
        try:
            return self.backend.rank_media(vector, scope, limit)
        except DatabaseError as exc:
            raise PersistenceError("similarity ranking failed", operation="search") from exc
