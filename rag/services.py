# rag/services.py
"""
Service handles for the host application.

``build_services`` wires every component from explicitly passed
collaborators; ``get_services`` keeps one instance per process. Tests
build their own with fake clients and in-memory storage.
"""
import logging
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from rag.answer import AnswerComposer
from rag.clients import get_openai_client
from rag.embedding import EmbeddingGenerator
from rag.exceptions import NotFoundError, ValidationError
from rag.extract import Extractor
from rag.ingest import IngestionPipeline
from rag.models import Media, WorkspaceMedia
from rag.retrieval import RetrievalEngine, get_search_backend
from rag.storage import BlobStore

log = logging.getLogger(__name__)


class RagServices:
    def __init__(self, pipeline, retrieval, composer):
        self.pipeline  = pipeline
        self.retrieval = retrieval
        self.composer  = composer

    # ───────── inbound operations ─────────
    def ingest_artifact(self, owner, workspace_id, artifact, kind, name, content_type=""):
        return self.pipeline.ingest(artifact, owner, workspace_id, name,
                                    kind=kind, content_type=content_type)

    def ask_question(self, workspace_id, query, k=None):
        if not query or not query.strip():
            raise ValidationError("query text is required", field="query")
        hits = self.retrieval.retrieve_for_workspace(query, workspace_id, k=k)
        log.info("ask workspace=%s context_chunks=%d", workspace_id, len(hits))
        return self.composer.compose(query, hits)

    # ───────── workspace library ─────────
    def workspace_media(self, workspace_id):
        if not workspace_id:
            raise ValidationError("workspace id is required", field="workspace_id")
        return list(
            Media.objects
            .filter(workspace_links__workspace_id=workspace_id)
            .order_by("-created_at")
        )

    def link_media(self, media_id, workspace_id, user):
        """Add one of the user's existing media to another workspace."""
        if not workspace_id:
            raise ValidationError("workspace id is required", field="workspace_id")
        if not media_id:
            raise ValidationError("media id is required", field="media_id")
        try:
            media = Media.objects.get(pk=media_id, owner=user)
        except (Media.DoesNotExist, DjangoValidationError) as exc:
            raise NotFoundError("media", media_id) from exc
        link, created = WorkspaceMedia.objects.get_or_create(
            workspace_id=workspace_id, media=media, defaults={"added_by": user},
        )
        if created:
            log.info("linked media=%s workspace=%s", media.id, workspace_id)
        return link

    def library(self, owner, query=""):
        media = {m.id: m for m in Media.objects.filter(owner=owner).order_by("-created_at")}
        if not query:
            return [m.as_dict() for m in media.values()]
        ranked = self.retrieval.rank_media(query, media.keys())
        return [dict(media[mid].as_dict(), similarity=round(sim, 6)) for mid, sim in ranked]


def build_services(client=None, storage=None) -> RagServices:
    client   = client if client is not None else get_openai_client()
    embedder = EmbeddingGenerator(
        client,
        model=settings.RAG_EMBED_MODEL,
        dimensions=settings.RAG_EMBED_DIMENSIONS,
        workers=settings.RAG_EMBED_WORKERS,
    )
    pipeline = IngestionPipeline(
        BlobStore(storage),
        Extractor(client, vision_model=settings.RAG_VISION_MODEL),
        embedder,
        chunk_size=settings.RAG_CHUNK_SIZE,
    )
    retrieval = RetrievalEngine(
        embedder,
        get_search_backend(settings.RAG_SEARCH_BACKEND),
        k=settings.RAG_MATCH_COUNT,
        threshold=settings.RAG_MATCH_THRESHOLD,
    )
    composer = AnswerComposer(client, model=settings.RAG_CHAT_MODEL)
    return RagServices(pipeline, retrieval, composer)


@lru_cache(maxsize=None)
def get_services() -> RagServices:
    return build_services()
