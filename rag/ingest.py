# rag/ingest.py
"""
Artifact → Media + Chunks.

Blob first, then extract → segment → embed with nothing written to the
database, then one transaction for the Media row, its workspace link and
every chunk. A failure after the blob write deletes the blob again; if that
cleanup fails too the result is tagged ``partial``.
"""
import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction

from rag.exceptions import PersistenceError, RagError, ValidationError
from rag.extract import KIND_FILE, KINDS
from rag.models import Chunk, Media, WorkspaceMedia
from rag.segmenter import DEFAULT_CHUNK_SIZE, segment
from rag.storage import new_key

log = logging.getLogger(__name__)

SUCCESS = "success"
PARTIAL = "partial"
FAILED  = "failed"


@dataclass
class IngestResult:
    status: str
    media: Media | None = None
    chunk_count: int = 0
    error: RagError | None = None
    orphaned_key: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


class IngestionPipeline:
    def __init__(self, blobs, extractor, embedder, chunk_size=DEFAULT_CHUNK_SIZE):
        self.blobs      = blobs
        self.extractor  = extractor
        self.embedder   = embedder
        self.chunk_size = chunk_size

    # ───────── public ─────────
    def ingest(self, artifact: bytes, owner, workspace_id: str, name: str,
               kind: str = KIND_FILE, content_type: str = "") -> IngestResult:
        self._validate(artifact, owner, workspace_id, name, kind)
        log.info("ingest start name=%s kind=%s workspace=%s bytes=%d",
                 name, kind, workspace_id, len(artifact))

        try:
            key = self.blobs.put(new_key(owner.pk, name), artifact)
        except PersistenceError as exc:
            log.error("ingest failed before any write: %s", exc)
            return IngestResult(status=FAILED, error=exc)

        try:
            text    = self.extractor.extract(artifact, kind, name=name, content_type=content_type)
            chunks  = segment(text, self.chunk_size)
            vectors = self.embedder.embed_many(chunks)
            media   = self._persist(owner, workspace_id, name, kind, content_type, key, chunks, vectors)
        except RagError as exc:
            log.exception("ingest failed name=%s key=%s", name, key)
            return self._compensate(key, exc)
        except Exception:
            log.exception("ingest crashed name=%s key=%s", name, key)
            self._compensate(key, None)
            raise

        log.info("ingest done media=%s chunks=%d", media.id, len(chunks))
        return IngestResult(status=SUCCESS, media=media, chunk_count=len(chunks))

    # ───────── helpers ─────────
    @staticmethod
    def _validate(artifact, owner, workspace_id, name, kind):
        if not artifact:
            raise ValidationError("artifact is required", field="artifact")
        if owner is None or getattr(owner, "pk", None) is None:
            raise ValidationError("owner is required", field="owner")
        if not workspace_id or not str(workspace_id).strip():
            raise ValidationError("workspace id is required", field="workspace_id")
        if not name or not name.strip():
            raise ValidationError("artifact name is required", field="name")
        if kind not in KINDS:
            raise ValidationError(f"unknown artifact kind {kind!r}", field="kind")

    def _persist(self, owner, workspace_id, name, kind, content_type, key, chunks, vectors):
        try:
            with transaction.atomic():
                media = Media.objects.create(
                    owner=owner, name=name, kind=kind,
                    storage_key=key, content_type=content_type or "",
                )
                WorkspaceMedia.objects.create(
                    workspace_id=workspace_id, media=media, added_by=owner,
                )
                for seq, (text, vector) in enumerate(zip(chunks, vectors), start=1):
                    Chunk.objects.create(
                        media=media,
                        chunk_text=text,
                        embedding=vector,
                        sequence=seq,
                        page_number=seq if kind == KIND_FILE else None,
                    )
        except DatabaseError as exc:
            raise PersistenceError("could not store media and chunks", operation="insert",
                                   details={"name": name}) from exc
        return media

    def _compensate(self, key, error):
        try:
            self.blobs.delete(key)
        except PersistenceError:
            log.exception("blob cleanup failed; orphaned key=%s", key)
            return IngestResult(status=PARTIAL, error=error, orphaned_key=key)
        return IngestResult(status=FAILED, error=error)
