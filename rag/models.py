# rag/models.py
import uuid

from django.conf import settings
from django.db import models
from pgvector.django import VectorField


class Media(models.Model):
    KIND_FILE  = "file"
    KIND_IMAGE = "image"
    KIND_CHOICES = [(KIND_FILE, "File"), (KIND_IMAGE, "Image")]

    id           = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner        = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    name         = models.CharField(max_length=512)
    kind         = models.CharField(max_length=16, choices=KIND_CHOICES)
    storage_key  = models.CharField(max_length=512)
    content_type = models.CharField(max_length=128, blank=True, default="")
    created_at   = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "-created_at"], name="rag_media_owner_created_idx"),
        ]

    def as_dict(self):
        return {
            "id":         str(self.id),
            "name":       self.name,
            "kind":       self.kind,
            "owner_id":   self.owner_id,
            "created_at": self.created_at.isoformat(),
        }

    def __str__(self):
        return f"{self.name} ({self.kind})"


class Chunk(models.Model):
    id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    media       = models.ForeignKey(Media, on_delete=models.CASCADE, related_name="chunks")
    chunk_text  = models.TextField()
    embedding   = VectorField(dimensions=1536)
    sequence    = models.PositiveIntegerField()  # 1-based position in the artifact
    page_number = models.PositiveIntegerField(null=True, blank=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["media"], name="rag_chunk_media_idx"),
        ]
        unique_together = (("media", "sequence"),)

    def __str__(self):
        return f"{self.media_id} #{self.sequence}"


class WorkspaceMedia(models.Model):
    workspace_id = models.CharField(max_length=128, db_index=True)
    media        = models.ForeignKey(Media, on_delete=models.CASCADE, related_name="workspace_links")
    added_by     = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    created_at   = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = (("workspace_id", "media"),)

    def __str__(self):
        return f"{self.workspace_id} → {self.media_id}"
