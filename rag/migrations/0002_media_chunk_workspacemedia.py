# rag/migrations/0002_media_chunk_workspacemedia.py
import uuid

import django.db.models.deletion
import pgvector.django
from django.conf import settings
from django.db import migrations, models


def create_hnsw_index(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(
        "CREATE INDEX IF NOT EXISTS rag_chunk_embedding_hnsw "
        "ON rag_chunk USING hnsw (embedding vector_cosine_ops)"
    )


def drop_hnsw_index(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute("DROP INDEX IF EXISTS rag_chunk_embedding_hnsw")


class Migration(migrations.Migration):

    dependencies = [
        ("rag", "0001_enable_pgvector"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Media",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=512)),
                ("kind", models.CharField(choices=[("file", "File"), ("image", "Image")], max_length=16)),
                ("storage_key", models.CharField(max_length=512)),
                ("content_type", models.CharField(blank=True, default="", max_length=128)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["owner", "-created_at"], name="rag_media_owner_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="Chunk",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("chunk_text", models.TextField()),
                ("embedding", pgvector.django.VectorField(dimensions=1536)),
                ("sequence", models.PositiveIntegerField()),
                ("page_number", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("media", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="chunks", to="rag.media")),
            ],
            options={
                "indexes": [models.Index(fields=["media"], name="rag_chunk_media_idx")],
                "unique_together": {("media", "sequence")},
            },
        ),
        migrations.CreateModel(
            name="WorkspaceMedia",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("workspace_id", models.CharField(db_index=True, max_length=128)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("added_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
                ("media", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="workspace_links", to="rag.media")),
            ],
            options={
                "unique_together": {("workspace_id", "media")},
            },
        ),
        migrations.RunPython(create_hnsw_index, drop_hnsw_index),
    ]
