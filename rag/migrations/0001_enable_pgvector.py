# rag/migrations/0001_enable_pgvector.py
from django.db import migrations
from pgvector.django import VectorExtension


class Migration(migrations.Migration):
    dependencies = []

    # CREATE EXTENSION IF NOT EXISTS vector; a no-op on non-PostgreSQL backends
    operations = [
        VectorExtension(),
    ]
