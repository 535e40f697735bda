# rag/storage.py
import os
import uuid

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from rag.exceptions import PersistenceError


def new_key(owner_id, name=""):
    """Randomised blob key, scoped by owner."""
    ext = os.path.splitext(name)[1].lower()
    return f"{owner_id}/{uuid.uuid4().hex}{ext}"


class BlobStore:
    """Thin put/get/delete facade over a Django ``Storage``."""

    def __init__(self, storage=None):
        self.storage = storage if storage is not None else default_storage

    def put(self, key: str, data: bytes) -> str:
        try:
            return self.storage.save(key, ContentFile(data))
        except OSError as exc:
            raise PersistenceError("blob write failed", operation="put", details={"key": key}) from exc

    def get(self, key: str) -> bytes:
        try:
            with self.storage.open(key, "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise PersistenceError("blob read failed", operation="get", details={"key": key}) from exc

    def delete(self, key: str) -> None:
        try:
            self.storage.delete(key)
        except OSError as exc:
            raise PersistenceError("blob delete failed", operation="delete", details={"key": key}) from exc
