# rag/extract.py
"""
Artifact → plain text.

Files go through the first registered backend that accepts them (PDF via
pdfminer, everything else as UTF-8 text). Images are described by a
vision-capable chat model and the description stands in as their text.
"""
import base64
import io
import logging
import mimetypes

import pdfminer.high_level
from openai import OpenAIError

from rag.clients import parse_chat
from rag.exceptions import ExtractionError, UpstreamError, ValidationError

log = logging.getLogger(__name__)

KIND_FILE  = "file"
KIND_IMAGE = "image"
KINDS      = (KIND_FILE, KIND_IMAGE)

VISION_MODEL  = "gpt-4o-mini"
VISION_PROMPT = "Describe this image in detail."
VISION_MAX_TOKENS = 500


# ───────── file backends ─────────
class PdfBackend:
    def accepts(self, name, content_type):
        return content_type == "application/pdf" or name.lower().endswith(".pdf")

    def extract(self, data: bytes) -> str:
        try:
            return pdfminer.high_level.extract_text(io.BytesIO(data))
        except Exception as exc:  # damaged files surface as arbitrary pdfminer errors
            raise ExtractionError("could not parse PDF", kind=KIND_FILE,
                                  details={"cause": type(exc).__name__}) from exc


class TextBackend:
    def accepts(self, name, content_type):
        return True

    def extract(self, data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError("file is not valid UTF-8 text", kind=KIND_FILE) from exc


# ───────── extractor ─────────
class Extractor:
    def __init__(self, client, vision_model=VISION_MODEL, backends=None):
        self.client       = client
        self.vision_model = vision_model
        self.backends     = list(backends) if backends is not None else [PdfBackend(), TextBackend()]

    def register(self, backend, first=True):
        """Add a file backend; by default it is tried before the built-ins."""
        if first:
            self.backends.insert(0, backend)
        else:
            self.backends.append(backend)

    def extract(self, artifact: bytes, kind: str, name: str = "", content_type: str = "") -> str:
        if kind not in KINDS:
            raise ValidationError(f"unknown artifact kind {kind!r}", field="kind")
        if not artifact:
            raise ValidationError("artifact is empty", field="artifact")

        if kind == KIND_IMAGE:
            text = self._describe_image(artifact, name, content_type)
        else:
            backend = self._backend_for(name or "", content_type or "")
            text = backend.extract(artifact)

        if not text or not text.strip():
            raise ExtractionError("no text could be extracted", kind=kind, details={"name": name})
        return text

    def _backend_for(self, name, content_type):
        for backend in self.backends:
            if backend.accepts(name, content_type):
                return backend
        raise ExtractionError("no extraction backend for file", kind=KIND_FILE,
                              details={"name": name, "content_type": content_type})

    def _describe_image(self, data, name, content_type):
        mime = content_type or mimetypes.guess_type(name)[0] or "image/png"
        url  = f"data:{mime};base64,{base64.b64encode(data).decode()}"
        try:
            response = self.client.chat.completions.create(
                model=self.vision_model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {"type": "image_url", "image_url": {"url": url}},
                    ],
                }],
                max_tokens=VISION_MAX_TOKENS,
            )
            return parse_chat(response, self.vision_model).content
        except (OpenAIError, UpstreamError) as exc:
            raise ExtractionError("image description failed", kind=KIND_IMAGE,
                                  details={"name": name}) from exc
