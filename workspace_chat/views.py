import json
import logging

from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from rag.exceptions import (
    ExtractionError, NotFoundError, PersistenceError, RagError, UpstreamError, ValidationError,
)
from rag.extract import KIND_FILE, KIND_IMAGE
from rag.ingest import SUCCESS
from rag.services import get_services
from workspace_chat.auth import login_required_json

log = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, something went wrong while answering. Please try again."

# error class → (status, code, message shown to the user)
_INGEST_ERRORS = [
    (ValidationError,  400, "validation_error", None),
    (ExtractionError,  422, "extraction_error", "We could not read any text from this file."),
    (UpstreamError,    502, "upstream_error",   "The AI service is unavailable. Please try again."),
    (PersistenceError, 500, "persistence_error", "The file could not be stored. Please try again."),
]


# ------------------------------------------------------------------ helpers ---
def _json_body(request):
    try:
        data = json.loads(request.body or "{}")
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("request body must be JSON", field="body")
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object", field="body")
    return data


def _error_response(exc):
    for cls, status, code, message in _INGEST_ERRORS:
        if isinstance(exc, cls):
            return JsonResponse({"error": code, "message": message or exc.message}, status=status)
    return JsonResponse({"error": "internal_error", "message": "Something went wrong."}, status=500)


def _infer_kind(requested, content_type):
    if requested:
        return requested
    return KIND_IMAGE if (content_type or "").startswith("image/") else KIND_FILE


# =============================================================================
# 1. WORKSPACE MEDIA
# =============================================================================
@login_required_json
@require_http_methods(["GET", "POST"])
def workspace_media(request, workspace_id):
    if request.method == "GET":
        items = get_services().workspace_media(workspace_id)
        return JsonResponse([m.as_dict() for m in items], safe=False)
    return _upload(request, workspace_id)


def _upload(request, workspace_id):
    """multipart POST {file, kind?} → ingest into the workspace."""
    upload = request.FILES.get("file")
    if upload is None:
        return JsonResponse({"error": "validation_error", "message": "A file is required."}, status=400)

    kind = _infer_kind(request.POST.get("kind"), upload.content_type)
    try:
        result = get_services().ingest_artifact(
            request.user, workspace_id, upload.read(), kind, upload.name,
            content_type=upload.content_type or "",
        )
    except ValidationError as exc:
        return _error_response(exc)

    if result.status != SUCCESS:
        log.error("upload failed status=%s workspace=%s: %s", result.status, workspace_id, result.error)
        return _error_response(result.error)

    media = result.media
    return JsonResponse(
        {
            "media_id": str(media.id),
            "name":     media.name,
            "kind":     media.kind,
            "status":   result.status,
            "chunks":   result.chunk_count,
        },
        status=201,
    )


@login_required_json
@require_POST
def link_media(request, workspace_id):
    """POST {"media_id": …} to add an existing library item to the workspace."""
    try:
        data = _json_body(request)
        link = get_services().link_media(data.get("media_id"), workspace_id, request.user)
    except NotFoundError:
        return JsonResponse({"error": "not_found"}, status=404)
    except ValidationError as exc:
        return _error_response(exc)
    return JsonResponse({"workspace_id": link.workspace_id, "media": link.media.as_dict()})


# =============================================================================
# 2. CHAT
# =============================================================================
@login_required_json
@require_POST
def ask(request):
    try:
        data = _json_body(request)
    except ValidationError as exc:
        return _error_response(exc)

    query = (data.get("query") or data.get("message") or "").strip()
    k     = data.get("max_context_chunks")
    try:
        k = int(k) if k not in (None, "") else None
    except (TypeError, ValueError):
        return JsonResponse({"error": "validation_error",
                             "message": "max_context_chunks must be an integer."}, status=400)

    try:
        answer = get_services().ask_question(data.get("workspace_id"), query, k=k)
    except ValidationError as exc:
        return _error_response(exc)
    except RagError:
        log.exception("ask failed")
        return JsonResponse({"error": "upstream_error", "answer": FALLBACK_ANSWER, "sources": []},
                            status=502)
    return JsonResponse(answer.as_dict())


# =============================================================================
# 3. CSRF
# =============================================================================
@require_GET
def get_csrf_token(request):
    return JsonResponse({"csrfToken": get_token(request)})
