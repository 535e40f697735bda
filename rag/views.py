# rag/views.py
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from rag.exceptions import RagError
from rag.services import get_services
from workspace_chat.auth import login_required_json

log = logging.getLogger(__name__)


@login_required_json
@require_GET
def list_media(request):
    """The caller's media library; ranked by similarity when ``q`` is given."""
    q = request.GET.get("q", "").strip()
    try:
        items = get_services().library(request.user, q)
    except RagError:
        log.exception("library listing failed user=%s", request.user.pk)
        return JsonResponse({"error": "Could not search your files. Please try again."}, status=502)
    return JsonResponse(items, safe=False)
