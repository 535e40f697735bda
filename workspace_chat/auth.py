# workspace_chat/auth.py
from functools import wraps

from django.contrib.auth.views import redirect_to_login
from django.http import JsonResponse


def wants_json(request) -> bool:
    accept = request.headers.get("Accept", "")
    return (
        "application/json" in accept
        or request.headers.get("X-Requested-With") == "XMLHttpRequest"
        or request.content_type == "application/json"
    )


def login_required_json(view):
    """login_required for API views: 401 JSON for API callers, redirect for browsers."""
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        if request.user.is_authenticated:
            return view(request, *args, **kwargs)
        if wants_json(request):
            return JsonResponse({"error": "auth_required"}, status=401)
        return redirect_to_login(request.get_full_path())
    return _wrapped
