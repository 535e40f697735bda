"""
workspace_chat/urls.py – routes
"""
from django.contrib import admin
from django.urls import include, path
from allauth.account.decorators import secure_admin_login

from rag.views import list_media
from workspace_chat.views import ask, get_csrf_token, link_media, workspace_media

admin.autodiscover()
admin.site.login = secure_admin_login(admin.site.login)

urlpatterns = [
    # User auth
    path("accounts/", include("allauth.urls")),

    # Admin
    path("admin/", admin.site.urls),

    # CSRF helper
    path("api/csrf", get_csrf_token, name="get_csrf_token"),

    # Workspace media
    path("api/workspaces/<str:workspace_id>/media",      workspace_media, name="workspace_media"),
    path("api/workspaces/<str:workspace_id>/media/link", link_media,      name="link_media"),

    # Chat + RAG
    path("api/chat",  ask,        name="ask"),
    path("api/media", list_media, name="list_media"),
]
