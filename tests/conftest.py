# tests/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.core.files.storage import InMemoryStorage

from tests.helpers import chat_response, embedding_response, vec


@pytest.fixture
def user(db):
    U = get_user_model()
    return U.objects.create_user(
        username="u", email="u@x.com", password="p"
    )


@pytest.fixture
def other_user(db):
    U = get_user_model()
    return U.objects.create_user(username="o", email="o@x.com", password="p")


@pytest.fixture
def auth_client(user, client):
    client.force_login(user)
    return client


@pytest.fixture
def openai_client(mocker):
    """
    Stand-in for the OpenAI client.

    ``client.vectors`` maps input text → embedding; anything unmapped embeds
    to the first unit vector. Chat calls answer "stub answer" unless the
    test overrides the return value.
    """
    client = mocker.MagicMock()
    client.vectors = {}

    def _embed(model, input):
        return embedding_response(client.vectors.get(input, vec(1.0)))

    client.embeddings.create.side_effect = _embed
    client.chat.completions.create.return_value = chat_response("stub answer")
    return client


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def services(openai_client, storage, settings, db):
    from rag.services import build_services

    settings.RAG_EMBED_WORKERS = 1
    settings.RAG_SEARCH_BACKEND = "memory"
    return build_services(client=openai_client, storage=storage)


@pytest.fixture
def make_media(db):
    """Create a media row, link it to a workspace and attach (text, vector) chunks."""
    from rag.models import Chunk, Media, WorkspaceMedia

    def _make(owner, workspace_id, chunks, name="doc.txt", kind="file"):
        media = Media.objects.create(owner=owner, name=name, kind=kind, storage_key=f"{owner.pk}/{name}")
        WorkspaceMedia.objects.create(workspace_id=workspace_id, media=media, added_by=owner)
        for seq, (text, vector) in enumerate(chunks, start=1):
            Chunk.objects.create(media=media, chunk_text=text, embedding=vector, sequence=seq,
                                 page_number=seq if kind == "file" else None)
        return media
    return _make
