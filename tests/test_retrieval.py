# tests/test_retrieval.py
import math
import uuid

import numpy as np
import pytest
from django.db import connection
from freezegun import freeze_time

from rag.embedding import EmbeddingGenerator
from rag.exceptions import ValidationError
from rag.retrieval import (
    InProcessSearch, PgVectorSearch, RetrievalEngine, cosine_similarities, get_search_backend,
)
from tests.helpers import vec

Q = "what is in the docs?"


def at(sim):
    """Vector whose cosine similarity to vec(1.0) is ``sim``."""
    return vec(sim, math.sqrt(max(0.0, 1.0 - sim * sim)))


@pytest.fixture
def engine(services, openai_client):
    openai_client.vectors[Q] = vec(1.0)
    return services.retrieval


@pytest.fixture
def corpus(user, make_media):
    media = make_media(user, "ws", [
        ("low",     at(0.50)),
        ("mid",     at(0.75)),
        ("high",    at(0.95)),
        ("highish", at(0.85)),
        ("edge",    at(0.70)),
    ])
    return media


def texts(hits):
    return [h.chunk.chunk_text for h in hits]


def test_cosine_similarities_handles_zero_vectors():
    sims = cosine_similarities([[1.0, 0.0], [0.0, 0.0], [-1.0, 0.0]], [2.0, 0.0])
    assert np.allclose(sims, [1.0, 0.0, -1.0])
    assert np.allclose(cosine_similarities([[1.0, 1.0]], [0.0, 0.0]), [0.0])


def test_backend_selection_follows_database():
    assert isinstance(get_search_backend("auto"), InProcessSearch)  # tests run on SQLite
    assert isinstance(get_search_backend("pgvector"), PgVectorSearch)
    with pytest.raises(ValueError):
        get_search_backend("faiss")


def test_results_sorted_thresholded_and_capped(engine, corpus):
    hits = engine.retrieve(Q, {corpus.id}, k=3, threshold=0.6)
    assert texts(hits) == ["high", "highish", "mid"]
    sims = [h.similarity for h in hits]
    assert sims == sorted(sims, reverse=True)
    assert all(s >= 0.6 for s in sims)


def test_default_threshold_and_k(engine, corpus):
    hits = engine.retrieve(Q, {corpus.id})
    # 0.70 sits on the default threshold; float rounding may put it either side
    assert texts(hits)[:3] == ["high", "highish", "mid"]
    assert "low" not in texts(hits)
    assert len(hits) <= 5


def test_raising_threshold_only_removes_results(engine, corpus):
    previous = None
    for t in (-1.0, 0.0, 0.6, 0.8, 0.9, 0.99):
        current = {h.chunk.id for h in engine.retrieve(Q, {corpus.id}, k=100, threshold=t)}
        if previous is not None:
            assert current <= previous
        previous = current


def test_nothing_above_threshold_is_empty_not_error(engine, corpus):
    assert engine.retrieve(Q, {corpus.id}, threshold=0.99) == []


def test_scope_excludes_better_matches_elsewhere(engine, user, other_user, make_media):
    mine   = make_media(user, "ws-a", [("mine", at(0.80))])
    theirs = make_media(other_user, "ws-b", [("theirs", at(0.99))])

    hits = engine.retrieve(Q, {mine.id}, k=5, threshold=0.0)
    assert texts(hits) == ["mine"]
    assert all(h.chunk.media_id != theirs.id for h in hits)


def test_workspace_scoping_goes_through_mapping(engine, user, other_user, make_media):
    make_media(user, "ws-a", [("in a", at(0.80))])
    make_media(other_user, "ws-b", [("in b", at(0.99))])

    assert texts(engine.retrieve_for_workspace(Q, "ws-a", threshold=0.0)) == ["in a"]
    assert texts(engine.retrieve_for_workspace(Q, "ws-b", threshold=0.0)) == ["in b"]


def test_empty_scope_skips_model_call(engine, openai_client):
    assert engine.retrieve(Q, set()) == []
    assert engine.retrieve_for_workspace(Q, "nobody-home") == []
    openai_client.embeddings.create.assert_not_called()


def test_media_without_chunks_is_tolerated(engine, user, make_media, corpus):
    empty = make_media(user, "ws", [], name="half-ingested.txt")
    hits = engine.retrieve(Q, {corpus.id, empty.id}, k=2, threshold=0.0)
    assert texts(hits) == ["high", "highish"]


def test_equal_similarity_ties_break_by_creation_time(engine, user, make_media):
    with freeze_time("2025-01-01 10:00:00"):
        later = make_media(user, "ws", [("later", at(0.9))], name="later.txt")
    with freeze_time("2025-01-01 09:00:00"):
        earlier = make_media(user, "ws", [("earlier", at(0.9))], name="earlier.txt")

    hits = engine.retrieve(Q, {later.id, earlier.id}, threshold=0.0)
    assert texts(hits) == ["earlier", "later"]


def test_ties_within_one_media_follow_sequence(engine, user, make_media):
    with freeze_time("2025-01-01"):
        media = make_media(user, "ws", [("first", at(0.9)), ("second", at(0.9)), ("third", at(0.9))])
    hits = engine.retrieve(Q, {media.id}, threshold=0.0)
    assert texts(hits) == ["first", "second", "third"]


@pytest.mark.parametrize("kwargs", [{"k": 0}, {"threshold": 1.5}])
def test_bad_parameters_rejected(engine, corpus, kwargs):
    with pytest.raises(ValidationError):
        engine.retrieve(Q, {corpus.id}, **kwargs)


def test_blank_query_rejected(engine, corpus):
    with pytest.raises(ValidationError):
        engine.retrieve("  ", {corpus.id})


def test_rank_media_uses_best_chunk(engine, user, make_media):
    a = make_media(user, "ws", [("a1", at(0.3)), ("a2", at(0.9))], name="a.txt")
    b = make_media(user, "ws", [("b1", at(0.6))], name="b.txt")
    ranked = engine.rank_media(Q, {a.id, b.id})
    assert [mid for mid, _ in ranked] == [a.id, b.id]
    assert ranked[0][1] == pytest.approx(0.9, abs=1e-5)


def test_engine_accepts_any_backend(openai_client, user, make_media):
    class Fixed:
        name = "fixed"

        def search(self, vector, media_ids, k, threshold):
            return ["sentinel"]

    media = make_media(user, "ws", [("x", vec(1.0))])
    eng = RetrievalEngine(EmbeddingGenerator(openai_client), Fixed())
    assert eng.retrieve(Q, {media.id}) == ["sentinel"]


def _lookups(node):
    for child in getattr(node, "children", []):
        if hasattr(child, "lookup_name"):
            yield child
        else:
            yield from _lookups(child)


def test_pgvector_query_filters_by_distance_and_orders_stably():
    qs = PgVectorSearch().queryset(vec(1.0), {uuid.uuid4()}, threshold=0.7)

    assert qs.query.order_by == ("distance", "created_at", "sequence", "id")
    lte = [lk for lk in _lookups(qs.query.where) if lk.lookup_name == "lte"]
    assert len(lte) == 1
    assert lte[0].rhs == pytest.approx(0.3)


@pytest.mark.skipif(connection.vendor != "postgresql", reason="needs PostgreSQL + pgvector")
def test_pgvector_search_matches_in_process(user, make_media):
    with freeze_time("2025-01-01"):
        media = make_media(user, "ws", [
            ("low", at(0.5)), ("tie-a", at(0.9)), ("tie-b", at(0.9)), ("high", at(0.95)),
        ])
    pg = PgVectorSearch().search(vec(1.0), {media.id}, k=3, threshold=0.7)
    mem = InProcessSearch().search(vec(1.0), {media.id}, k=3, threshold=0.7)

    assert texts(pg) == texts(mem) == ["high", "tie-a", "tie-b"]
    assert [h.similarity for h in pg] == pytest.approx([h.similarity for h in mem], abs=1e-5)
