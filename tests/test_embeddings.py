import math
import threading

import pytest


def test_embed_returns_unit_vector(embedder):
    vec = embedder.embed("Python developer, python and SQL")
    assert len(vec) == 6
    assert math.sqrt(sum(x * x for x in vec)) == pytest.approx(1.0, abs=1e-6)


def test_embed_normalizes_whitespace_before_backend(embedder, fake_backend):
    embedder.embed("  hello \n\n  world  ")
    assert fake_backend.calls == ["hello world"]


def test_empty_text_is_rejected(embedder):
    from jobmatch.app.utils.error_handlers import EmbeddingError

    with pytest.raises(EmbeddingError):
        embedder.embed("   \n ")


def test_model_loads_once_under_concurrency(fake_backend):
    from jobmatch.app.services.embeddings import EmbeddingGenerator

    loads = []
    gate = threading.Event()

    def loader(name):
        gate.wait(timeout=2)
        loads.append(name)
        return fake_backend

    gen = EmbeddingGenerator("m", loader=loader)
    assert not gen.loaded
    threads = [threading.Thread(target=gen.embed, args=(f"python {i}",)) for i in range(8)]
    for t in threads:
        t.start()
    gate.set()
    for t in threads:
        t.join()

    assert loads == ["m"]
    assert gen.loaded
    assert len(fake_backend.calls) == 8


def test_loader_failure_maps_to_embedding_error():
    from jobmatch.app.services.embeddings import EmbeddingGenerator
    from jobmatch.app.utils.error_handlers import EmbeddingError

    def loader(name):
        raise OSError("model files missing")

    gen = EmbeddingGenerator("m", loader=loader)
    with pytest.raises(EmbeddingError):
        gen.embed("python")
    assert not gen.loaded


def test_zero_vector_is_rejected():
    from jobmatch.app.services.embeddings import l2_normalize
    from jobmatch.app.utils.error_handlers import EmbeddingError

    with pytest.raises(EmbeddingError):
        l2_normalize([0.0, 0.0])
    with pytest.raises(EmbeddingError):
        l2_normalize([])
    assert l2_normalize([3.0, 4.0]) == pytest.approx([0.6, 0.8])


def test_dependency_raises_when_disabled():
    from jobmatch.app.services.embeddings import get_embedding_generator
    from jobmatch.app.utils.error_handlers import EmbeddingError

    # conftest sets EMBEDDINGS_ENABLED=0
    with pytest.raises(EmbeddingError):
        get_embedding_generator()


def test_vector_json_decoding_is_tolerant():
    from jobmatch.app.services.vector_store import vector_from_json, vector_to_json

    assert vector_from_json(vector_to_json([0.6, 0.8])) == [0.6, 0.8]
    assert vector_from_json(None) == []
    assert vector_from_json("not json") == []
    assert vector_from_json('{"a": 1}') == []
    assert vector_from_json('[1, "x"]') == []
    assert vector_from_json("[NaN, 1.0]") == []
