import asyncio
import json

import httpx
import pytest


def _patch_transport(monkeypatch, handler):
    from jobmatch.app.services import ai_client

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        ai_client.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )


def test_generate_posts_prompt_and_joins_parts(monkeypatch):
    from jobmatch.app.services.ai_client import GeminiClient

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": '{"full_name": '}, {"text": '"Asha"}'}]}}]},
        )

    _patch_transport(monkeypatch, handler)
    client = GeminiClient(api_key="k", model="models/gemini-test", base_url="https://example.test/")
    out = asyncio.run(client.generate("hello"))

    assert out == '{"full_name": "Asha"}'
    assert seen["url"] == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "k"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "hello"
    assert client.last_meta.status_code == 200
    assert client.last_meta.retries == 0


def test_http_error_is_not_retried_by_default(monkeypatch):
    from jobmatch.app.services.ai_client import AIClientHTTPError, GeminiClient

    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="quota")

    _patch_transport(monkeypatch, handler)
    with pytest.raises(AIClientHTTPError) as exc:
        asyncio.run(GeminiClient(api_key="k").generate("hi"))
    assert exc.value.status_code == 429
    assert len(calls) == 1


def test_transient_error_retried_when_enabled(monkeypatch):
    from jobmatch.app.services import ai_client

    async def no_sleep(_):
        return None

    monkeypatch.setattr(ai_client.asyncio, "sleep", no_sleep)
    responses = [httpx.Response(503, text="busy"), httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})]
    _patch_transport(monkeypatch, lambda request: responses.pop(0))

    client = ai_client.GeminiClient(api_key="k", max_retries=1)
    assert asyncio.run(client.generate("hi")) == "ok"
    assert client.last_meta.retries == 1


def test_network_error_maps_to_client_error(monkeypatch):
    from jobmatch.app.services.ai_client import AIClientError, GeminiClient

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    _patch_transport(monkeypatch, handler)
    with pytest.raises(AIClientError):
        asyncio.run(GeminiClient(api_key="k").generate("hi"))


def test_no_key_means_no_generator():
    from jobmatch.app.services.ai_client import get_text_generator

    # conftest blanks GEMINI_API_KEY
    assert get_text_generator() is None


def _capture_body(monkeypatch) -> dict:
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "{}"}]}}]})

    _patch_transport(monkeypatch, handler)
    return seen


def test_output_cap_omitted_unless_configured(monkeypatch):
    from jobmatch.app.services.ai_client import GeminiClient

    seen = _capture_body(monkeypatch)
    asyncio.run(GeminiClient(api_key="k", max_output_tokens=None).generate("hi"))
    assert seen["body"]["generationConfig"] == {"temperature": 0.0}

    asyncio.run(GeminiClient(api_key="k", max_output_tokens=8192).generate("hi"))
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 8192


def test_default_client_sends_no_output_cap(monkeypatch):
    from jobmatch.app.services.ai_client import GeminiClient

    seen = _capture_body(monkeypatch)
    asyncio.run(GeminiClient(api_key="k").generate("hi"))
    assert "maxOutputTokens" not in seen["body"]["generationConfig"]
