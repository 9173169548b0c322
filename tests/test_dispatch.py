import json
import logging

import pytest

from aigateway.api.schemas import (
    ChatRequest,
    EmbeddingsRequest,
    FileUpload,
    ImageRequest,
    SimilarityRequest,
    SpeechRequest,
)
from aigateway.services.dispatch import Dispatcher
from aigateway.services.errors import (
    DimensionMismatch,
    GatewayError,
    MalformedProviderResponse,
    MissingFile,
    ProviderCallFailed,
)
from aigateway.services.registry import Provider
from aigateway.services.results import ScoreResult
from conftest import StubTransport


def _chat(model="gpt-4"):
    return ChatRequest.model_validate({"model": model, "messages": [{"role": "user", "content": "hi"}]})


def _embedding_body(*vectors):
    return {"object": "list", "data": [{"index": i, "embedding": v} for i, v in enumerate(vectors)]}


def test_chat_openai(settings):
    stub = StubTransport({"chat/completions": {"choices": [{"message": {"content": "hello"}}]}})
    trace = {}

    result = Dispatcher(settings, stub).chat(_chat(), trace=trace)

    assert result.text == "hello"
    target, payload = stub.calls[0]
    assert target.provider is Provider.OPENAI
    assert payload == {"model": "gpt-4", "messages": [{"role": "user", "content": "hi"}]}
    assert trace == {
        "task": "chat",
        "stage": "responded",
        "provider": "openai",
        "upstream_url": "https://api.openai.com/v1/chat/completions",
    }


def test_chat_anthropic_reads_completion(settings):
    stub = StubTransport({"complete": {"completion": "hey"}})

    result = Dispatcher(settings, stub).chat(_chat("claude-2"))

    assert result.text == "hey"
    target, _ = stub.calls[0]
    assert target.provider is Provider.ANTHROPIC
    assert target.api_key == "sk-ant-test"


def test_transcribe_passes_body_through(settings):
    stub = StubTransport({"audio/transcriptions": {"text": "hello world"}})

    result = Dispatcher(settings, stub).transcribe(FileUpload(content=b"wav", filename="a.wav"))

    assert result.body == {"text": "hello world"}
    _, payload = stub.calls[0]
    assert payload.fields == {"model": "whisper-1"}


def test_transcribe_without_file_never_calls_provider(settings):
    stub = StubTransport()
    trace = {}

    with pytest.raises(MissingFile):
        Dispatcher(settings, stub).transcribe(None, trace=trace)

    assert stub.calls == []
    assert trace["stage"] == "failed"


def test_speak(settings):
    stub = StubTransport({"audio/speech": b"\xff\xfbmp3"})

    result = Dispatcher(settings, stub).speak(
        SpeechRequest.model_validate({"model": "tts-1", "input": "hi", "voice": "nova"})
    )

    assert result.content == b"\xff\xfbmp3"
    assert result.mime_type == "audio/mpeg"


def test_generate_image(settings):
    stub = StubTransport({"images/generations": {"data": [{"url": "https://img.example/cat.png"}]}})

    result = Dispatcher(settings, stub).generate_image(
        ImageRequest.model_validate({"model": "dall-e-3", "prompt": "cat", "size": "1024x1024", "n": 1})
    )

    assert result.url == "https://img.example/cat.png"


def test_embeddings(settings):
    body = _embedding_body([0.1, 0.2], [0.3, 0.4])
    stub = StubTransport({"embeddings": body})

    result = Dispatcher(settings, stub).embeddings(
        EmbeddingsRequest.model_validate({"model": "text-embedding-3-small", "input": ["a", "b"]})
    )

    assert result.vectors == [[0.1, 0.2], [0.3, 0.4]]
    assert result.raw == body


def test_similarity_identical_embeddings(settings):
    stub = StubTransport({"embeddings": _embedding_body([0.5, 0.1, 0.7], [0.5, 0.1, 0.7])})

    result = Dispatcher(settings, stub).similarity(SimilarityRequest(prompt="cat", guess="cat"))

    assert result == ScoreResult(score=100)
    _, payload = stub.calls[0]
    assert payload == {"model": "text-embedding-ada-002", "input": ["cat", "cat"]}


def test_similarity_uses_configured_model(tmp_path):
    from conftest import make_settings

    stub = StubTransport({"embeddings": _embedding_body([1.0, 0.0], [0.0, 1.0])})
    settings = make_settings(tmp_path, similarity_model="text-embedding-3-large")

    result = Dispatcher(settings, stub).similarity(SimilarityRequest(prompt="", guess=""))

    assert result.score == 50
    _, payload = stub.calls[0]
    assert payload == {"model": "text-embedding-3-large", "input": ["", ""]}


def test_similarity_requires_two_vectors(settings):
    stub = StubTransport({"embeddings": _embedding_body([1.0, 0.0])})

    with pytest.raises(MalformedProviderResponse):
        Dispatcher(settings, stub).similarity(SimilarityRequest(prompt="a", guess="b"))


def test_similarity_dimension_mismatch(settings):
    stub = StubTransport({"embeddings": _embedding_body([1.0, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0])})
    trace = {}

    with pytest.raises(DimensionMismatch):
        Dispatcher(settings, stub).similarity(SimilarityRequest(prompt="a", guess="b"), trace=trace)

    assert trace["stage"] == "failed"


def test_provider_failure_is_logged_with_stage(settings, caplog):
    caplog.set_level(logging.DEBUG, logger="aigateway")
    stub = StubTransport(error=ProviderCallFailed("upstream said no", upstream_status=429))

    with pytest.raises(ProviderCallFailed):
        Dispatcher(settings, stub).chat(_chat(), request_id="req-1")

    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "aigateway"]
    failure = next(event for event in events if event["message"] == "dispatch_failed")
    assert failure["task"] == "chat"
    assert failure["stage"] == "provider_called"
    assert failure["last_state"] == "payload_built"
    assert failure["error_kind"] == "ProviderCallFailed"
    assert failure["request_id"] == "req-1"


def test_unexpected_errors_are_wrapped(settings):
    stub = StubTransport(error=RuntimeError("boom"))

    with pytest.raises(GatewayError) as exc_info:
        Dispatcher(settings, stub).chat(_chat())

    assert type(exc_info.value) is GatewayError
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.status == 500
