"""Per-request dispatch: resolve, build, call, normalize.

Each public method of ``Dispatcher`` walks one request through

    received -> resolved -> payload_built -> provider_called -> normalized -> responded

and stops at the first failure. Failures are logged with the task kind and
the stage that was being entered, then re-raised as ``GatewayError`` so the
HTTP layer can map them to a status code. Nothing is retried.
"""
import time
from contextlib import contextmanager
from enum import Enum
from typing import Optional

from ..api.schemas import (
    ChatRequest,
    EmbeddingsRequest,
    FileUpload,
    ImageRequest,
    SimilarityRequest,
    SpeechRequest,
)
from ..core.settings import Settings
from ..utils.logging import log_event
from . import normalizers, payloads, similarity
from .errors import GatewayError, MalformedProviderResponse
from .registry import TaskKind, resolve
from .results import (
    AudioResult,
    EmbeddingsResult,
    ImageUrlResult,
    ScoreResult,
    TextResult,
    TranscriptResult,
)
from .transport import ProviderTransport


class Stage(str, Enum):
    RECEIVED = "received"
    RESOLVED = "resolved"
    PAYLOAD_BUILT = "payload_built"
    PROVIDER_CALLED = "provider_called"
    NORMALIZED = "normalized"
    SCORED = "scored"
    RESPONDED = "responded"
    FAILED = "failed"


class _Flow:
    """Tracks one request's progress for logging."""

    def __init__(self, task: TaskKind, trace: Optional[dict], request_id: Optional[str]):
        self.task = task
        self.request_id = request_id
        self.state = Stage.RECEIVED
        self.started = time.time()
        self.trace = trace if trace is not None else {}
        self.trace["task"] = task.value
        self.trace["stage"] = self.state.value

    @contextmanager
    def enter(self, stage: Stage):
        try:
            yield
        except GatewayError as e:
            self._fail(stage, e)
            raise
        except Exception as e:
            self._fail(stage, e)
            raise GatewayError(f"{self.task.value} failed entering {stage.value}: {e}") from e
        self.state = stage
        self.trace["stage"] = stage.value

    def _fail(self, stage: Stage, err: Exception):
        self.trace["stage"] = Stage.FAILED.value
        log_event(
            40,
            "dispatch_failed",
            request_id=self.request_id,
            task=self.task.value,
            stage=stage.value,
            last_state=self.state.value,
            error_kind=type(err).__name__,
            error=str(err),
            provider=self.trace.get("provider"),
            upstream_url=self.trace.get("upstream_url"),
        )

    def resolved(self, target):
        self.trace["provider"] = target.provider.value
        self.trace["upstream_url"] = target.endpoint_url

    def done(self):
        self.state = Stage.RESPONDED
        self.trace["stage"] = Stage.RESPONDED.value
        log_event(
            10,
            "dispatch_complete",
            request_id=self.request_id,
            task=self.task.value,
            provider=self.trace.get("provider"),
            latency_ms=int((time.time() - self.started) * 1000),
        )


class Dispatcher:
    """Orchestrates provider calls for every task kind."""

    def __init__(self, settings: Settings, transport=None):
        self.settings = settings
        self.transport = transport or ProviderTransport(settings)

    def _call(self, flow: _Flow, model_name, build_payload):
        with flow.enter(Stage.RESOLVED):
            target = resolve(flow.task, model_name, self.settings)
            flow.resolved(target)
        with flow.enter(Stage.PAYLOAD_BUILT):
            payload = build_payload()
        with flow.enter(Stage.PROVIDER_CALLED):
            response = self.transport.send(target, payload)
        return target, response

    def chat(self, request: ChatRequest, trace=None, request_id=None) -> TextResult:
        flow = _Flow(TaskKind.CHAT, trace, request_id)
        target, body = self._call(flow, request.model, lambda: payloads.build_chat_payload(request))
        with flow.enter(Stage.NORMALIZED):
            result = normalizers.normalize_chat(target.provider, body)
        flow.done()
        return result

    def transcribe(self, upload: Optional[FileUpload], trace=None, request_id=None) -> TranscriptResult:
        flow = _Flow(TaskKind.TRANSCRIBE, trace, request_id)
        with flow.enter(Stage.RECEIVED):
            upload = payloads.require_upload(upload)
        _, body = self._call(
            flow, payloads.TRANSCRIPTION_MODEL, lambda: payloads.build_transcription_payload(upload)
        )
        with flow.enter(Stage.NORMALIZED):
            result = normalizers.normalize_transcription(body)
        flow.done()
        return result

    def speak(self, request: SpeechRequest, trace=None, request_id=None) -> AudioResult:
        flow = _Flow(TaskKind.SPEAK, trace, request_id)
        _, content = self._call(flow, request.model, lambda: payloads.build_speech_payload(request))
        with flow.enter(Stage.NORMALIZED):
            result = normalizers.normalize_speech(content)
        flow.done()
        return result

    def generate_image(self, request: ImageRequest, trace=None, request_id=None) -> ImageUrlResult:
        flow = _Flow(TaskKind.IMAGE, trace, request_id)
        _, body = self._call(flow, request.model, lambda: payloads.build_image_payload(request))
        with flow.enter(Stage.NORMALIZED):
            result = normalizers.normalize_image(body)
        flow.done()
        return result

    def embeddings(self, request: EmbeddingsRequest, trace=None, request_id=None) -> EmbeddingsResult:
        flow = _Flow(TaskKind.EMBED, trace, request_id)
        _, body = self._call(flow, request.model, lambda: payloads.build_embeddings_payload(request))
        with flow.enter(Stage.NORMALIZED):
            result = normalizers.normalize_embeddings(body)
        flow.done()
        return result

    def similarity(self, request: SimilarityRequest, trace=None, request_id=None) -> ScoreResult:
        flow = _Flow(TaskKind.COMPARE, trace, request_id)
        model = self.settings.similarity_model
        _, body = self._call(
            flow, model, lambda: payloads.build_similarity_payload(request.prompt, request.guess, model)
        )
        with flow.enter(Stage.NORMALIZED):
            vectors = normalizers.normalize_embeddings(body).vectors
            if len(vectors) != 2:
                raise MalformedProviderResponse(f"comparison expects 2 embeddings, got {len(vectors)}")
        with flow.enter(Stage.SCORED):
            result = ScoreResult(score=similarity.score(vectors[0], vectors[1]))
        flow.done()
        return result
