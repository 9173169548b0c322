"""Outbound payload builders, one per task kind.

All builders are pure: they read the validated request and return a fresh
body that is never shared across requests.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..api.schemas import (
    ChatRequest,
    EmbeddingsRequest,
    FileUpload,
    ImageRequest,
    SpeechRequest,
)
from .errors import MissingFile

TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_UPLOAD_FILENAME = "recording.wav"
DEFAULT_UPLOAD_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class MultipartPayload:
    fields: Dict[str, str]
    # field name -> (filename, content, content type)
    files: Dict[str, Tuple[str, bytes, str]]


def _dump(request) -> dict:
    return request.model_dump(exclude_none=True)


def build_chat_payload(request: ChatRequest) -> dict:
    return _dump(request)


def require_upload(upload: Optional[FileUpload]) -> FileUpload:
    if upload is None or not upload.content:
        raise MissingFile("transcription requires a non-empty file upload")
    return upload


def build_transcription_payload(upload: Optional[FileUpload]) -> MultipartPayload:
    upload = require_upload(upload)
    return MultipartPayload(
        fields={"model": TRANSCRIPTION_MODEL},
        files={
            "file": (
                upload.filename or DEFAULT_UPLOAD_FILENAME,
                bytes(upload.content),
                upload.content_type or DEFAULT_UPLOAD_CONTENT_TYPE,
            )
        },
    )


def build_speech_payload(request: SpeechRequest) -> dict:
    return _dump(request)


def build_image_payload(request: ImageRequest) -> dict:
    return _dump(request)


def build_embeddings_payload(request: EmbeddingsRequest) -> dict:
    payload = _dump(request)
    if isinstance(payload["input"], str):
        payload["input"] = [payload["input"]]
    else:
        payload["input"] = list(payload["input"])
    return payload


def build_similarity_payload(prompt: str, guess: str, model: str) -> dict:
    """Embeddings body for a comparison: index 0 is the prompt, index 1 the guess."""
    return {"model": model, "input": [prompt, guess]}
