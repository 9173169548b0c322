"""Canonical result shapes returned by the dispatcher."""
from dataclasses import dataclass, field
from typing import Any, List

AUDIO_MPEG = "audio/mpeg"


@dataclass(frozen=True)
class TextResult:
    text: str


@dataclass(frozen=True)
class TranscriptResult:
    body: Any


@dataclass(frozen=True)
class AudioResult:
    content: bytes
    mime_type: str = AUDIO_MPEG


@dataclass(frozen=True)
class ImageUrlResult:
    url: str


@dataclass(frozen=True)
class EmbeddingsResult:
    vectors: List[List[float]]
    # provider JSON, kept for the passthrough endpoint
    raw: dict = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class ScoreResult:
    score: int
