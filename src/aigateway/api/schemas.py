"""Pydantic request schemas for gateway endpoints."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: str
    content: Union[str, List[Dict[str, Any]]]

    class Config:
        extra = "allow"


class ChatRequest(BaseModel):
    model: str
    messages: List[ChatMessage]

    class Config:
        # Extra fields are forwarded to the provider untouched.
        extra = "allow"


class SpeechRequest(BaseModel):
    model: str
    input: str
    voice: str

    class Config:
        extra = "allow"


class ImageRequest(BaseModel):
    model: Optional[str] = None
    prompt: str
    size: Optional[str] = None
    quality: Optional[str] = None
    n: Optional[int] = None

    class Config:
        extra = "allow"


class EmbeddingsRequest(BaseModel):
    model: str
    input: Union[str, List[str]]

    class Config:
        extra = "allow"


class SimilarityRequest(BaseModel):
    prompt: str
    guess: str


@dataclass(frozen=True)
class FileUpload:
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None
