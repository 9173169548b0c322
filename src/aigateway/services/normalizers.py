"""Extract canonical results from provider responses."""
import base64
import binascii
import struct
from typing import Any, Callable, Dict, List

from .errors import MalformedProviderResponse
from .registry import Provider
from .results import AUDIO_MPEG, AudioResult, EmbeddingsResult, ImageUrlResult, TextResult, TranscriptResult


def _anthropic_chat_text(body: Any) -> str:
    return body["completion"]


def _openai_chat_text(body: Any) -> str:
    return body["choices"][0]["message"]["content"]


CHAT_NORMALIZERS: Dict[Provider, Callable[[Any], str]] = {
    Provider.OPENAI: _openai_chat_text,
    Provider.ANTHROPIC: _anthropic_chat_text,
}

_missing = set(Provider) - set(CHAT_NORMALIZERS)
if _missing:
    raise RuntimeError(f"chat providers without a normalizer: {sorted(p.value for p in _missing)}")


def normalize_chat(provider: Provider, body: Any) -> TextResult:
    extract = CHAT_NORMALIZERS[provider]
    try:
        text = extract(body)
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedProviderResponse(f"{provider.value} chat response missing text: {e!r}") from e
    # null content (tool calls, refusals) is relayed as an empty body
    if text is None:
        text = ""
    return TextResult(text=text)


def normalize_transcription(body: Any) -> TranscriptResult:
    return TranscriptResult(body=body)


def normalize_speech(content: Any) -> AudioResult:
    if not isinstance(content, (bytes, bytearray)):
        raise MalformedProviderResponse(f"speech response is not binary: {type(content).__name__}")
    return AudioResult(content=bytes(content), mime_type=AUDIO_MPEG)


def normalize_image(body: Any) -> ImageUrlResult:
    try:
        url = body["data"][0]["url"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedProviderResponse(f"image response has no image entry: {e!r}") from e
    if not url:
        raise MalformedProviderResponse("image response entry has no url")
    return ImageUrlResult(url=url)


def _decode_base64_vector(values: str, position: int) -> List[float]:
    # little-endian float32, as returned for encoding_format="base64"
    try:
        raw = base64.b64decode(values, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedProviderResponse(f"embedding {position} is not valid base64") from e
    if len(raw) % 4:
        raise MalformedProviderResponse(f"embedding {position} is not a float32 array")
    return list(struct.unpack(f"<{len(raw) // 4}f", raw))


def _coerce_vector(values: Any, position: int) -> List[float]:
    if isinstance(values, str):
        return _decode_base64_vector(values, position)
    if not isinstance(values, list):
        raise MalformedProviderResponse(f"embedding {position} is not a list")
    try:
        return [float(value) for value in values]
    except (TypeError, ValueError) as e:
        raise MalformedProviderResponse(f"embedding {position} has non-numeric values") from e


def normalize_embeddings(body: Any) -> EmbeddingsResult:
    """Return embedding vectors in provider order."""
    try:
        items = body["data"]
        vectors = [_coerce_vector(item["embedding"], i) for i, item in enumerate(items)]
    except (KeyError, TypeError) as e:
        raise MalformedProviderResponse(f"embeddings response malformed: {e!r}") from e
    return EmbeddingsResult(vectors=vectors, raw=body)
