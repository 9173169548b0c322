"""Provider registry: map a task kind and model name to a concrete target."""
from dataclasses import dataclass
from enum import Enum

from ..core.settings import Settings
from .errors import MissingCredential, UnsupportedModel

ANTHROPIC_MODEL_PREFIX = "claude"


class TaskKind(str, Enum):
    CHAT = "chat"
    TRANSCRIBE = "transcribe"
    SPEAK = "speak"
    IMAGE = "image"
    EMBED = "embed"
    COMPARE = "compare"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class RequestShape(str, Enum):
    JSON = "json"
    MULTIPART = "multipart"
    BINARY = "binary"


@dataclass(frozen=True)
class ProviderTarget:
    provider: Provider
    base_url: str
    endpoint: str
    endpoint_url: str
    api_key: str
    request_shape: RequestShape


# Non-chat task kinds are only wired to OpenAI.
_OPENAI_ENDPOINTS = {
    TaskKind.TRANSCRIBE: ("audio/transcriptions", RequestShape.MULTIPART),
    TaskKind.SPEAK: ("audio/speech", RequestShape.BINARY),
    TaskKind.IMAGE: ("images/generations", RequestShape.JSON),
    TaskKind.EMBED: ("embeddings", RequestShape.JSON),
    TaskKind.COMPARE: ("embeddings", RequestShape.JSON),
}


def _join_url(base_url: str, endpoint: str) -> str:
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def provider_for_model(model_name) -> Provider:
    """Return the chat provider for a declared model name."""
    if not isinstance(model_name, str) or not model_name:
        raise UnsupportedModel(f"chat model must be a non-empty string, got {model_name!r}")
    if model_name.startswith(ANTHROPIC_MODEL_PREFIX):
        return Provider.ANTHROPIC
    return Provider.OPENAI


def _credential_for(provider: Provider, settings: Settings) -> str:
    if provider is Provider.ANTHROPIC:
        api_key = settings.anthropic_api_key
    else:
        api_key = settings.openai_api_key
    if not api_key:
        raise MissingCredential(f"{provider.value} API key not configured")
    return api_key


def resolve(task_kind: TaskKind, model_name, settings: Settings) -> ProviderTarget:
    """Resolve the provider endpoint and credential for one request.

    Chat requests route on the model name prefix; every other task kind goes
    to its fixed OpenAI endpoint and ignores ``model_name``.
    """
    if task_kind is TaskKind.CHAT:
        provider = provider_for_model(model_name)
        if provider is Provider.ANTHROPIC:
            base_url, endpoint = settings.anthropic_base_url, "complete"
        else:
            base_url, endpoint = settings.openai_base_url, "chat/completions"
        shape = RequestShape.JSON
    elif task_kind in _OPENAI_ENDPOINTS:
        provider = Provider.OPENAI
        base_url = settings.openai_base_url
        endpoint, shape = _OPENAI_ENDPOINTS[task_kind]
    else:
        raise UnsupportedModel(f"unknown task kind: {task_kind!r}")

    return ProviderTarget(
        provider=provider,
        base_url=base_url,
        endpoint=endpoint,
        endpoint_url=_join_url(base_url, endpoint),
        api_key=_credential_for(provider, settings),
        request_shape=shape,
    )
