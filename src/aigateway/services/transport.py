"""Provider transport: the outbound HTTP call for a resolved target.

OpenAI targets go through the ``openai`` SDK; Anthropic's completion
endpoint is a plain JSON POST. Neither path retries, and both honor the
configured upstream timeout.
"""
import json
from typing import Any, Iterable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import httpx
import openai

from ..core.settings import Settings
from .errors import MalformedProviderResponse, ProviderCallFailed
from .payloads import MultipartPayload
from .registry import Provider, ProviderTarget

_MAX_ERROR_BODY = 2000
EMBEDDING_PARAMS = ("model", "input", "encoding_format", "dimensions", "user")


def create_client(
    api_key: str,
    base_url: Optional[str],
    timeout: float,
    http_client: Optional[httpx.Client] = None,
) -> openai.OpenAI:
    """Create an OpenAI client with retries disabled."""
    kwargs = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
    if base_url:
        kwargs["base_url"] = base_url
    if http_client is not None:
        kwargs["http_client"] = http_client
    return openai.OpenAI(**kwargs)


def _split_params(payload: dict, known: Iterable[str]):
    """Split a payload into SDK keyword arguments and ``extra_body`` fields."""
    known = set(known)
    params = {key: value for key, value in payload.items() if key in known}
    extras = {key: value for key, value in payload.items() if key not in known}
    if extras:
        params["extra_body"] = extras
    return params


def _to_dict(response_obj: Any) -> Any:
    if hasattr(response_obj, "model_dump"):
        return response_obj.model_dump(exclude_unset=True)
    return response_obj


def _truncate(text: Optional[str]) -> Optional[str]:
    if isinstance(text, str) and len(text) > _MAX_ERROR_BODY:
        return text[:_MAX_ERROR_BODY] + "...(truncated)"
    return text


class ProviderTransport:
    """Send outbound payloads to the provider named by a ``ProviderTarget``."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self.http_client = http_client

    def send(self, target: ProviderTarget, payload: Any) -> Any:
        """Return the decoded response: a dict for JSON, bytes for speech."""
        if target.provider is Provider.ANTHROPIC:
            return self._post_json(target, payload)
        return self._call_openai(target, payload)

    def _call_openai(self, target: ProviderTarget, payload: Any) -> Any:
        client = create_client(
            target.api_key, target.base_url, self.settings.upstream_timeout, self.http_client
        )
        try:
            if target.endpoint == "chat/completions":
                response_obj = client.chat.completions.create(**_split_params(payload, ("model", "messages")))
                return _to_dict(response_obj)
            if target.endpoint == "embeddings":
                params = _split_params(payload, EMBEDDING_PARAMS)
                # without an explicit format the SDK asks for base64 and re-decodes it as float32
                params.setdefault("encoding_format", "float")
                response_obj = client.embeddings.create(**params)
                return _to_dict(response_obj)
            if target.endpoint == "images/generations":
                response_obj = client.images.generate(
                    **_split_params(payload, ("model", "prompt", "size", "quality", "n"))
                )
                return _to_dict(response_obj)
            if target.endpoint == "audio/speech":
                response_obj = client.audio.speech.create(**_split_params(payload, ("model", "input", "voice")))
                return response_obj.content
            if target.endpoint == "audio/transcriptions":
                return self._transcribe(client, payload)
        except openai.APIStatusError as e:
            body = None
            if e.response is not None:
                body = _truncate(e.response.text)
            raise ProviderCallFailed(
                f"{target.endpoint_url} returned {e.status_code}: {body}",
                upstream_status=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderCallFailed(f"{target.endpoint_url} unreachable: {e}") from e
        raise ProviderCallFailed(f"no OpenAI call wired for endpoint {target.endpoint!r}")

    @staticmethod
    def _transcribe(client: openai.OpenAI, payload: MultipartPayload) -> Any:
        params = dict(payload.fields)
        for name, file_tuple in payload.files.items():
            params[name] = file_tuple
        response_obj = client.audio.transcriptions.create(**params)
        return _to_dict(response_obj)

    def _post_json(self, target: ProviderTarget, payload: dict) -> Any:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {target.api_key}",
            "x-api-key": target.api_key,
            "anthropic-version": self.settings.anthropic_version,
        }
        body = json.dumps(payload).encode("utf-8")
        req = Request(target.endpoint_url, data=body, headers=headers, method="POST")
        try:
            with urlopen(req, timeout=self.settings.upstream_timeout) as resp:
                resp_body = resp.read()
        except HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace")
            raise ProviderCallFailed(
                f"{target.endpoint_url} returned {e.code}: {_truncate(error_body)}",
                upstream_status=e.code,
            ) from e
        except (URLError, TimeoutError) as e:
            raise ProviderCallFailed(f"{target.endpoint_url} unreachable: {e}") from e
        try:
            return json.loads(resp_body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedProviderResponse(f"{target.endpoint_url} returned non-JSON body") from e
