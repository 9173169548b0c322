import pytest

from aigateway.core.app import create_app
from aigateway.core.settings import (
    DEFAULT_ANTHROPIC_BASE_URL,
    DEFAULT_OPENAI_BASE_URL,
    DEFAULT_SIMILARITY_MODEL,
    Settings,
)


class StubTransport:
    """Records outbound calls and replays canned provider responses by endpoint."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.calls = []

    def send(self, target, payload):
        self.calls.append((target, payload))
        if self.error is not None:
            raise self.error
        return self.responses[target.endpoint]


def make_settings(tmp_path, **overrides):
    values = dict(
        openai_api_key="sk-openai-test",
        anthropic_api_key="sk-ant-test",
        openai_base_url=DEFAULT_OPENAI_BASE_URL,
        anthropic_base_url=DEFAULT_ANTHROPIC_BASE_URL,
        anthropic_version="2023-06-01",
        similarity_model=DEFAULT_SIMILARITY_MODEL,
        upstream_timeout=5.0,
        max_body_mb=1,
        log_level="INFO",
        log_dir=str(tmp_path),
        log_to_file=False,
        log_file_max_mb=1.0,
        log_file_backups=1,
        app_version="test",
        strict_config=False,
        port=3000,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "missing-config.json"))


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def stub():
    return StubTransport()


@pytest.fixture
def client(settings, stub):
    app = create_app(settings=settings, transport=stub)
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c
