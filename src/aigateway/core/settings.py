"""Environment-driven settings for the AI gateway."""
from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
DEFAULT_SIMILARITY_MODEL = "text-embedding-ada-002"
DEFAULT_PORT = 3000


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    anthropic_api_key: str
    openai_base_url: str
    anthropic_base_url: str
    anthropic_version: str
    similarity_model: str
    upstream_timeout: float
    max_body_mb: float
    log_level: str
    log_dir: str
    log_to_file: bool
    log_file_max_mb: float
    log_file_backups: int
    app_version: str
    strict_config: bool
    port: int

    @property
    def max_content_length(self) -> int:
        return int(self.max_body_mb * 1024 * 1024)


@lru_cache
def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
        anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL", DEFAULT_ANTHROPIC_BASE_URL),
        anthropic_version=os.getenv("ANTHROPIC_VERSION", "2023-06-01"),
        similarity_model=os.getenv("SIMILARITY_MODEL", DEFAULT_SIMILARITY_MODEL),
        upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT", "60")),
        max_body_mb=float(os.getenv("MAX_BODY_MB", "25")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv(
            "LOG_DIR",
            os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "logs")),
        ),
        log_to_file=_env_flag("LOG_TO_FILE"),
        log_file_max_mb=float(os.getenv("LOG_FILE_MAX_MB", "10")),
        log_file_backups=int(os.getenv("LOG_FILE_BACKUPS", "5")),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        strict_config=_env_flag("STRICT_CONFIG"),
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
    )
