"""Optional config.json loader for server and logging options."""
import json
import logging
import os

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
DEFAULT_CONFIG_PATH = os.path.join(BASE_DIR, "config.json")

_CONFIG_CACHE = {
    "path": None,
    "config": None,
    "mtime": None,
}

logger = logging.getLogger("aigateway.config")


def _config_path():
    return os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)


def _empty_config():
    return {"server": {}, "logging": {}, "errors": []}


def load_config():
    """Load and cache config.json with a simple mtime check."""
    path = _config_path()
    try:
        mtime = os.path.getmtime(path)
    except FileNotFoundError:
        return _empty_config()

    cached = _CONFIG_CACHE["config"]
    if cached is not None and _CONFIG_CACHE["path"] == path and _CONFIG_CACHE["mtime"] == mtime:
        return cached

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        config = _empty_config()
        config["errors"] = [f"config.json could not be read: {e}"]
        return config

    if not isinstance(raw, dict):
        raw = {}

    config = {
        "server": raw.get("server", {}) if isinstance(raw.get("server"), dict) else {},
        "logging": raw.get("logging", {}) if isinstance(raw.get("logging"), dict) else {},
    }

    config_errors = validate_config(config)
    config["errors"] = config_errors
    if config_errors:
        logger.warning("Config validation warnings: %s", "; ".join(config_errors))

    _CONFIG_CACHE["path"] = path
    _CONFIG_CACHE["config"] = config
    _CONFIG_CACHE["mtime"] = mtime
    return config


def _split_list(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str) and item.strip()]
    return []


def _normalize_logging(logging_cfg):
    """Normalize logging configuration."""
    if not isinstance(logging_cfg, dict):
        logging_cfg = {}
    sample_rate = logging_cfg.get("sample_rate", 1.0)
    try:
        sample_rate = float(sample_rate)
    except (TypeError, ValueError):
        sample_rate = 1.0
    sample_rate = max(0.0, min(1.0, sample_rate))
    return {
        "sample_rate": sample_rate,
        "include_headers": bool(logging_cfg.get("include_headers", False)),
        "include_body": bool(logging_cfg.get("include_body", False)),
        "redact_headers": _split_list(
            logging_cfg.get("redact_headers", ["authorization", "x-api-key", "api-key"])
        ),
        "redact_keys": _split_list(logging_cfg.get("redact_keys", ["api_key", "apiKey"])),
    }


def validate_config(config):
    """Validate config shape; return list of warnings."""
    errors = []

    server = config.get("server", {})
    if isinstance(server, dict) and "port" in server:
        try:
            port = int(server.get("port"))
            if port <= 0 or port > 65535:
                errors.append("server.port must be between 1 and 65535")
        except (TypeError, ValueError):
            errors.append("server.port must be an integer")

    logging_cfg = config.get("logging", {})
    if isinstance(logging_cfg, dict) and "sample_rate" in logging_cfg:
        try:
            sample_rate = float(logging_cfg.get("sample_rate"))
            if not (0.0 <= sample_rate <= 1.0):
                errors.append("logging.sample_rate must be between 0 and 1")
        except (TypeError, ValueError):
            errors.append("logging.sample_rate must be a number")

    return errors


def get_config_errors():
    """Return validation warnings for current config."""
    config = load_config()
    return config.get("errors", [])


def get_server_port():
    """Return server port from config.json, if set."""
    config = load_config()
    server = config.get("server", {})
    port = server.get("port")
    try:
        return int(port)
    except (TypeError, ValueError):
        return None


def get_logging_config():
    """Return normalized logging config."""
    config = load_config()
    return _normalize_logging(config.get("logging", {}))
