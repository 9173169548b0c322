"""Container healthcheck: exit 0 when the local gateway answers /healthz."""
from urllib.error import URLError
from urllib.request import urlopen

from .core.config import get_server_port
from .core.settings import get_settings

HEALTHCHECK_TIMEOUT = 2


def _resolve_port() -> int:
    # same precedence as core.app.run
    return get_server_port() or get_settings().port


def main() -> int:
    url = f"http://127.0.0.1:{_resolve_port()}/healthz"
    try:
        with urlopen(url, timeout=HEALTHCHECK_TIMEOUT) as resp:
            return 0 if resp.status == 200 else 1
    except (URLError, OSError):
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
