"""Load the shared ``.env`` file that holds the server-side credential.

Values from ``~/.config/cine-prompt/.env`` only fill variables the
process environment leaves unset or blank. No external dependencies.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "cine-prompt" / ".env"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines, allowing quotes, ``export`` and ``#`` comments."""
    result: dict[str, str] = {}
    if not path.is_file():
        return result

    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        result[key] = _unquote(value.strip())
    return result


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Inject parsed vars into ``os.environ`` where the current value is blank.

    Args:
        path: File to read. Defaults to :data:`DEFAULT_ENV_PATH`.

    Returns:
        Dict of vars that were actually injected.
    """
    parsed = parse_dotenv(path or DEFAULT_ENV_PATH)
    injected: dict[str, str] = {}
    for key, value in parsed.items():
        current = _unquote((os.environ.get(key) or "").strip()).strip()
        if current:
            continue
        os.environ[key] = value
        injected[key] = value
    return injected
