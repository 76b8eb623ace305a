"""Root conftest: pins settings to .env.test before chat_sync.config is imported.

Values from .env.test override the process environment so a developer's
own .env or exported variables never reach the test run.
"""
from __future__ import annotations

import os
from pathlib import Path


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    os.environ.update(_read_env_file(_env_test))
