"""Exports the VIBELY_* variables from .env.test before `vibely_realtime.config` builds its settings."""
from __future__ import annotations

import os
from pathlib import Path

ENV_FILE = Path(__file__).resolve().parent / ".env.test"


def _load_test_env(path: Path) -> None:
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        # an explicit environment still wins over the test defaults
        os.environ.setdefault(key.strip(), value.strip())


if ENV_FILE.exists():
    _load_test_env(ENV_FILE)
