"""Lightweight .env loader so client settings can live next to a script."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, MutableMapping

_QUOTES = {"'", '"'}


def _parse_line(line: str) -> tuple[str, str] | None:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :].strip()
    key, sep, value = stripped.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, _clean_value(value.strip())


def _clean_value(raw: str) -> str:
    if not raw:
        return ""
    if len(raw) >= 2 and raw[0] in _QUOTES and raw[-1] == raw[0]:
        return raw[1:-1]
    # Unquoted values may carry a trailing " # comment".
    value, _, _ = raw.partition(" #")
    return value.rstrip()


def load_env_file(
    path: Path | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Copy ``KEY=value`` pairs from a .env file into ``environ``.

    Defaults to ``.env`` in the working directory and ``os.environ``.
    Variables that are already set keep their value; a missing file is ignored.
    """

    env_path = path or Path.cwd() / ".env"
    if not env_path.is_file():
        return
    target = os.environ if environ is None else environ

    lines: Iterable[str]
    with env_path.open("r", encoding="utf-8") as handle:
        lines = handle.readlines()

    for parsed in map(_parse_line, lines):
        if parsed is None:
            continue
        key, value = parsed
        target.setdefault(key, value)


__all__ = ["load_env_file"]
