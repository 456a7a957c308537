"""
db/config.py

Connection settings for the adaptation job store.

The URL comes from the process environment, optionally seeded from `.env`
and `.env.local` at the project root. Variables already set in the
environment always win over file values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
PSYCOPG_SCHEME = "postgresql+psycopg://"


def _parse_env_line(line: str) -> tuple[str, str] | None:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, _, value = stripped.partition("=")
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip("'\"")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    for filename in ENV_FILES:
        path = root / filename
        if not path.is_file():
            continue
        for line in path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg 3 driver.
    """

    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return PSYCOPG_SCHEME + url[len(scheme):]
    return url


def resolve_database_url(environ: Mapping[str, str] | None = None) -> str:
    """
    Pick the job store URL.

    DATABASE_URL wins; CLOUD_DATABASE_URL is used when ENVIRONMENT names a
    deployed stage; LOCAL_DATABASE_URL is the last resort.
    """

    if environ is None:
        load_env_files()
        environ = os.environ

    environment = environ.get("ENVIRONMENT", "local").strip().lower()
    candidates = [environ.get("DATABASE_URL")]
    if environment in CLOUD_ENVIRONMENTS:
        candidates.append(environ.get("CLOUD_DATABASE_URL"))
    candidates.append(environ.get("LOCAL_DATABASE_URL"))

    for candidate in candidates:
        if candidate and candidate.strip():
            return normalize_postgres_url(candidate.strip())

    raise RuntimeError(
        "No job store database configured. Set DATABASE_URL, or LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )
