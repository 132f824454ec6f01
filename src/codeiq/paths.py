from __future__ import annotations

import re
from pathlib import Path

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")


def find_repo_root(start: Path | None = None) -> Path:
    """Find the repository root by walking up to a directory containing pyproject.toml."""

    cur = (start or Path.cwd()).resolve()
    for p in [cur, *cur.parents]:
        if (p / "pyproject.toml").exists():
            return p
    # Fallback: current directory.
    return cur


def check_id(value: str, *, what: str) -> str:
    if not isinstance(value, str) or not _ID_RE.match(value) or ".." in value:
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def users_dir(data_dir: Path) -> Path:
    return data_dir / "users"


def progress_dir(data_dir: Path, user_id: str) -> Path:
    return users_dir(data_dir) / check_id(user_id, what="user_id") / "progress"


def progress_path(data_dir: Path, user_id: str, problem_id: str) -> Path:
    return progress_dir(data_dir, user_id) / f"{check_id(problem_id, what='problem_id')}.json"
