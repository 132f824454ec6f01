from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class InitResult:
    config_path: Path
    dotenv_path: Path
    data_path: Path


def _write_text(path: Path, content: str, *, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(str(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def init_project(*, repo_root: Path, overwrite: bool = False) -> InitResult:
    """Create codeiq.yaml, .env and the data/ directory under repo_root."""

    data_path = repo_root / "data"
    (data_path / "users").mkdir(parents=True, exist_ok=True)

    config_path = repo_root / "codeiq.yaml"
    _write_text(
        config_path,
        "\n".join(
            [
                "# Backend project URL; SUPABASE_URL in the environment wins.",
                "base_url: null",
                "# Preferred DSA language: java | python | cpp | c",
                "language: python",
                "# Seconds to wait on connect and between stream reads.",
                "timeout_s: 120",
                "data_dir: data",
                "",
            ]
        ),
        overwrite=overwrite,
    )

    dotenv_path = repo_root / ".env"
    _write_text(
        dotenv_path,
        "\n".join(
            [
                "# Local environment for the AI solver client.",
                "#",
                "# SUPABASE_URL=https://<project>.supabase.co",
                "# SUPABASE_PUBLISHABLE_KEY=...",
                "# CODEIQ_LANGUAGE=python",
                "",
            ]
        ),
        overwrite=overwrite,
    )

    return InitResult(config_path=config_path, dotenv_path=dotenv_path, data_path=data_path)
