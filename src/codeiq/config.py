from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

LANGUAGE_NAMES: dict[str, str] = {
    "java": "Java",
    "python": "Python",
    "cpp": "C++",
    "c": "C",
}


@dataclass
class SolverConfig:
    base_url: str = ""
    api_key: str = ""

    # Seconds; applies to connect and to each read of the stream.
    timeout_s: float = 120.0

    # Preferred DSA language; one of LANGUAGE_NAMES.
    language: str | None = None

    # Root of the per-user progress store.
    data_dir: Path = field(default_factory=lambda: Path("data"))

    @property
    def solver_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/functions/v1/ai-solver"


def check_language(language: str) -> str:
    lang = language.lower() if isinstance(language, str) else ""
    if lang not in LANGUAGE_NAMES:
        raise ValueError(f"Unsupported language {language!r}; expected one of {', '.join(LANGUAGE_NAMES)}")
    return lang


def _as_str(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _as_float(v: Any) -> float | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str) and v:
        try:
            return float(v)
        except ValueError:
            return None
    return None


def _as_path(v: Any, *, base: Path) -> Path | None:
    s = _as_str(v)
    if s is None:
        return None
    p = Path(s)
    return (base / p).resolve() if not p.is_absolute() else p


def load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal .env file (KEY=VALUE lines)."""

    if not path.exists():
        return {}

    env: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if k:
            env[k] = v
    return env


def effective_env(*, dotenv: dict[str, str]) -> dict[str, str]:
    """Precedence: existing process env wins; .env values fill in missing keys."""

    env = dict(os.environ)
    for k, v in dotenv.items():
        env.setdefault(k, v)
    return env


def load_solver_config(*, repo_root: Path) -> SolverConfig:
    """Load codeiq.yaml and .env from the repo root; environment overrides both."""

    yaml_path = repo_root / "codeiq.yaml"
    data: dict[str, Any] = {}
    if yaml_path.exists():
        loaded = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            data = loaded

    env = effective_env(dotenv=load_dotenv(repo_root / ".env"))

    cfg = SolverConfig(data_dir=repo_root / "data")
    cfg.base_url = _as_str(env.get("SUPABASE_URL")) or _as_str(data.get("base_url")) or cfg.base_url
    cfg.api_key = _as_str(env.get("SUPABASE_PUBLISHABLE_KEY")) or _as_str(data.get("api_key")) or cfg.api_key

    timeout = _as_float(env.get("CODEIQ_TIMEOUT_S"))
    if timeout is None:
        timeout = _as_float(data.get("timeout_s"))
    if timeout is not None and timeout > 0:
        cfg.timeout_s = timeout

    language = _as_str(env.get("CODEIQ_LANGUAGE")) or _as_str(data.get("language"))
    cfg.language = check_language(language) if language else None

    cfg.data_dir = (
        _as_path(env.get("CODEIQ_DATA_DIR"), base=repo_root)
        or _as_path(data.get("data_dir"), base=repo_root)
        or cfg.data_dir
    )
    return cfg
