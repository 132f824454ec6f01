from __future__ import annotations

import sys
from pathlib import Path


def ensure_codeiq_importable() -> Path:
    """Put `src/` on sys.path so the solver relay can import `codeiq` from a checkout.

    Returns the repo root, where `codeiq.yaml` and `.env` are looked up.
    """

    repo_root = Path(__file__).resolve().parents[3]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))
    return repo_root
