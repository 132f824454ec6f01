from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .bootstrap import ensure_codeiq_importable

repo_root = ensure_codeiq_importable()

from codeiq.config import SolverConfig, load_solver_config  # noqa: E402
from codeiq.progress import ProgressStore  # noqa: E402
from codeiq.solver import AISolverClient  # noqa: E402

from .routes import router as api_router  # noqa: E402
from .sse_routes import router as sse_router  # noqa: E402


def create_app(*, cfg: SolverConfig | None = None, transport: Any = None) -> FastAPI:
    cfg = cfg or load_solver_config(repo_root=repo_root)

    app = FastAPI(title="codeiq solver api", version="0.1.0")
    app.state.store = ProgressStore(cfg.data_dir)
    app.state.solver = AISolverClient(cfg, transport=transport)

    # Vite dev server.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(sse_router)
    return app


app = create_app()
