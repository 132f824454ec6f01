from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from .auth import get_user_id
from .bootstrap import ensure_codeiq_importable

ensure_codeiq_importable()

from codeiq.config import check_language  # noqa: E402
from codeiq.progress import ProgressStore  # noqa: E402

router = APIRouter()


def _store(request: Request) -> ProgressStore:
    return request.app.state.store


@router.get("/v1/problems/{problem_id}/solution")
def solution(request: Request, problem_id: str, language: str) -> dict[str, Any]:
    user_id = get_user_id(request)
    try:
        lang = check_language(language)
        text = _store(request).cached_solution(user_id, problem_id, lang)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if text is None:
        raise HTTPException(status_code=404, detail="no cached solution")
    return {"problem_id": problem_id, "language": lang, "solution": text}


@router.post("/v1/problems/{problem_id}/notes")
def notes_post(request: Request, problem_id: str, body: dict[str, Any]) -> dict[str, Any]:
    user_id = get_user_id(request)

    text = body.get("solution")
    language = body.get("language")
    if not isinstance(text, str) or not text.strip():
        raise HTTPException(status_code=400, detail="solution required")
    if not isinstance(language, str):
        raise HTTPException(status_code=400, detail="language required")

    try:
        rec = _store(request).save_as_notes(user_id, problem_id, text, language)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return rec.to_dict()
