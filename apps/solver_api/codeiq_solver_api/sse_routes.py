from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from .auth import get_user_id
from .bootstrap import ensure_codeiq_importable

ensure_codeiq_importable()

from codeiq.config import check_language  # noqa: E402
from codeiq.events import delta_event  # noqa: E402
from codeiq.paths import check_id  # noqa: E402
from codeiq.progress import ProgressStore  # noqa: E402
from codeiq.solver import AISolverClient, SolverError  # noqa: E402

router = APIRouter()


def _format_sse(data: str, *, event: str | None = None) -> bytes:
    # Basic SSE framing.
    out = []
    if event:
        out.append(f"event: {event}\n")
    for line in data.splitlines() or [""]:
        out.append(f"data: {line}\n")
    out.append("\n")
    return "".join(out).encode("utf-8")


def _delta_frame(content: str) -> bytes:
    return _format_sse(json.dumps(delta_event(content), ensure_ascii=True))


async def _relay_solution(
    *,
    store: ProgressStore,
    solver: AISolverClient,
    user_id: str,
    problem_id: str,
    title: str,
    language: str,
    leetcode_id: str | None,
    force: bool,
) -> AsyncIterator[bytes]:
    # Initial comment to establish connection.
    yield b": connected\n\n"

    if not force:
        cached = await asyncio.to_thread(store.cached_solution, user_id, problem_id, language)
        if cached:
            yield _delta_frame(cached)
            yield _format_sse("[DONE]")
            return

    queue: asyncio.Queue[str | None] = asyncio.Queue()
    task = asyncio.create_task(
        solver.astream_solution(
            problem_id=problem_id,
            problem_title=title,
            language=language,
            leetcode_id=leetcode_id,
            on_fragment=queue.put_nowait,
        )
    )
    task.add_done_callback(lambda _: queue.put_nowait(None))

    try:
        while True:
            fragment = await queue.get()
            if fragment is None:
                break
            yield _delta_frame(fragment)

        try:
            result = await task
        except SolverError as e:
            yield _format_sse(json.dumps({"error": str(e), "status": e.status_code}, ensure_ascii=True), event="error")
            return
    finally:
        if not task.done():
            task.cancel()

    # The progress lock may be contended; keep the event loop free while waiting.
    await asyncio.to_thread(store.save_solution, user_id, problem_id, result.text, language)
    yield _format_sse("[DONE]")


@router.post("/v1/problems/{problem_id}/solution.sse")
async def solution_events(request: Request, problem_id: str, body: dict[str, Any]):
    user_id = get_user_id(request)

    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        raise HTTPException(status_code=400, detail="title required")
    leetcode_id = body.get("leetcode_id")
    if leetcode_id is not None and not isinstance(leetcode_id, str):
        raise HTTPException(status_code=400, detail="leetcode_id must be a string")

    try:
        check_id(problem_id, what="problem_id")
        language = check_language(body.get("language") or "")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return StreamingResponse(
        _relay_solution(
            store=request.app.state.store,
            solver=request.app.state.solver,
            user_id=user_id,
            problem_id=problem_id,
            title=title,
            language=language,
            leetcode_id=leetcode_id,
            force=bool(body.get("force")),
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
