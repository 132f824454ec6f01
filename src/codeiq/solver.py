from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from .config import SolverConfig, check_language
from .events import extract_error_message
from .sse_decoder import IncrementalEventStreamDecoder

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "AI quota exceeded. Please try again later."
FAILURE_MESSAGE = "Failed to generate solution"


class SolverError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class QuotaExceededError(SolverError):
    pass


@dataclass(frozen=True)
class SolveResult:
    run_id: str
    problem_id: str
    language: str

    text: str
    fragments: int
    dropped_records: int

    duration_ms: int


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _new_run_id() -> str:
    ts = _now_utc().strftime("%Y%m%d-%H%M%S")
    return f"{ts}-{secrets.token_hex(3)}"


def _error_for(resp: httpx.Response) -> SolverError:
    try:
        body: Any = resp.json()
    except ValueError:
        body = None

    if resp.status_code == 429:
        return QuotaExceededError(extract_error_message(body, QUOTA_MESSAGE), status_code=429)
    return SolverError(extract_error_message(body, FAILURE_MESSAGE), status_code=resp.status_code)


class _Run:
    """Accumulates fragments for one request and reports them to the caller."""

    def __init__(self, on_fragment: Callable[[str], None] | None):
        self.decoder = IncrementalEventStreamDecoder()
        self.parts: list[str] = []
        self.started_at = _now_utc()
        self._on_fragment = on_fragment

    def push(self, fragments: list[str]) -> None:
        for f in fragments:
            self.parts.append(f)
            if self._on_fragment is not None:
                self._on_fragment(f)

    def result(self, *, run_id: str, problem_id: str, language: str) -> SolveResult:
        finished_at = _now_utc()
        return SolveResult(
            run_id=run_id,
            problem_id=problem_id,
            language=language,
            text="".join(self.parts),
            fragments=len(self.parts),
            dropped_records=self.decoder.dropped_records,
            duration_ms=int((finished_at - self.started_at).total_seconds() * 1000),
        )


class AISolverClient:
    """Client for the streaming `ai-solver` function.

    `transport` is handed to httpx unchanged; tests pass an `httpx.MockTransport`.
    """

    def __init__(self, cfg: SolverConfig, *, transport: Any = None):
        self._cfg = cfg
        self._transport = transport

    def _request(self, *, problem_id: str, problem_title: str, language: str, leetcode_id: str | None) -> dict[str, Any]:
        return {
            "url": self._cfg.solver_url,
            "headers": {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._cfg.api_key}",
            },
            "json": {
                "problemId": leetcode_id or problem_id,
                "problemTitle": problem_title,
                "language": language,
            },
        }

    def stream_solution(
        self,
        *,
        problem_id: str,
        problem_title: str,
        language: str,
        leetcode_id: str | None = None,
        on_fragment: Callable[[str], None] | None = None,
    ) -> SolveResult:
        """Generate a solution, reporting each fragment as it arrives.

        Raises SolverError (QuotaExceededError on 429) before any fragment is
        produced when the upstream rejects the request.
        """

        language = check_language(language)
        run_id = _new_run_id()
        req = self._request(problem_id=problem_id, problem_title=problem_title, language=language, leetcode_id=leetcode_id)
        run = _Run(on_fragment)

        logger.info("Requesting %s solution for %s (run %s)", language, problem_id, run_id)
        try:
            with httpx.Client(timeout=self._cfg.timeout_s, transport=self._transport) as client:
                with client.stream("POST", req["url"], headers=req["headers"], json=req["json"]) as resp:
                    if not resp.is_success:
                        resp.read()
                        raise _error_for(resp)
                    for chunk in resp.iter_bytes():
                        run.push(run.decoder.feed(chunk))
                    run.push(run.decoder.flush())
        except httpx.HTTPError as e:
            raise SolverError(f"{FAILURE_MESSAGE}: {e}") from e

        res = run.result(run_id=run_id, problem_id=problem_id, language=language)
        logger.debug("Run %s finished: %d fragments in %d ms", run_id, res.fragments, res.duration_ms)
        return res

    async def astream_solution(
        self,
        *,
        problem_id: str,
        problem_title: str,
        language: str,
        leetcode_id: str | None = None,
        on_fragment: Callable[[str], None] | None = None,
    ) -> SolveResult:
        language = check_language(language)
        run_id = _new_run_id()
        req = self._request(problem_id=problem_id, problem_title=problem_title, language=language, leetcode_id=leetcode_id)
        run = _Run(on_fragment)

        logger.info("Requesting %s solution for %s (run %s)", language, problem_id, run_id)
        try:
            async with httpx.AsyncClient(timeout=self._cfg.timeout_s, transport=self._transport) as client:
                async with client.stream("POST", req["url"], headers=req["headers"], json=req["json"]) as resp:
                    if not resp.is_success:
                        await resp.aread()
                        raise _error_for(resp)
                    async for chunk in resp.aiter_bytes():
                        run.push(run.decoder.feed(chunk))
                    run.push(run.decoder.flush())
        except httpx.HTTPError as e:
            raise SolverError(f"{FAILURE_MESSAGE}: {e}") from e

        return run.result(run_id=run_id, problem_id=problem_id, language=language)
