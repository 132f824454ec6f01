from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .config import LANGUAGE_NAMES, check_language
from .locking import acquire_progress_lock
from .paths import progress_dir, progress_path

logger = logging.getLogger(__name__)

NOTES_SEPARATOR = "\n\n---\n\n"


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _str_to_dt(s: Any, *, fallback: datetime) -> datetime:
    if isinstance(s, str) and s:
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            return fallback
    return fallback


def _opt_str(v: Any) -> str | None:
    return v if isinstance(v, str) else None


def notes_section(text: str, language: str) -> str:
    return f"## AI Solution ({LANGUAGE_NAMES.get(language, LANGUAGE_NAMES['python'])})\n\n{text}"


@dataclass
class ProblemProgress:
    user_id: str
    problem_id: str
    status: str = "in_progress"
    notes: str | None = None
    ai_solution: str | None = None
    ai_solution_language: str | None = None

    created_at: datetime = field(default_factory=_now_utc)
    updated_at: datetime = field(default_factory=_now_utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "problem_id": self.problem_id,
            "status": self.status,
            "notes": self.notes,
            "ai_solution": self.ai_solution,
            "ai_solution_language": self.ai_solution_language,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, user_id: str, problem_id: str) -> "ProblemProgress":
        now = _now_utc()
        return cls(
            user_id=user_id,
            problem_id=problem_id,
            status=_opt_str(data.get("status")) or "in_progress",
            notes=_opt_str(data.get("notes")),
            ai_solution=_opt_str(data.get("ai_solution")),
            ai_solution_language=_opt_str(data.get("ai_solution_language")),
            created_at=_str_to_dt(data.get("created_at"), fallback=now),
            updated_at=_str_to_dt(data.get("updated_at"), fallback=now),
        )


def _atomic_write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(obj, ensure_ascii=True, indent=2), encoding="utf-8")
    tmp.replace(path)


class ProgressStore:
    """Owns users/<user>/progress/<problem>.json under one data directory."""

    def __init__(self, data_dir: Path, *, lock_timeout_s: float = 10.0):
        self._data_dir = data_dir
        self._lock_timeout_s = lock_timeout_s

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def load(self, user_id: str, problem_id: str) -> ProblemProgress | None:
        path = progress_path(self._data_dir, user_id, problem_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable progress file %s", path)
            return None
        if not isinstance(data, dict):
            data = {}
        return ProblemProgress.from_dict(data, user_id=user_id, problem_id=problem_id)

    def cached_solution(self, user_id: str, problem_id: str, language: str) -> str | None:
        rec = self.load(user_id, problem_id)
        if rec is None or not rec.ai_solution:
            return None
        if rec.ai_solution_language != language:
            return None
        return rec.ai_solution

    def save_solution(self, user_id: str, problem_id: str, text: str, language: str) -> ProblemProgress | None:
        if not text:
            return None
        language = check_language(language)

        h = acquire_progress_lock(progress_dir(self._data_dir, user_id), timeout_s=self._lock_timeout_s)
        try:
            rec = self.load(user_id, problem_id) or ProblemProgress(user_id=user_id, problem_id=problem_id)
            rec.ai_solution = text
            rec.ai_solution_language = language
            self._write(rec)
        finally:
            h.release()

        logger.info("Cached %s solution for %s/%s (%d chars)", language, user_id, problem_id, len(text))
        return rec

    def save_as_notes(self, user_id: str, problem_id: str, text: str, language: str) -> ProblemProgress:
        language = check_language(language)
        section = notes_section(text, language)

        h = acquire_progress_lock(progress_dir(self._data_dir, user_id), timeout_s=self._lock_timeout_s)
        try:
            rec = self.load(user_id, problem_id)
            if rec is None:
                rec = ProblemProgress(user_id=user_id, problem_id=problem_id, status="in_progress", notes=section)
            else:
                rec.notes = f"{rec.notes}{NOTES_SEPARATOR}{section}" if rec.notes else section
            self._write(rec)
        finally:
            h.release()
        return rec

    def _write(self, rec: ProblemProgress) -> None:
        rec.updated_at = _now_utc()
        _atomic_write_json(progress_path(self._data_dir, rec.user_id, rec.problem_id), rec.to_dict())
