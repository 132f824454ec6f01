from __future__ import annotations

from codeiq.config import SolverConfig
from codeiq.orchestrator.graph import build_solve_graph
from codeiq.progress import ProgressStore
from codeiq.solver import AISolverClient


def _graph(tmp_path, upstream, seen: list[str]):
    cfg = SolverConfig(base_url="https://proj.test", api_key="k", data_dir=tmp_path)
    store = ProgressStore(tmp_path)
    graph = build_solve_graph(
        client=AISolverClient(cfg, transport=upstream.transport),
        store=store,
        on_fragment=seen.append,
    )
    return graph, store


def _state(**extra):
    return {"user_id": "u1", "problem_id": "p1", "problem_title": "Two Sum", "language": "python", **extra}


def test_generates_and_persists_on_cache_miss(tmp_path, upstream) -> None:
    seen: list[str] = []
    graph, store = _graph(tmp_path, upstream, seen)

    final = graph.invoke(_state())

    assert final["solution"] == "Hi there"
    assert final["cached"] is False
    assert final["fragments"] == 2
    assert seen == ["Hi", " there"]
    assert store.cached_solution("u1", "p1", "python") == "Hi there"


def test_serves_cached_solution(tmp_path, upstream) -> None:
    seen: list[str] = []
    graph, store = _graph(tmp_path, upstream, seen)
    store.save_solution("u1", "p1", "cached code", "python")

    final = graph.invoke(_state())

    assert final["cached"] is True
    assert final["solution"] == "cached code"
    assert seen == ["cached code"]
    assert upstream.requests == []


def test_force_and_language_switch_regenerate(tmp_path, upstream) -> None:
    seen: list[str] = []
    graph, store = _graph(tmp_path, upstream, seen)
    store.save_solution("u1", "p1", "old", "python")

    assert graph.invoke(_state(force=True))["solution"] == "Hi there"
    assert graph.invoke(_state(language="java"))["cached"] is False
    assert len(upstream.requests) == 2
    assert store.cached_solution("u1", "p1", "java") == "Hi there"


def test_empty_generation_is_not_cached(tmp_path, upstream) -> None:
    upstream.chunks = [b"data: [DONE]\n"]
    graph, store = _graph(tmp_path, upstream, [])

    final = graph.invoke(_state())
    assert final["solution"] == ""
    assert store.load("u1", "p1") is None
