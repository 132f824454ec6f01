from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from ..progress import ProgressStore
from ..solver import AISolverClient


class SolveState(TypedDict, total=False):
    user_id: str
    problem_id: str
    problem_title: str
    leetcode_id: str | None
    language: str

    # Skip the cache (regenerate / language switched).
    force: bool

    solution: str
    cached: bool
    fragments: int
    run_id: str | None


def build_solve_graph(
    *,
    client: AISolverClient,
    store: ProgressStore,
    on_fragment: Callable[[str], None] | None = None,
) -> Any:
    """Build START -> cache -> (generate -> persist) -> END."""

    def cache_node(state: SolveState) -> SolveState:
        if state.get("force"):
            return {**state, "cached": False}
        text = store.cached_solution(state["user_id"], state["problem_id"], state["language"])
        if text is None:
            return {**state, "cached": False}
        if on_fragment is not None:
            on_fragment(text)
        return {**state, "cached": True, "solution": text, "fragments": 1, "run_id": None}

    def generate_node(state: SolveState) -> SolveState:
        res = client.stream_solution(
            problem_id=state["problem_id"],
            problem_title=state.get("problem_title", ""),
            language=state["language"],
            leetcode_id=state.get("leetcode_id"),
            on_fragment=on_fragment,
        )
        return {**state, "solution": res.text, "fragments": res.fragments, "run_id": res.run_id}

    def persist_node(state: SolveState) -> SolveState:
        store.save_solution(state["user_id"], state["problem_id"], state.get("solution", ""), state["language"])
        return state

    def after_cache(state: SolveState) -> str:
        return "done" if state.get("cached") else "generate"

    g: StateGraph = StateGraph(SolveState)
    g.add_node("cache", cache_node)
    g.add_node("generate", generate_node)
    g.add_node("persist", persist_node)
    g.set_entry_point("cache")
    g.add_conditional_edges("cache", after_cache, {"generate": "generate", "done": END})
    g.add_edge("generate", "persist")
    g.add_edge("persist", END)
    return g.compile()
