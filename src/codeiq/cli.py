from __future__ import annotations

import logging
from pathlib import Path

import typer

from .config import LANGUAGE_NAMES, check_language, load_solver_config
from .orchestrator.graph import build_solve_graph
from .paths import find_repo_root
from .progress import ProgressStore
from .scaffold import init_project
from .solver import AISolverClient, SolverError
from .sse_decoder import IncrementalEventStreamDecoder

app = typer.Typer(add_completion=False, help="codeiq: AI solutions for DSA practice problems")


@app.callback()
def _root(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root (defaults to auto-detect via pyproject.toml)",
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing templates"),
) -> None:
    repo_root = (root.resolve() if root else find_repo_root())

    try:
        result = init_project(repo_root=repo_root, overwrite=overwrite)
    except FileExistsError as e:
        typer.secho(f"Refusing to overwrite existing file: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from e

    typer.secho(f"Created config: {result.config_path}", fg=typer.colors.GREEN)
    typer.secho(f"Created env template: {result.dotenv_path}", fg=typer.colors.GREEN)


@app.command()
def solve(
    problem_id: str = typer.Argument(..., help="Problem identifier"),
    title: str = typer.Option(..., "--title", help="Problem title sent to the solver"),
    user: str = typer.Option(..., "--user", "-u", help="User id owning the progress record"),
    language: str | None = typer.Option(
        None, "--language", "-l", help=f"Solution language: {'|'.join(LANGUAGE_NAMES)}"
    ),
    leetcode_id: str | None = typer.Option(None, "--leetcode-id", help="LeetCode id, if different"),
    force: bool = typer.Option(False, "--force", help="Ignore any cached solution"),
    save_notes: bool = typer.Option(False, "--save-notes", help="Append the solution to the problem notes"),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root (defaults to auto-detect via pyproject.toml)",
    ),
) -> None:
    repo_root = (root.resolve() if root else find_repo_root())
    cfg = load_solver_config(repo_root=repo_root)

    lang = language or cfg.language
    if not lang:
        typer.secho("No language configured; pass --language", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    try:
        lang = check_language(lang)
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=2) from e

    if not cfg.base_url:
        typer.secho("SUPABASE_URL is not set (env, .env or codeiq.yaml)", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    store = ProgressStore(cfg.data_dir)
    graph = build_solve_graph(
        client=AISolverClient(cfg),
        store=store,
        on_fragment=lambda f: typer.echo(f, nl=False),
    )

    try:
        final_state = graph.invoke(
            {
                "user_id": user,
                "problem_id": problem_id,
                "problem_title": title,
                "leetcode_id": leetcode_id,
                "language": lang,
                "force": force,
            }
        )
    except SolverError as e:
        typer.echo()
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1) from e
    except (ValueError, TimeoutError) as e:
        # Invalid user/problem id, or the progress store stayed locked.
        typer.echo()
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=2) from e

    typer.echo()
    solution = final_state.get("solution", "")
    if not solution:
        typer.secho("The solver returned no content.", fg=typer.colors.YELLOW)
        return

    if final_state.get("cached"):
        typer.secho("(cached)", fg=typer.colors.BLUE)

    if save_notes:
        try:
            store.save_as_notes(user, problem_id, solution, lang)
        except TimeoutError as e:
            typer.secho(str(e), fg=typer.colors.RED)
            raise typer.Exit(code=2) from e
        typer.secho("Solution saved to notes!", fg=typer.colors.GREEN)


@app.command()
def decode(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured event-stream body"),
    chunk_size: int = typer.Option(4096, "--chunk-size", min=1, help="Bytes fed to the decoder per call"),
) -> None:
    """Decode a captured ai-solver response body and print its text."""

    dec = IncrementalEventStreamDecoder()
    with path.open("rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            for fragment in dec.feed(chunk):
                typer.echo(fragment, nl=False)
    for fragment in dec.flush():
        typer.echo(fragment, nl=False)
    typer.echo()

    if dec.dropped_records:
        typer.secho(f"Dropped {dec.dropped_records} undecodable record(s)", fg=typer.colors.YELLOW, err=True)


def main() -> None:
    # Entry point for console script.
    app()


if __name__ == "__main__":
    main()
