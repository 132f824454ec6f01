from __future__ import annotations

import pytest

from codeiq.config import check_language, load_dotenv, load_solver_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for k in ("SUPABASE_URL", "SUPABASE_PUBLISHABLE_KEY", "CODEIQ_LANGUAGE", "CODEIQ_TIMEOUT_S", "CODEIQ_DATA_DIR"):
        monkeypatch.delenv(k, raising=False)


def test_defaults_without_files(tmp_path) -> None:
    cfg = load_solver_config(repo_root=tmp_path)
    assert cfg.base_url == ""
    assert cfg.language is None
    assert cfg.timeout_s == 120.0
    assert cfg.data_dir == tmp_path / "data"


def test_yaml_and_dotenv(tmp_path) -> None:
    (tmp_path / "codeiq.yaml").write_text(
        "base_url: https://from-yaml.test\nlanguage: Java\ntimeout_s: 30\ndata_dir: store\n",
        encoding="utf-8",
    )
    (tmp_path / ".env").write_text(
        '# comment\nSUPABASE_URL="https://from-dotenv.test"\nSUPABASE_PUBLISHABLE_KEY=pk\nnot a pair\n',
        encoding="utf-8",
    )

    cfg = load_solver_config(repo_root=tmp_path)
    assert cfg.base_url == "https://from-dotenv.test"
    assert cfg.api_key == "pk"
    assert cfg.language == "java"
    assert cfg.timeout_s == 30.0
    assert cfg.data_dir == (tmp_path / "store").resolve()
    assert cfg.solver_url == "https://from-dotenv.test/functions/v1/ai-solver"


def test_process_env_wins_over_dotenv(tmp_path, monkeypatch) -> None:
    (tmp_path / ".env").write_text("SUPABASE_URL=https://dotenv.test\nCODEIQ_LANGUAGE=c\n", encoding="utf-8")
    monkeypatch.setenv("SUPABASE_URL", "https://env.test")

    cfg = load_solver_config(repo_root=tmp_path)
    assert cfg.base_url == "https://env.test"
    assert cfg.language == "c"


def test_invalid_language_in_config(tmp_path) -> None:
    (tmp_path / "codeiq.yaml").write_text("language: cobol\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_solver_config(repo_root=tmp_path)


def test_check_language() -> None:
    assert check_language("CPP") == "cpp"
    with pytest.raises(ValueError):
        check_language("")


def test_load_dotenv_missing(tmp_path) -> None:
    assert load_dotenv(tmp_path / ".env") == {}
