from manimforge import main as cli

from .helpers import PYTHAGORAS_SCRIPT


def test_file_mode_writes_output(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))
    source = tmp_path / "scene.py"
    source.write_text(PYTHAGORAS_SCRIPT, encoding="utf-8")
    output = tmp_path / "out.py"

    assert cli.main(["--file", str(source), "--output", str(output)]) == 0

    written = output.read_text(encoding="utf-8")
    assert "self.wait(" in written


def test_structural_error_exits_with_one(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))
    source = tmp_path / "broken.py"
    source.write_text("print('no scene')", encoding="utf-8")

    assert cli.main(["--file", str(source)]) == 1


def test_list_and_stats(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))

    assert cli.main(["--list"]) == 0
    assert cli.main(["--stats"]) == 0
    assert cli.main(["--clear"]) == 0


def test_missing_topic_is_usage_error(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))

    assert cli.main([]) == 2


def test_blank_topic_reported_without_traceback(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))

    assert cli.main(["   "]) == 2


def test_missing_prompts_file_reported(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIMFORGE_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("MANIMFORGE_PROMPTS", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("OPENROUTER_API_KEY", "")

    assert cli.main(["Teorema de Pitágoras"]) == 1
