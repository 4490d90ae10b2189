import json
from pathlib import Path
from typing import Any

import yaml
from pytest import MonkeyPatch
from typer.testing import CliRunner

from breeze_reader.cli import app
from breeze_reader.models import Definition

runner = CliRunner()


def test_cli_print_config_outputs_yaml():
    """print-config emits the default configuration as YAML."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    payload = yaml.safe_load(result.stdout)
    assert payload["reading"]["wpm"] == 450
    assert payload["reading"]["mode"] == "single"


def test_cli_tokenize_reports_orp_and_delay(tmp_path: Path):
    """tokenize lists every token with its ORP split and dwell time."""
    text_file = tmp_path / "sample.txt"
    text_file.write_text("Reading quickly, friend.", encoding="utf-8")
    result = runner.invoke(app, ["tokenize", "--input-path", str(text_file), "--wpm", "600"])
    assert result.exit_code == 0
    tokens = json.loads(result.stdout)["tokens"]
    assert [token["text"] for token in tokens] == ["Reading", "quickly,", "friend."]
    assert tokens[0]["center"] == "a"
    assert tokens[0]["bold"] == "Read"
    assert [token["delay_ms"] for token in tokens] == [100.0, 150.0, 200.0]


def test_cli_timeline_rejects_invalid_wpm(tmp_path: Path):
    """Unusable overrides are reported as bad parameters."""
    text_file = tmp_path / "sample.txt"
    text_file.write_text("a b c", encoding="utf-8")
    result = runner.invoke(app, ["timeline", "--input-path", str(text_file), "--wpm", "0"])
    assert result.exit_code != 0


def test_cli_timeline_groups_chunks(tmp_path: Path):
    """timeline emits one exposure per chunk with cumulative start times."""
    text_file = tmp_path / "sample.txt"
    text_file.write_text("a b c d e", encoding="utf-8")
    result = runner.invoke(
        app,
        [
            "timeline",
            "--input-path",
            str(text_file),
            "--wpm",
            "600",
            "--mode",
            "chunk",
            "--chunk-size",
            "2",
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [exposure["text"] for exposure in payload["exposures"]] == ["a b", "c d", "e"]
    assert [exposure["start_ms"] for exposure in payload["exposures"]] == [0.0, 200.0, 400.0]
    assert payload["total_ms"] == 600.0


def test_cli_import_and_library(tmp_path: Path):
    """import stores a text file that library then lists."""
    library_path = tmp_path / "library.json"
    item = _import(tmp_path, library_path, "One two three.")
    assert item["total_words"] == 3
    assert item["title"] == "notes"

    result = runner.invoke(app, ["library", "--library-path", str(library_path)])
    assert result.exit_code == 0
    items = json.loads(result.stdout)["items"]
    assert [entry["id"] for entry in items] == [item["id"]]


def test_cli_import_rejects_unknown_extension(tmp_path: Path):
    """import refuses formats it cannot read as plain text."""
    pdf = tmp_path / "book.pdf"
    pdf.write_text("binary", encoding="utf-8")
    result = runner.invoke(
        app, ["import", "--input-path", str(pdf), "--library-path", str(tmp_path / "lib.json")]
    )
    assert result.exit_code != 0


def test_cli_read_simulate_logs_session(tmp_path: Path):
    """read --simulate plays to the end, saving position and session."""
    library_path = tmp_path / "library.json"
    item = _import(tmp_path, library_path, "One two three.")

    result = runner.invoke(
        app, ["read", "--item-id", item["id"], "--library-path", str(library_path), "--simulate"]
    )
    assert result.exit_code == 0
    assert "Finished 'notes'." in result.stdout

    listing = json.loads(
        runner.invoke(app, ["library", "--library-path", str(library_path)]).stdout
    )["items"][0]
    assert listing["last_position"] == 2
    assert listing["sessions"] == 1

    stats = runner.invoke(app, ["stats", "--library-path", str(library_path)])
    assert stats.exit_code == 0
    summary = json.loads(stats.stdout)
    assert summary["total_words"] == 3
    assert summary["sessions"] == 1
    assert summary["current_streak"] == 1
    assert summary["avg_wpm"] == 450
    assert len(summary["last_7_days"]) == 7


def test_cli_read_unknown_item_fails(tmp_path: Path):
    result = runner.invoke(
        app, ["read", "--item-id", "missing", "--library-path", str(tmp_path / "lib.json")]
    )
    assert result.exit_code != 0


def test_cli_define_save_then_review(tmp_path: Path, monkeypatch: MonkeyPatch):
    """define --save adds a due card that review then grades."""
    library_path = tmp_path / "library.json"
    item = _import(tmp_path, library_path, "A lucid and candid account.")
    seen: dict[str, Any] = {}

    class FakeLookup:
        def define(self, word: str, context: str = "") -> Definition:
            seen["word"] = word
            seen["context"] = context
            return Definition(definition="Clear.", examples=["A lucid talk.", "Unused."])

    monkeypatch.setattr("breeze_reader.cli.build_lookup", lambda _cfg: FakeLookup())

    result = runner.invoke(
        app,
        [
            "define",
            "lucid,",
            "--item-id",
            item["id"],
            "--position",
            "1",
            "--save",
            "--library-path",
            str(library_path),
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["word"] == "lucid"
    assert payload["definition"] == "Clear."
    assert "saved" in payload
    assert seen["context"] == "A lucid and candid account."

    vocab = json.loads(
        runner.invoke(app, ["vocabulary", "--library-path", str(library_path)]).stdout
    )["vocabulary"]
    assert vocab[0]["examples"] == ["A lucid talk."]
    assert vocab[0]["proficiency"] == 0

    review = runner.invoke(
        app, ["review", "--library-path", str(library_path)], input="\nmaybe\ngood\n"
    )
    assert review.exit_code == 0
    assert "Reviewed 1 card(s)." in review.stdout

    vocab = json.loads(
        runner.invoke(app, ["vocabulary", "--library-path", str(library_path)]).stdout
    )["vocabulary"]
    assert vocab[0]["proficiency"] == 1

    again = runner.invoke(app, ["review", "--library-path", str(library_path)])
    assert "Nothing due for review." in again.stdout


def test_cli_define_save_requires_item(tmp_path: Path):
    result = runner.invoke(
        app, ["define", "lucid", "--save", "--library-path", str(tmp_path / "lib.json")]
    )
    assert result.exit_code != 0


def test_cli_rejects_non_numeric_bold_ratio_in_config(tmp_path: Path):
    """A malformed config is a usage error, not a crash."""
    config_file = tmp_path / "reader.yaml"
    config_file.write_text("reading:\n  bold_ratio: half\n", encoding="utf-8")
    text_file = tmp_path / "sample.txt"
    text_file.write_text("a b c", encoding="utf-8")
    result = runner.invoke(
        app, ["tokenize", "--input-path", str(text_file), "--config", str(config_file)]
    )
    assert result.exit_code == 2
    assert not isinstance(result.exception, TypeError)


def _import(tmp_path: Path, library_path: Path, text: str) -> dict[str, Any]:
    text_file = tmp_path / "notes.txt"
    text_file.write_text(text, encoding="utf-8")
    result = runner.invoke(
        app, ["import", "--input-path", str(text_file), "--library-path", str(library_path)]
    )
    assert result.exit_code == 0
    return json.loads(result.stdout)
