"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from corpus_classifier.cli import main
from corpus_classifier.domain import Domain


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def query_files(tmp_path: Path) -> list[Path]:
    sports = tmp_path / "match.txt"
    sports.write_text("The striker scored a late football goal", encoding="utf-8")
    cooking = tmp_path / "recipe.html"
    cooking.write_text(
        "<html><head><title>Recipe</title></head>"
        "<body><p>Fry the garlic and onion in olive oil</p></body></html>",
        encoding="utf-8",
    )
    return [sports, cooking]


@pytest.fixture
def trained_model(runner, corpus_dir, tmp_path) -> Path:
    base = tmp_path / "models" / "topics"
    base.parent.mkdir()
    result = runner.invoke(main, ["train", str(corpus_dir), "-o", str(base), "--no-probability"])
    assert result.exit_code == 0, result.output
    return base


class TestTrain:
    def test_directory_corpus(self, trained_model):
        assert trained_model.with_suffix(".dd").is_file()
        assert trained_model.with_suffix(".svm").is_file()

    def test_reports_summary(self, runner, corpus_dir, tmp_path):
        result = runner.invoke(main, ["train", str(corpus_dir), "-o", str(tmp_path / "m")])
        assert result.exit_code == 0, result.output
        assert "Documents: 8" in result.output
        assert "sports" in result.output

    def test_jsonl_corpus_with_domain(self, runner, tmp_path):
        corpus = tmp_path / "corpus.jsonl"
        corpus.write_text(
            "\n".join(json.dumps(r) for r in [
                {"text": "cheap pills online now", "label": "spam"},
                {"text": "lunch meeting on friday", "label": "ham"},
                {"text": "", "label": "ham"},
            ]) + "\n\n",
            encoding="utf-8",
        )
        base = tmp_path / "mail"
        result = runner.invoke(main, [
            "train", str(corpus), "-o", str(base), "-e", "naive_bayes", "-d", "mail",
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(base.with_suffix(".dd").read_text(encoding="utf-8"))
        restored = Domain.from_dict(data)
        assert restored.id == "mail"
        assert set(restored.labels) == {"spam", "ham"}

    def test_malformed_jsonl(self, runner, tmp_path):
        corpus = tmp_path / "corpus.jsonl"
        corpus.write_text('{"text": "no label"}\n', encoding="utf-8")
        result = runner.invoke(main, ["train", str(corpus), "-o", str(tmp_path / "m")])
        assert result.exit_code == 2
        assert "label" in result.output

    def test_empty_corpus_fails(self, runner, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(main, ["train", str(empty), "-o", str(tmp_path / "m")])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_c_only_for_svm(self, runner, corpus_dir, tmp_path):
        result = runner.invoke(main, [
            "train", str(corpus_dir), "-o", str(tmp_path / "m"), "-e", "naive_bayes", "-C", "2",
        ])
        assert result.exit_code == 2


class TestClassify:
    def test_json_output(self, runner, trained_model, query_files):
        result = runner.invoke(main, [
            "classify", str(trained_model), *map(str, query_files), "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [(r["file"], r["label"]) for r in data] == [
            ("match.txt", "sports"),
            ("recipe.html", "cooking"),
        ]

    def test_rich_output(self, runner, trained_model, query_files):
        result = runner.invoke(main, ["classify", str(trained_model), str(query_files[0])])
        assert result.exit_code == 0, result.output
        assert "match.txt" in result.output
        assert "sports" in result.output

    def test_missing_model(self, runner, tmp_path, query_files):
        result = runner.invoke(main, ["classify", str(tmp_path / "nope"), str(query_files[0])])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestInspect:
    def test_json_output(self, runner, trained_model):
        result = runner.invoke(main, ["inspect", str(trained_model), "-o", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["domain"] == "default"
        assert data["locked"] is True
        assert data["labels"] == {"cooking": 0, "sports": 1}
        assert data["documents"] == 8

    def test_rich_output(self, runner, trained_model):
        result = runner.invoke(main, ["inspect", str(trained_model)])
        assert result.exit_code == 0, result.output
        assert "Locked: yes" in result.output


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output
