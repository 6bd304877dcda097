"""Smoke tests for the command-line entrypoints.

``main.py`` labels a prediction file and ``scripts/evaluate_model.py`` scores
it against gold labels. Both are driven through ``sys.argv`` with small files
written to a temporary directory.
"""
from __future__ import annotations

import importlib
import importlib.util
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]

#        O     B-PER E-PER U-PER
OUT = [0.85, 0.05, 0.05, 0.05]
BEGIN = [0.05, 0.85, 0.05, 0.05]
END = [0.05, 0.05, 0.85, 0.05]
UNIT = [0.05, 0.05, 0.05, 0.85]


@pytest.fixture(autouse=True)
def restore_argv():
    original = sys.argv[:]
    try:
        yield
    finally:
        sys.argv = original


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "config.yaml").write_text(
        "schema: bieou\ndecoder:\n  max_beam_size: 2\nparallelization: 2\n",
        encoding="utf-8",
    )
    predictions = {
        "labels": ["O", "B-PER", "E-PER", "U-PER"],
        "sentences": [
            {"tokens": ["Ada", "Lovelace", "wrote"], "scores": [BEGIN, END, OUT], "gold": ["B-PER", "E-PER", "O"]},
            {"tokens": ["Babbage", "replied"], "scores": [UNIT, OUT], "gold": ["O", "O"]},
        ],
    }
    (tmp_path / "predictions.json").write_text(json.dumps(predictions), encoding="utf-8")
    return tmp_path


def load_evaluate_script():
    spec = importlib.util.spec_from_file_location("evaluate_model", PROJECT_ROOT / "scripts" / "evaluate_model.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_main_requires_input_arguments():
    """Invoking ``main.main`` without the mandatory flags exits gracefully."""
    sys.argv = ["main"]
    with pytest.raises(SystemExit):
        import main as main_module

        main_module.main()


def test_main_reports_missing_files(tmp_path: Path, capsys):
    """The CLI surfaces a helpful error when the input file is absent."""
    config = tmp_path / "config.yaml"
    config.write_text("{}", encoding="utf-8")

    sys.argv = [
        "main",
        "--input",
        str(tmp_path / "missing.json"),
        "--output",
        str(tmp_path / "output.json"),
        "--config",
        str(config),
    ]

    with pytest.raises(SystemExit):
        main_module = importlib.import_module("main")
        main_module.main()
    assert "Error" in capsys.readouterr().err


def test_main_rejects_unknown_log_level(workspace: Path, capsys):
    sys.argv = [
        "main",
        "--input",
        str(workspace / "predictions.json"),
        "--output",
        str(workspace / "labeled.json"),
        "--log-level",
        "bogus",
    ]

    with pytest.raises(SystemExit) as exc_info:
        importlib.import_module("main").main()
    assert exc_info.value.code == 2
    assert "--log-level" in capsys.readouterr().err
    assert not (workspace / "labeled.json").exists()


def test_main_accepts_lowercase_log_level(workspace: Path):
    output = workspace / "labeled.json"
    sys.argv = [
        "main",
        "--input",
        str(workspace / "predictions.json"),
        "--output",
        str(output),
        "--config",
        str(workspace / "config.yaml"),
        "--log-level",
        "debug",
    ]

    importlib.import_module("main").main()

    assert output.exists()


def test_main_labels_prediction_file(workspace: Path, capsys):
    output = workspace / "out" / "labeled.json"
    sys.argv = [
        "main",
        "--input",
        str(workspace / "predictions.json"),
        "--output",
        str(output),
        "--config",
        str(workspace / "config.yaml"),
        "--print",
    ]

    importlib.import_module("main").main()

    data = json.loads(output.read_text(encoding="utf-8"))
    first, second = data["sentences"]
    assert [t["label"] for t in first["tokens"]] == ["B-PER", "E-PER", "O"]
    assert [t["label"] for t in second["tokens"]] == ["U-PER", "O"]
    assert first["segments"][0]["annotation"] == "PER"
    assert (first["segments"][0]["start_char"], first["segments"][0]["end_char"]) == (0, 11)
    assert "Babbage\tU-PER" in capsys.readouterr().out


def test_evaluate_script_writes_disagreements(workspace: Path, capsys):
    report = workspace / "disagreements.csv"
    sys.argv = [
        "evaluate_model",
        "--input",
        str(workspace / "predictions.json"),
        "--config",
        str(workspace / "config.yaml"),
        "--disagreements-out",
        str(report),
    ]

    load_evaluate_script().main()

    out = capsys.readouterr().out
    assert '"PER"' in out
    lines = report.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "sentence,index,token,predicted,gold"
    assert lines[1:] == ["1,0,Babbage,U-PER,O"]


def test_evaluate_script_rejects_unknown_schema(workspace: Path, capsys):
    (workspace / "config.yaml").write_text("schema: ioe\n", encoding="utf-8")
    sys.argv = [
        "evaluate_model",
        "--input",
        str(workspace / "predictions.json"),
        "--config",
        str(workspace / "config.yaml"),
    ]

    with pytest.raises(SystemExit):
        load_evaluate_script().main()
    assert "Unknown tag schema" in capsys.readouterr().err
