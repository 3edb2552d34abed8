"""CLI tests for the analyze command and help output."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lexilens import __version__
from lexilens.cli import app
from tests.helpers_text import ARBITRATION, NO_SELL, OWNERSHIP, SELL, document

runner = CliRunner()


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_root_help_works() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Classify terms-of-service text" in result.stdout
    assert "analyze" in result.stdout
    assert "config-init" in result.stdout
    assert "config-validate" in result.stdout


def test_analyze_help_works() -> None:
    result = runner.invoke(app, ["analyze", "--help"])
    assert result.exit_code == 0
    assert "--file" in result.stdout
    assert "--stdin" in result.stdout
    assert "--backend" in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_analyze_text_json_output(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", SELL, "--format", "json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)

    assert len(payload["points"]) == 5
    assert payload["points"][0]["title"] == "Personal Data Selling"
    assert payload["verdict"] == {
        "title": "Not Recommended",
        "color": "red",
        "reason": "Personal Data Selling detected.",
    }
    assert payload["meta"]["backend"] == "rules"
    assert payload["meta"]["input_source"] == "text"
    assert payload["meta"]["finding_ids"] == ["data_selling"]


def test_analyze_reads_stdin_and_file(tmp_path: Path) -> None:
    from_stdin = runner.invoke(
        app,
        ["analyze", "--project", str(tmp_path), "--stdin", "--format", "json"],
        input=ARBITRATION,
    )
    assert from_stdin.exit_code == 0
    assert json.loads(from_stdin.stdout)["verdict"]["color"] == "orange"

    doc = tmp_path / "terms.txt"
    doc.write_text(document(SELL, NO_SELL), encoding="utf-8")
    from_file = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--file", str(doc), "--format", "json"]
    )
    assert from_file.exit_code == 0
    payload = json.loads(from_file.stdout)
    assert payload["verdict"]["color"] == "green"
    assert payload["meta"]["input_source"] == f"file:{doc}"


def test_analyze_output_is_byte_identical_across_runs(tmp_path: Path) -> None:
    args = ["analyze", "--project", str(tmp_path), "--text", document(SELL, ARBITRATION)]
    first = runner.invoke(app, [*args, "--format", "json"])
    second = runner.invoke(app, [*args, "--format", "json"])
    assert first.stdout == second.stdout


def test_analyze_human_output(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", "--project", str(tmp_path), "--text", ""])
    assert result.exit_code == 0
    assert "Verdict: Safe to Install" in result.stdout
    assert "5. [INFO] Copyright Terms (General Info)" in result.stdout


@pytest.mark.parametrize(
    ("text", "fail_on", "exit_code"),
    [
        (SELL, "red", 1),
        (ARBITRATION, "red", 0),
        (ARBITRATION, "orange", 1),
        (OWNERSHIP, "orange", 0),
    ],
)
def test_analyze_fail_on_threshold(tmp_path: Path, text: str, fail_on: str, exit_code: int) -> None:
    result = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", text, "--fail-on", fail_on]
    )
    assert result.exit_code == exit_code


def test_analyze_fail_on_from_config(tmp_path: Path) -> None:
    (tmp_path / ".lexilens.toml").write_text('fail_on = "orange"', encoding="utf-8")
    result = runner.invoke(app, ["analyze", "--project", str(tmp_path), "--text", ARBITRATION])
    assert result.exit_code == 1


def test_analyze_uses_configured_custom_rules_and_language(tmp_path: Path) -> None:
    (tmp_path / ".lexilens.toml").write_text(
        "\n".join(
            [
                "[[rules.custom]]",
                'id = "data_retention"',
                'severity = "CRITICAL"',
                'type = "Retention Risk"',
                'title = "Indefinite Data Retention"',
                'explanation = "Your data may be kept forever."',
                'explanation_hi = "Aapka data hamesha rakha ja sakta hai."',
                'groups = [["retain", "store"], ["indefinitely"]]',
                "windows = [40]",
            ]
        ),
        encoding="utf-8",
    )
    text = "We store your messages indefinitely."
    result = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", text, "--lang", "hi"]
    )
    assert result.exit_code == 0
    assert "Verdict: Not Recommended" in result.stdout
    assert "Aapka data hamesha rakha ja sakta hai." in result.stdout

    as_json = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", text, "--format", "json"]
    )
    point = json.loads(as_json.stdout)["points"][0]
    assert point["explanation_en"] == "Your data may be kept forever."


def test_analyze_rejects_multiple_inputs(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", "a", "--stdin"], input="b"
    )
    assert result.exit_code == 2


def test_analyze_rejects_file_that_is_not_utf8(tmp_path: Path) -> None:
    doc = tmp_path / "terms.txt"
    doc.write_bytes(b"We will sell \xff\xfe data to partners")
    result = runner.invoke(app, ["analyze", "--project", str(tmp_path), "--file", str(doc)])
    assert result.exit_code == 2
    assert not isinstance(result.exception, UnicodeDecodeError)


def test_verbose_logs_matched_rules_after_a_quiet_run(
    tmp_path: Path, restore_root_logging: None
) -> None:
    quiet = runner.invoke(app, ["analyze", "--project", str(tmp_path), "--text", SELL])
    assert quiet.exit_code == 0
    assert "Matched rules" not in quiet.output

    verbose = runner.invoke(app, ["-v", "analyze", "--project", str(tmp_path), "--text", SELL])
    assert verbose.exit_code == 0
    assert "Matched rules: data_selling" in verbose.output


def test_analyze_requires_an_input(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", "--project", str(tmp_path)])
    assert result.exit_code == 2


def test_analyze_rejects_unknown_backend(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", "a", "--backend", "cloud"]
    )
    assert result.exit_code == 2


def test_gemini_backend_reports_remote_errors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    long_text = "These terms govern your use of the service. " * 5
    result = runner.invoke(
        app,
        ["analyze", "--project", str(tmp_path), "--text", long_text, "--backend", "gemini"],
    )
    assert result.exit_code == 1
    assert "GEMINI_API_KEY" in result.output

    short = runner.invoke(
        app, ["analyze", "--project", str(tmp_path), "--text", "hi", "--backend", "gemini"]
    )
    assert short.exit_code == 1
    assert "Text too short." in short.output
