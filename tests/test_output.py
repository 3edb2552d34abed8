"""Output rendering tests."""

from __future__ import annotations

import json

import click

from lexilens.classifier import AnalysisResult, Point, Verdict, analyze, pad_points
from lexilens.output import build_json_payload, render_human, render_json
from tests.helpers_text import ARBITRATION, SELL, document


def test_render_human_has_verdict_and_five_points() -> None:
    output = click.unstyle(render_human(analyze(document(SELL, ARBITRATION))))

    assert "Verdict: Not Recommended" in output
    assert "Reason: Personal Data Selling detected." in output
    assert "1. [CRITICAL] Personal Data Selling (Data Risk)" in output
    assert "2. [CAUTION] Mandatory Arbitration (Legal Risk)" in output
    assert "5. [INFO]" in output
    assert "6." not in output


def test_render_human_uses_second_language_when_available() -> None:
    points = pad_points(
        [
            Point(
                title="Data Selling",
                explanation="Your data is sold.",
                explanation_hi="Aapka data becha jata hai.",
                severity="CRITICAL",
                type="Data Risk",
            )
        ]
    )
    result = AnalysisResult(
        points=points,
        verdict=Verdict(title="Not Recommended", color="red", reason="Data Selling detected."),
    )

    hindi = click.unstyle(render_human(result, lang="hi"))
    assert "Aapka data becha jata hai." in hindi
    assert "General usage rules apply." in hindi

    english = click.unstyle(render_human(result))
    assert "Your data is sold." in english


def test_render_json_has_stable_schema_keys() -> None:
    payload = json.loads(render_json(analyze(SELL), input_source="stdin", backend="rules"))

    assert set(payload) == {"points", "verdict", "meta"}
    assert set(payload["meta"]) == {"backend", "finding_ids", "input_source", "version"}
    assert payload["meta"]["finding_ids"] == ["data_selling"]
    assert [point["severity"] for point in payload["points"]] == [
        "CRITICAL",
        "INFO",
        "INFO",
        "INFO",
        "INFO",
    ]


def test_build_json_payload_keeps_result_contract() -> None:
    result = analyze("")
    payload = build_json_payload(result, input_source="text", backend="rules")
    assert payload["points"] == result.to_dict()["points"]
    assert payload["verdict"] == result.verdict.to_dict()
