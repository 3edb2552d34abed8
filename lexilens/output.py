"""Output rendering."""

from __future__ import annotations

import json
from typing import Any

import click

from lexilens import __version__
from lexilens.classifier import AnalysisResult, Point

# click has no orange; yellow is the closest terminal color.
_VERDICT_STYLES = {"red": "red", "orange": "yellow", "green": "green"}
_SEVERITY_STYLES = {"CRITICAL": "red", "CAUTION": "yellow", "SAFE": "green", "INFO": "blue"}


def render_human(result: AnalysisResult, *, lang: str = "en") -> str:
    """Render a compact colorized verdict and point list."""
    verdict = result.verdict
    color = _VERDICT_STYLES.get(verdict.color, "white")
    lines: list[str] = [
        click.style(f"Verdict: {verdict.title}", fg=color, bold=True),
        f"Reason: {verdict.reason}",
        click.style("Key points:", bold=True),
    ]
    for index, point in enumerate(result.points, start=1):
        tag = click.style(f"[{point.severity}]", fg=_SEVERITY_STYLES.get(point.severity))
        lines.append(f"{index}. {tag} {point.title} ({point.type})")
        lines.append(f"   {_explanation(point, lang)}")
    return "\n".join(lines)


def render_json(
    result: AnalysisResult,
    *,
    input_source: str,
    backend: str,
) -> str:
    """Render stable JSON output for automation."""
    payload = build_json_payload(result, input_source=input_source, backend=backend)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    result: AnalysisResult,
    *,
    input_source: str,
    backend: str,
) -> dict[str, Any]:
    """Build the points/verdict payload plus a ``meta`` block."""
    payload = result.to_dict()
    payload["meta"] = {
        "backend": backend,
        "finding_ids": result.finding_ids,
        "input_source": input_source,
        "version": __version__,
    }
    return payload


def _explanation(point: Point, lang: str) -> str:
    if lang == "hi" and point.explanation_hi:
        return point.explanation_hi
    return point.explanation
