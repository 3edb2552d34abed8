"""Qualitative risk classification: match, resolve conflicts, select points, derive verdict."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from lexilens.rules import build_overrides, build_rule_table
from lexilens.rules.base import CAUTION, CRITICAL, INFO, SEVERITY_PRIORITY, ConflictOverride, Rule
from lexilens.rules.catalog import FILLER_TYPE, FILLERS

logger = logging.getLogger(__name__)

POINT_COUNT = 5

VERDICT_COLORS = ("green", "orange", "red")


@dataclass(slots=True)
class Point:
    """A display item: a real finding or a synthesized filler."""

    title: str
    explanation: str
    severity: str
    type: str
    explanation_hi: str | None = None
    rule_id: str | None = None

    @classmethod
    def from_rule(cls, rule: Rule) -> Point:
        return cls(
            title=rule.title,
            explanation=rule.explanation,
            severity=rule.severity,
            type=rule.type,
            explanation_hi=rule.explanation_hi,
            rule_id=rule.rule_id,
        )

    @property
    def is_filler(self) -> bool:
        return self.rule_id is None and self.severity == INFO

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "severity": self.severity,
            "type": self.type,
        }
        if self.explanation_hi is None:
            payload["explanation"] = self.explanation
        else:
            payload["explanation_en"] = self.explanation
            payload["explanation_hi"] = self.explanation_hi
        return payload


@dataclass(frozen=True, slots=True)
class Verdict:
    """Overall recommendation derived from the full finding set."""

    title: str
    color: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "color": self.color, "reason": self.reason}


SAFE_VERDICT = Verdict(
    title="Safe to Install",
    color="green",
    reason="No major risks identified.",
)
CAUTION_VERDICT = Verdict(
    title="Install with Caution",
    color="orange",
    reason="Standard risks found (e.g. Arbitration / No Refunds).",
)
NOT_RECOMMENDED_TITLE = "Not Recommended"


@dataclass(slots=True)
class AnalysisResult:
    """Exactly five points plus a verdict; ``findings`` is kept for callers, not serialized."""

    points: list[Point]
    verdict: Verdict
    findings: list[Rule] = field(default_factory=list)

    @property
    def finding_ids(self) -> list[str]:
        return [finding.rule_id for finding in self.findings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "points": [point.to_dict() for point in self.points],
            "verdict": self.verdict.to_dict(),
        }


class Analyzer(Protocol):
    """Anything that turns document text into an ``AnalysisResult``."""

    def analyze(self, text: str) -> AnalysisResult:
        """Classify text and return points plus verdict."""


class RiskClassifier:
    """Rule-based analyzer over a fixed rule table and override table."""

    def __init__(
        self,
        rules: tuple[Rule, ...] | list[Rule] | None = None,
        overrides: tuple[ConflictOverride, ...] | list[ConflictOverride] | None = None,
    ) -> None:
        self.rules = tuple(rules) if rules is not None else build_rule_table()
        self.overrides = tuple(overrides) if overrides is not None else build_overrides()

    def analyze(self, text: str) -> AnalysisResult:
        findings = resolve_conflicts(match_rules(text, self.rules), self.overrides)
        return AnalysisResult(
            points=select_points(findings),
            verdict=derive_verdict(findings),
            findings=findings,
        )


def analyze(text: str) -> AnalysisResult:
    """Classify text with the built-in rule table."""
    return _DEFAULT_CLASSIFIER.analyze(text)


def match_rules(text: str, rules: tuple[Rule, ...] | list[Rule]) -> list[Rule]:
    """Return matching rules in table order, at most one per rule id."""
    findings: list[Rule] = []
    seen: set[str] = set()
    for rule in rules:
        if rule.rule_id in seen:
            continue
        if rule.matches(text):
            seen.add(rule.rule_id)
            findings.append(rule)
    if findings:
        logger.debug("Matched rules: %s", ", ".join(rule.rule_id for rule in findings))
    return findings


def resolve_conflicts(
    findings: list[Rule],
    overrides: tuple[ConflictOverride, ...] | list[ConflictOverride],
) -> list[Rule]:
    """Drop findings suppressed by a present suppressor.

    Suppressors are looked up in the matched set before any removal, so a
    suppressed finding still suppresses whatever it is paired with.
    """
    present = {finding.rule_id for finding in findings}
    suppressed = {
        override.suppressed for override in overrides if override.suppressor in present
    }
    if not suppressed & present:
        return list(findings)

    logger.debug("Suppressed rules: %s", ", ".join(sorted(suppressed & present)))
    return [finding for finding in findings if finding.rule_id not in suppressed]


def select_points(findings: list[Rule]) -> list[Point]:
    """Pick exactly five display points, one per type first, then backfill."""
    ranked = sorted(findings, key=lambda item: SEVERITY_PRIORITY[item.severity], reverse=True)

    picked: list[Rule] = []
    used_types: set[str] = set()
    used_ids: set[str] = set()

    for finding in ranked:
        if len(picked) >= POINT_COUNT:
            break
        if finding.type not in used_types:
            picked.append(finding)
            used_types.add(finding.type)
            used_ids.add(finding.rule_id)

    for finding in ranked:
        if len(picked) >= POINT_COUNT:
            break
        if finding.rule_id not in used_ids:
            picked.append(finding)
            used_ids.add(finding.rule_id)

    points = [Point.from_rule(finding) for finding in picked]
    return pad_points(points)


def pad_points(points: list[Point]) -> list[Point]:
    """Append filler points until there are five.

    The filler index depends on the slots still open, ``(5 - len) % 3``, not on
    a running counter.
    """
    padded = list(points)
    while len(padded) < POINT_COUNT:
        title, explanation = FILLERS[(POINT_COUNT - len(padded)) % len(FILLERS)]
        padded.append(
            Point(title=title, explanation=explanation, severity=INFO, type=FILLER_TYPE)
        )
    return padded


def derive_verdict(findings: list[Rule]) -> Verdict:
    """Highest severity wins: red for any critical, orange for any caution, else green."""
    for finding in findings:
        if finding.severity == CRITICAL:
            return Verdict(
                title=NOT_RECOMMENDED_TITLE,
                color="red",
                reason=f"{finding.title} detected.",
            )
    if any(finding.severity == CAUTION for finding in findings):
        return CAUTION_VERDICT
    return SAFE_VERDICT


_DEFAULT_CLASSIFIER = RiskClassifier()
