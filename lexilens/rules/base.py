"""Rule, override, and severity definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from lexilens.rules.patterns import ProximityPattern

Severity = Literal["CRITICAL", "CAUTION", "SAFE", "INFO"]

CRITICAL: Severity = "CRITICAL"
CAUTION: Severity = "CAUTION"
SAFE: Severity = "SAFE"
INFO: Severity = "INFO"

SEVERITY_PRIORITY: dict[str, int] = {
    CRITICAL: 3,
    CAUTION: 2,
    SAFE: 1,
    INFO: 0,
}

# INFO is reserved for filler points and never assigned to a rule.
RULE_SEVERITIES = (CRITICAL, CAUTION, SAFE)


@dataclass(frozen=True, slots=True)
class Rule:
    """A static pattern rule; a rule that matched is a finding."""

    rule_id: str
    severity: Severity
    type: str
    pattern: ProximityPattern
    title: str
    explanation: str
    explanation_hi: str | None = None

    def __post_init__(self) -> None:
        if not self.rule_id:
            raise ValueError("Rule id must be a non-empty string")
        if self.severity not in RULE_SEVERITIES:
            choices = ", ".join(RULE_SEVERITIES)
            raise ValueError(
                f"Rule '{self.rule_id}' severity must be one of: {choices}, got {self.severity!r}"
            )

    def matches(self, text: str) -> bool:
        return self.pattern.matches(text)


@dataclass(frozen=True, slots=True)
class ConflictOverride:
    """When ``suppressor`` is found, drop any finding with id ``suppressed``."""

    suppressor: str
    suppressed: str

    def to_dict(self) -> dict[str, str]:
        return {"suppressor": self.suppressor, "suppressed": self.suppressed}
