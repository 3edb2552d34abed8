"""Rules package."""

from dataclasses import dataclass

from lexilens.rules.base import ConflictOverride, Rule
from lexilens.rules.catalog import DEFAULT_OVERRIDES, DEFAULT_RULES


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    severity: str
    type: str
    title: str
    explanation: str
    builtin: bool
    enabled: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity,
            "type": self.type,
            "title": self.title,
            "explanation": self.explanation,
            "builtin": self.builtin,
            "enabled": self.enabled,
        }


def build_rule_table(
    *,
    disabled_rule_ids: list[str] | None = None,
    custom_rules: list[Rule] | None = None,
) -> tuple[Rule, ...]:
    """Build the effective rule table: built-ins minus disabled ids, then custom rules.

    A custom rule may reuse an existing id to add an alternate pattern for the
    same finding.
    """
    custom = list(custom_rules or [])
    known_ids = {rule.rule_id for rule in DEFAULT_RULES} | {rule.rule_id for rule in custom}
    disabled_set = set(disabled_rule_ids or [])

    unknown = [rule_id for rule_id in disabled_set if rule_id not in known_ids]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    table = [rule for rule in DEFAULT_RULES if rule.rule_id not in disabled_set]
    table.extend(rule for rule in custom if rule.rule_id not in disabled_set)
    return tuple(table)


def build_overrides(
    *,
    custom_rules: list[Rule] | None = None,
    extra: list[ConflictOverride] | None = None,
) -> tuple[ConflictOverride, ...]:
    """Return default plus configured override pairs, validating their ids."""
    known_ids = {rule.rule_id for rule in DEFAULT_RULES}
    known_ids.update(rule.rule_id for rule in custom_rules or [])

    overrides: list[ConflictOverride] = list(DEFAULT_OVERRIDES)
    for override in extra or []:
        unknown = [
            rule_id
            for rule_id in (override.suppressor, override.suppressed)
            if rule_id not in known_ids
        ]
        if unknown:
            joined = ", ".join(sorted(set(unknown)))
            raise ValueError(f"Override references unknown rule ids: {joined}")
        if override.suppressor == override.suppressed:
            raise ValueError(f"Rule '{override.suppressor}' cannot suppress itself")
        if override not in overrides:
            overrides.append(override)
    return tuple(overrides)


def list_rule_info(
    *,
    active_rules: tuple[Rule, ...] | None = None,
    custom_rules: list[Rule] | None = None,
) -> list[RuleInfo]:
    """Return metadata for built-in and custom rules, one entry per id."""
    effective = active_rules if active_rules is not None else DEFAULT_RULES
    active_ids = {rule.rule_id for rule in effective}
    builtin_ids = {rule.rule_id for rule in DEFAULT_RULES}

    info: list[RuleInfo] = []
    seen: set[str] = set()
    for rule in [*DEFAULT_RULES, *(custom_rules or [])]:
        if rule.rule_id in seen:
            continue
        seen.add(rule.rule_id)
        info.append(
            RuleInfo(
                rule_id=rule.rule_id,
                severity=rule.severity,
                type=rule.type,
                title=rule.title,
                explanation=rule.explanation,
                builtin=rule.rule_id in builtin_ids,
                enabled=rule.rule_id in active_ids,
            )
        )
    return info
