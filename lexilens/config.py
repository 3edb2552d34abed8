"""Configuration loading for lexilens."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lexilens.rules import build_overrides, build_rule_table
from lexilens.rules.base import RULE_SEVERITIES, ConflictOverride, Rule
from lexilens.rules.patterns import ProximityPattern

CONFIG_FILENAMES = (".lexilens.toml", "lexilens.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("lexilens",)

BACKENDS = {"rules", "gemini"}
FAIL_LEVELS = {"red", "orange"}


@dataclass(slots=True)
class RemoteConfig:
    """Settings for the remote generative-language backend."""

    model: str = "gemini-flash-latest"
    api_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: int = 60
    min_chars: int = 50
    max_chars: int = 30000

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "api_url": self.api_url,
            "api_key_env": self.api_key_env,
            "timeout_seconds": self.timeout_seconds,
            "min_chars": self.min_chars,
            "max_chars": self.max_chars,
        }


@dataclass(slots=True)
class CustomRuleConfig:
    """A rule declared in configuration."""

    rule_id: str
    severity: str
    type: str
    title: str
    explanation: str
    groups: list[list[str]]
    windows: list[int]
    explanation_hi: str | None = None

    def to_rule(self) -> Rule:
        return Rule(
            rule_id=self.rule_id,
            severity=self.severity,  # type: ignore[arg-type]
            type=self.type,
            pattern=ProximityPattern(
                groups=tuple(tuple(group) for group in self.groups),
                windows=tuple(self.windows),
            ),
            title=self.title,
            explanation=self.explanation,
            explanation_hi=self.explanation_hi,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.rule_id,
            "severity": self.severity,
            "type": self.type,
            "title": self.title,
            "explanation": self.explanation,
            "groups": [list(group) for group in self.groups],
            "windows": list(self.windows),
        }
        if self.explanation_hi is not None:
            payload["explanation_hi"] = self.explanation_hi
        return payload


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    backend: str = "rules"
    fail_on: str | None = None
    rule_disable: list[str] = field(default_factory=list)
    custom_rules: list[CustomRuleConfig] = field(default_factory=list)
    overrides: list[ConflictOverride] = field(default_factory=list)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    source: str | None = None

    def build_rules(self) -> tuple[Rule, ...]:
        return build_rule_table(
            disabled_rule_ids=self.rule_disable,
            custom_rules=self.custom_rule_objects(),
        )

    def build_overrides(self) -> tuple[ConflictOverride, ...]:
        return build_overrides(custom_rules=self.custom_rule_objects(), extra=self.overrides)

    def custom_rule_objects(self) -> list[Rule]:
        return [item.to_rule() for item in self.custom_rules]

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "backend": self.backend,
            "fail_on": self.fail_on,
            "rules": {
                "disable": list(self.rule_disable),
                "custom": [item.to_dict() for item in self.custom_rules],
            },
            "overrides": [item.to_dict() for item in self.overrides],
            "remote": self.remote.to_dict(),
            "source": self.source,
        }


def load_app_config(project: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    project = project.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (project / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = project / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = project / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'backend = "rules"',
            '# fail_on = "red"',
            "",
            "[rules]",
            "disable = []",
            "",
            "[[rules.custom]]",
            'id = "data_retention"',
            'severity = "CAUTION"',
            'type = "Data Risk"',
            'title = "Indefinite Data Retention"',
            'explanation = "Your data may be kept after you delete your account."',
            'groups = [["retain", "store"], ["indefinitely", "after termination"]]',
            "windows = [80]",
            "",
            "# [[overrides]]",
            '# suppressor = "no_sell_guarantee"',
            '# suppressed = "data_selling"',
            "",
            "[remote]",
            'model = "gemini-flash-latest"',
            'api_key_env = "GEMINI_API_KEY"',
            "timeout_seconds = 60",
            "min_chars = 50",
            "max_chars = 30000",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    remote_mapping = _as_table(mapping.get("remote"), "remote")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    raw_fail = mapping.get("fail_on")
    fail_value = None if raw_fail is None else _as_choice(raw_fail, FAIL_LEVELS, "fail_on")

    config = AppConfig(
        format=format_value,
        backend=_as_choice(mapping.get("backend", "rules"), BACKENDS, "backend"),
        fail_on=fail_value,
        rule_disable=_as_str_list(rules_mapping.get("disable")),
        custom_rules=_parse_custom_rules(rules_mapping.get("custom"), "rules.custom"),
        overrides=_parse_overrides(mapping.get("overrides"), "overrides"),
        remote=_parse_remote_config(remote_mapping),
        source=source,
    )
    # Surface bad ids and patterns at load time rather than on first analyze.
    config.build_rules()
    config.build_overrides()
    return config


def _parse_custom_rules(value: Any, field_name: str) -> list[CustomRuleConfig]:
    items = _as_table_list(value, field_name)
    parsed: list[CustomRuleConfig] = []
    for index, item in enumerate(items):
        item_name = f"{field_name}[{index}]"
        groups = _as_str_list_list(item.get("groups"), f"{item_name}.groups")
        windows_raw = item.get("windows")
        if not isinstance(windows_raw, list):
            raise ValueError(f"{item_name}.windows must be a list of integers")
        windows = [_as_int(window, f"{item_name}.windows") for window in windows_raw]
        explanation_hi = item.get("explanation_hi")
        custom = CustomRuleConfig(
            rule_id=_as_str(item.get("id"), f"{item_name}.id"),
            severity=_as_choice(
                item.get("severity"), set(RULE_SEVERITIES), f"{item_name}.severity"
            ),
            type=_as_str(item.get("type"), f"{item_name}.type"),
            title=_as_str(item.get("title"), f"{item_name}.title"),
            explanation=_as_str(item.get("explanation"), f"{item_name}.explanation"),
            groups=groups,
            windows=windows,
            explanation_hi=(
                None
                if explanation_hi is None
                else _as_str(explanation_hi, f"{item_name}.explanation_hi")
            ),
        )
        try:
            custom.to_rule()
        except ValueError as exc:
            raise ValueError(f"{item_name}: {exc}") from exc
        parsed.append(custom)
    return parsed


def _parse_overrides(value: Any, field_name: str) -> list[ConflictOverride]:
    items = _as_table_list(value, field_name)
    return [
        ConflictOverride(
            suppressor=_as_str(item.get("suppressor"), f"{field_name}.suppressor"),
            suppressed=_as_str(item.get("suppressed"), f"{field_name}.suppressed"),
        )
        for item in items
    ]


def _parse_remote_config(value: dict[str, Any]) -> RemoteConfig:
    defaults = RemoteConfig()
    timeout = _as_int(
        value.get("timeout_seconds", defaults.timeout_seconds), "remote.timeout_seconds"
    )
    min_chars = _as_int(value.get("min_chars", defaults.min_chars), "remote.min_chars")
    max_chars = _as_int(value.get("max_chars", defaults.max_chars), "remote.max_chars")
    if timeout <= 0:
        raise ValueError("remote.timeout_seconds must be > 0")
    if min_chars < 0:
        raise ValueError("remote.min_chars must be >= 0")
    if max_chars <= 0:
        raise ValueError("remote.max_chars must be > 0")
    return RemoteConfig(
        model=_as_str(value.get("model", defaults.model), "remote.model"),
        api_url=_as_str(value.get("api_url", defaults.api_url), "remote.api_url"),
        api_key_env=_as_str(value.get("api_key_env", defaults.api_key_env), "remote.api_key_env"),
        timeout_seconds=timeout,
        min_chars=min_chars,
        max_chars=max_chars,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Expected a list of strings")
        items.append(item)
    return items


def _as_str_list_list(value: Any, field_name: str) -> list[list[str]]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"{field_name} must be a non-empty list of string lists")
    output: list[list[str]] = []
    for item in value:
        if not isinstance(item, list):
            raise ValueError(f"{field_name} must be a non-empty list of string lists")
        try:
            output.append(_as_str_list(item))
        except ValueError as exc:
            raise ValueError(f"{field_name} must be a non-empty list of string lists") from exc
    return output


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw)
    lowered = {item.lower(): item for item in allowed}
    if value.lower() not in lowered:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return lowered[value.lower()]


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw
