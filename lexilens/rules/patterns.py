"""Ordered proximity patterns over concept phrase groups."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MAX_WINDOW = 10000

# Line terminators and whitespace as JavaScript regexes define them.
_LINE_BREAKS = "\n\r\u2028\u2029"
_WHITESPACE = "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"


@dataclass(frozen=True, slots=True)
class ProximityPattern:
    """Concept groups that must appear in order, each within a window of the previous.

    ``windows[i]`` is the largest number of characters allowed between the end of
    a phrase from ``groups[i]`` and the start of a phrase from ``groups[i + 1]``.
    Matching is ASCII case-insensitive and the gap never spans a line break
    (LF, CR, U+2028 or U+2029), so ``sell ... partner`` on two separate lines
    does not match. Windows are capped at ``MAX_WINDOW`` characters.
    """

    groups: tuple[tuple[str, ...], ...]
    windows: tuple[int, ...]
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        groups = tuple(tuple(group) for group in self.groups)
        windows = tuple(self.windows)
        if len(groups) < 2:
            raise ValueError("A proximity pattern needs at least two concept groups")
        if len(windows) != len(groups) - 1:
            raise ValueError(
                f"Expected {len(groups) - 1} window(s) for {len(groups)} groups, got {len(windows)}"
            )
        for window in windows:
            if isinstance(window, bool) or not isinstance(window, int) or window < 0:
                raise ValueError(f"Windows must be non-negative integers, got {window!r}")
            if window > MAX_WINDOW:
                raise ValueError(f"Windows must be at most {MAX_WINDOW} characters, got {window}")

        object.__setattr__(self, "groups", groups)
        object.__setattr__(self, "windows", windows)
        compiled = re.compile(_build_regex(groups, windows), re.I | re.ASCII)
        object.__setattr__(self, "_compiled", compiled)

    def matches(self, text: str) -> bool:
        return self._compiled.search(text) is not None

    @property
    def regex(self) -> str:
        return self._compiled.pattern

    def to_dict(self) -> dict[str, list]:
        return {
            "groups": [list(group) for group in self.groups],
            "windows": list(self.windows),
        }


def _build_regex(groups: tuple[tuple[str, ...], ...], windows: tuple[int, ...]) -> str:
    parts = [_group_regex(groups[0])]
    for window, group in zip(windows, groups[1:]):
        parts.append(f"[^{_LINE_BREAKS}]{{0,{window}}}")
        parts.append(_group_regex(group))
    return "".join(parts)


def _group_regex(group: tuple[str, ...]) -> str:
    if not group:
        raise ValueError("Concept groups must contain at least one phrase")
    alternatives: list[str] = []
    for phrase in group:
        if not isinstance(phrase, str):
            raise ValueError(f"Phrases must be strings, got {phrase!r}")
        words = phrase.split()
        if not words:
            raise ValueError("Phrases must contain non-whitespace text")
        alternatives.append(_WHITESPACE.join(re.escape(word) for word in words))
    return "(?:" + "|".join(alternatives) + ")"
