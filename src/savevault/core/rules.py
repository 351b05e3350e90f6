from __future__ import annotations

from typing import Any, Callable, NamedTuple, Sequence


class Rule(NamedTuple):
    """One row of an ordered heuristic table: the first matching row decides."""

    name: str
    predicate: Callable[[Any], bool]
    verdict: bool


def first_match(rules: Sequence[Rule], facts: object) -> Rule | None:
    for rule in rules:
        if rule.predicate(facts):
            return rule
    return None


def evaluate(rules: Sequence[Rule], facts: object, default: bool = False) -> bool:
    rule = first_match(rules, facts)
    return default if rule is None else rule.verdict


def contains_any(text: str, tokens: Sequence[str]) -> bool:
    return any(token in text for token in tokens)
