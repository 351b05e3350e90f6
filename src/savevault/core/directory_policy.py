"""Directory pruning heuristics for the filesystem crawl.

Rules are evaluated top-down and the first match wins. The table leans
towards recall: anything that looks related to a game vendor keeps being
scanned even when its name also looks like a noisy folder.
"""
from __future__ import annotations

from dataclasses import dataclass

from savevault.config.discovery_rules import (
    BROWSER_DIR_RESCUE_TOKENS,
    BROWSER_DIRECTORY_NAMES,
    GAME_VENDOR_TOKENS,
    INSTALLER_DIRECTORY_NAMES,
    OS_INTERNAL_TOKENS,
    OS_SOFT_TOKENS,
    TRANSIENT_DIRECTORY_NAMES,
    UPDATE_DIRECTORY_NAMES,
)
from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig
from savevault.core.models import leaf_name
from savevault.core.rules import Rule, contains_any, evaluate, first_match


@dataclass(slots=True, frozen=True)
class _DirectoryFacts:
    path: str
    name: str
    product_tokens: tuple[str, ...]

    @property
    def mentions_game(self) -> bool:
        return "game" in self.path


def _is_own_product(facts: _DirectoryFacts) -> bool:
    return contains_any(facts.path, facts.product_tokens)


def _is_browser_folder(facts: _DirectoryFacts) -> bool:
    return facts.name in BROWSER_DIRECTORY_NAMES and not contains_any(facts.path, BROWSER_DIR_RESCUE_TOKENS)


def _is_os_internal(facts: _DirectoryFacts) -> bool:
    if contains_any(facts.path, OS_INTERNAL_TOKENS):
        return True
    return contains_any(facts.path, OS_SOFT_TOKENS) and not facts.mentions_game


def _is_transient(facts: _DirectoryFacts) -> bool:
    if facts.name in TRANSIENT_DIRECTORY_NAMES:
        return True
    return facts.name in UPDATE_DIRECTORY_NAMES and not facts.mentions_game


DIRECTORY_RULES: tuple[Rule, ...] = (
    Rule("own-product", _is_own_product, True),
    Rule("browser-folder", _is_browser_folder, True),
    Rule("os-internal", _is_os_internal, True),
    Rule("installer-folder", lambda f: f.name in INSTALLER_DIRECTORY_NAMES, True),
    Rule("transient-folder", _is_transient, True),
    Rule("game-vendor", lambda f: contains_any(f.path, GAME_VENDOR_TOKENS), False),
)


def _facts(directory: str, config: DiscoveryConfig) -> _DirectoryFacts:
    lowered = directory.lower().rstrip("\\/")
    return _DirectoryFacts(
        path=lowered,
        name=leaf_name(lowered),
        product_tokens=tuple(token.lower() for token in config.product_tokens if token),
    )


def should_skip_directory(directory: str, config: DiscoveryConfig = DEFAULT_CONFIG) -> bool:
    return evaluate(DIRECTORY_RULES, _facts(directory, config))


def skip_reason(directory: str, config: DiscoveryConfig = DEFAULT_CONFIG) -> str | None:
    rule = first_match(DIRECTORY_RULES, _facts(directory, config))
    return rule.name if rule is not None and rule.verdict else None
