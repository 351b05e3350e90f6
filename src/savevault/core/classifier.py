"""Executable heuristics.

Decides whether a discovered executable is noise (browser, installer,
updater, tiny helper) or worth listing. Both decisions are ordered rule
tables so each rule can be audited and tested on its own. The classifier
is pure: it only reads the size and path already carried by
``ExecutableInfo``.
"""
from __future__ import annotations

from dataclasses import dataclass

from savevault.config.discovery_rules import (
    BROWSER_FILE_TOKENS,
    ENGINE_TOKENS,
    GAME_DIRECTORY_SUFFIXES,
    GAME_VENDOR_TOKENS,
    GENERIC_ENTRY_STEMS,
    NON_GAME_COMPONENT_SUFFIXES,
    PLAY_VERB_TOKENS,
    UTILITY_EXECUTABLE_TOKENS,
)
from savevault.config.settings import DEFAULT_CONFIG, DiscoveryConfig, MIB
from savevault.core.models import ExecutableInfo, leaf_name
from savevault.core.rules import Rule, contains_any, evaluate, first_match


def _stem(file_name: str) -> str:
    head, dot, _ = file_name.rpartition(".")
    return head if dot else file_name


def is_game_like_path(directory: str) -> bool:
    lowered = directory.lower().rstrip("\\/")
    if not lowered:
        return False
    return contains_any(lowered, GAME_VENDOR_TOKENS) or lowered.endswith(GAME_DIRECTORY_SUFFIXES)


@dataclass(slots=True, frozen=True)
class _NameFacts:
    file_name: str
    stem: str
    directory: str
    directory_name: str


def _name_facts(file_name: str, containing_directory: str) -> _NameFacts:
    lowered = file_name.lower()
    directory = (containing_directory or "").lower().rstrip("\\/")
    return _NameFacts(
        file_name=lowered,
        stem=_stem(lowered),
        directory=directory,
        directory_name=leaf_name(directory),
    )


def _is_play_verb(facts: _NameFacts) -> bool:
    for token in PLAY_VERB_TOKENS:
        if token not in facts.file_name:
            continue
        # "launcher" is judged by its own rule below.
        if token == "launch" and "launcher" in facts.file_name:
            continue
        return True
    return False


LIKELY_GAME_RULES: tuple[Rule, ...] = (
    Rule("engine-token", lambda f: contains_any(f.file_name, ENGINE_TOKENS), True),
    Rule("play-verb", _is_play_verb, True),
    Rule("game-suffix", lambda f: f.stem.endswith("game"), True),
    Rule("entry-name", lambda f: f.stem in GENERIC_ENTRY_STEMS, True),
    Rule("bin-directory", lambda f: "bin" in f.directory_name, True),
    Rule("game-directory", lambda f: "game" in f.directory, True),
    Rule("game-launcher", lambda f: f.stem == "launcher" and "game" in f.directory, True),
)


def is_likely_game(file_name: str, containing_directory: str) -> bool:
    """True when the name or its directory carries an explicit game signal.

    ``containing_directory`` is the full directory path; "game" anywhere in it
    counts, "bin" only counts in the directory's own name.
    """
    return evaluate(LIKELY_GAME_RULES, _name_facts(file_name, containing_directory))


@dataclass(slots=True, frozen=True)
class _ExecutableFacts:
    names: _NameFacts
    size: int
    config: DiscoveryConfig


def _is_tiny(facts: _ExecutableFacts) -> bool:
    return facts.size < facts.config.min_executable_bytes and not is_game_like_path(facts.names.directory)


def _is_browser(facts: _ExecutableFacts) -> bool:
    names = facts.names
    return contains_any(names.file_name, BROWSER_FILE_TOKENS) and not is_likely_game(names.file_name, names.directory)


def _is_component(facts: _ExecutableFacts) -> bool:
    return facts.names.stem.endswith(NON_GAME_COMPONENT_SUFFIXES)


def _is_small_setup(facts: _ExecutableFacts) -> bool:
    return "setup" in facts.names.file_name and facts.size < facts.config.setup_max_bytes


SKIP_RULES: tuple[Rule, ...] = (
    Rule("tiny-binary", _is_tiny, True),
    Rule("browser", _is_browser, True),
    Rule("component", _is_component, True),
    Rule("uninstaller", lambda f: "unins" in f.names.file_name, True),
    Rule("small-setup", _is_small_setup, True),
)


def _executable_facts(info: ExecutableInfo, config: DiscoveryConfig) -> _ExecutableFacts:
    return _ExecutableFacts(names=_name_facts(info.file_name, info.directory), size=info.size, config=config)


def should_skip_executable(info: ExecutableInfo, config: DiscoveryConfig = DEFAULT_CONFIG) -> bool:
    return evaluate(SKIP_RULES, _executable_facts(info, config))


def skip_reason(info: ExecutableInfo, config: DiscoveryConfig = DEFAULT_CONFIG) -> str | None:
    """Name of the skip rule that rejects ``info``, or None when it is kept."""
    rule = first_match(SKIP_RULES, _executable_facts(info, config))
    return rule.name if rule is not None and rule.verdict else None


def is_system_or_utility_executable(path: str, size: int) -> bool:
    """Coarser filter applied while expanding registry install folders."""
    file_name = leaf_name(path).lower()
    stem = _stem(file_name)
    if contains_any(file_name, UTILITY_EXECUTABLE_TOKENS):
        return True
    if "launcher" in file_name and size < 1 * MIB:
        return True
    return stem.endswith(("utility", "helper"))
